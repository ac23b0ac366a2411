"""Stream bridge application."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from oandabridge.config_loader import StreamConfig, load_config_with_overrides
from oandabridge.constants import LOG_FORMAT
from oandabridge.errors import PublishError
from oandabridge.publish import PublishSink, create_sink
from oandabridge.stream.session import SessionStats, StreamSession

logger = logging.getLogger(__name__)


class BridgeApp:
    """Wires configuration, publish sink and stream session together."""

    def __init__(
        self,
        config_path: str | Path | None = None,
        sink: str | None = None,
        log_level: str | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.config_path = Path(config_path) if config_path is not None else None
        self._sink_override = sink
        self._log_level_override = log_level
        self._environ = environ

        # Components
        self.config: StreamConfig | None = None
        self.sink: PublishSink | None = None
        self.session: StreamSession | None = None

    def _setup_logging(self) -> None:
        level = self.config.log_level.value if self.config else "INFO"
        logging.basicConfig(level=level, format=LOG_FORMAT)
        logging.getLogger().setLevel(level)

    def initialize(self) -> None:
        """Load config, bind the sink and build the session."""
        # Config warnings need a handler before the level is known
        self._setup_logging()

        self.config = load_config_with_overrides(
            self.config_path,
            self._environ,
            sink=self._sink_override,
            log_level=self._log_level_override,
        )
        self._setup_logging()
        logger.info(
            f"Initializing bridge ({self.config.environment.value}, sink={self.config.sink.value})"
        )
        if self.config.is_live_environment:
            logger.warning(f"Streaming LIVE account prices for account {self.config.account_id}")

        self.sink = create_sink(
            self.config.sink, self.config.publish_address, self.config.send_high_water_mark
        )
        try:
            self.sink.bind()
        except PublishError:
            self.sink.close()
            self.sink = None
            raise

        self.session = StreamSession(self.config, self.sink)

    async def run(self) -> SessionStats:
        """Stream until the server ends the stream or a fatal error occurs."""
        if self.session is None:
            self.initialize()

        try:
            return await self.session.run()
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        if self.sink is not None:
            self.sink.close()
            self.sink = None
        logger.info("Bridge stopped")
