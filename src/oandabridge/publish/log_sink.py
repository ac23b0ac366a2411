"""Log-only sink: writes records to the application log instead of a socket."""

import logging

from oandabridge.publish.base import PublishSink

logger = logging.getLogger(__name__)


class LogSink(PublishSink):
    """Publishes by logging each record at INFO."""

    def bind(self) -> None:
        logger.info("Log sink active; records are written to the log only")

    def publish(self, text: str) -> None:
        logger.info(text)
        self.sent += 1

    def close(self) -> None:
        pass
