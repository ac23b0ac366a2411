"""Pricing stream session.

Owns one outbound HTTP connection to the broker's pricing stream for its
whole lifetime and relays every parsed record to a publish sink.

State machine:
    CONNECTING -> STREAMING -> DRAINING -> CLOSED
    CONNECTING / STREAMING / DRAINING -> FAILED

There is no retry or reconnect here. A supervisor restarts the process if
continuous streaming is required.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

import aiohttp

from oandabridge.config_loader import StreamConfig
from oandabridge.errors import (
    BridgeError,
    FramingError,
    ParseError,
    PublishError,
    StreamConnectionError,
    TransportReadError,
)
from oandabridge.publish.base import PublishSink
from oandabridge.stream.framing import FrameBuffer
from oandabridge.stream.models import PriceUpdate, parse

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Stream session lifecycle state."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class SessionStats:
    """Counters for one stream session."""

    chunks: int = 0
    bytes_received: int = 0
    price_updates: int = 0
    heartbeats: int = 0
    published: int = 0
    parse_errors: int = 0
    framing_errors: int = 0
    publish_errors: int = 0
    discarded_bytes: int = 0

    @property
    def records(self) -> int:
        return self.price_updates + self.heartbeats

    def summary(self) -> str:
        return (
            f"chunks={self.chunks} bytes={self.bytes_received} "
            f"prices={self.price_updates} heartbeats={self.heartbeats} "
            f"published={self.published} parse_errors={self.parse_errors} "
            f"framing_errors={self.framing_errors} publish_errors={self.publish_errors} "
            f"discarded_bytes={self.discarded_bytes}"
        )


class StreamSession:
    """
    Single connection to the OANDA pricing stream.

    Usage:
        session = StreamSession(config, sink)
        stats = await session.run()
    """

    def __init__(
        self,
        config: StreamConfig,
        sink: PublishSink,
        base_url: str | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ):
        self.config = config
        self.sink = sink
        self.base_url = (base_url or config.stream_host).rstrip("/")
        self._http = http_session

        self.state = SessionState.CONNECTING
        self.error: BridgeError | None = None
        self.stats = SessionStats()
        self._buffer = FrameBuffer()

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.config.stream_path}"

    async def run(self) -> SessionStats:
        """
        Connect, stream until the server closes, then drain.

        Returns:
            Session statistics after a clean end-of-stream.

        Raises:
            StreamConnectionError: If the request fails or returns non-2xx.
            TransportReadError: If reading the stream fails mid-way.
        """
        self._transition(SessionState.CONNECTING)
        try:
            if self._http is not None:
                await self._stream(self._http)
            else:
                async with aiohttp.ClientSession() as http:
                    await self._stream(http)
        except BridgeError as e:
            self._fail(e)
            raise

        logger.info(f"Stream session closed: {self.stats.summary()}")
        return self.stats

    async def _stream(self, http: aiohttp.ClientSession) -> None:
        response = await self._connect(http)
        async with response:
            self._transition(SessionState.STREAMING)
            logger.info(f"Connected to OANDA pricing stream from: {self.url}")
            logger.info(f"Streaming instruments: {self.config.instruments_param}")
            await self._receive(response)

        logger.info("OANDA pricing stream ended gracefully")
        self._drain()
        self._transition(SessionState.CLOSED)

    async def _connect(self, http: aiohttp.ClientSession) -> aiohttp.ClientResponse:
        """Issue the streaming request and check the response status."""
        headers = {"Authorization": f"Bearer {self.config.auth_token}"}
        params = {"instruments": self.config.instruments_param}
        # Bounds connection setup only; reads may idle indefinitely
        timeout = aiohttp.ClientTimeout(total=None, connect=self.config.connect_timeout_seconds)

        try:
            response = await http.get(self.url, params=params, headers=headers, timeout=timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StreamConnectionError(f"Failed to connect to {self.url}: {e!r}") from e

        if 200 <= response.status < 300:
            return response

        body: str | None = None
        try:
            body = await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read error response body: {e}")
        finally:
            response.release()

        logger.error(f"Received non-success status: {response.status}")
        logger.error(f"Response body: {body}")
        raise StreamConnectionError(
            f"Failed to connect to OANDA stream: HTTP status {response.status}. Body: {body}",
            status=response.status,
            body=body,
        )

    async def _receive(self, response: aiohttp.ClientResponse) -> None:
        """Receive loop: suspends only while awaiting the next chunk."""
        chunks = response.content.iter_any()
        while True:
            # Only the read is guarded; sink errors must not look like transport failures
            try:
                chunk = await anext(chunks)
            except StopAsyncIteration:
                return
            except (aiohttp.ClientError, OSError) as e:
                raise TransportReadError(f"Stream read failed: {e!r}") from e

            self.stats.chunks += 1
            self.stats.bytes_received += len(chunk)
            self._buffer.append(chunk)
            self._process_lines()

    def _process_lines(self) -> None:
        while True:
            try:
                line = self._buffer.next_line()
            except FramingError as e:
                self.stats.framing_errors += 1
                logger.warning(f"Dropping undecodable segment: {e}")
                continue

            if line is None:
                return
            self._dispatch(line.strip())

    def _dispatch(self, text: str) -> None:
        """Parse one line and forward its original text to the sink."""
        try:
            record = parse(text)
        except ParseError as e:
            self.stats.parse_errors += 1
            logger.warning(f"Failed to parse JSON: {e.diagnostic} for line: {e.text}")
            return

        if isinstance(record, PriceUpdate):
            self.stats.price_updates += 1
            logger.debug(f"Pricing update: {record.instrument} @ {record.time}")
        else:
            self.stats.heartbeats += 1
            logger.debug(f"Heartbeat @ {record.time}")

        try:
            self.sink.publish(text)
        except (PublishError, OSError) as e:
            self.stats.publish_errors += 1
            logger.warning(f"Publish failed: {e} for line: {text}")
            return

        self.stats.published += 1

    def _drain(self) -> None:
        self._transition(SessionState.DRAINING)
        self._process_lines()

        remainder = self._buffer.discard()
        if remainder:
            self.stats.discarded_bytes += len(remainder)
            logger.warning(
                f"Discarding incomplete trailing record ({len(remainder)} bytes): {remainder!r}"
            )

    def _transition(self, state: SessionState) -> None:
        if state != self.state:
            logger.debug(f"Session state {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, error: BridgeError) -> None:
        self.error = error
        self._transition(SessionState.FAILED)
        logger.error(f"Stream session failed: {error}")
