"""ZeroMQ PUB socket sink."""

from __future__ import annotations

import logging

import zmq

from oandabridge.constants import DEFAULT_PUBLISH_ADDRESS, DEFAULT_SEND_HWM
from oandabridge.errors import PublishError
from oandabridge.publish.base import PublishSink

logger = logging.getLogger(__name__)


class ZmqPublishSink(PublishSink):
    """
    Publishes each record as a single-frame message on a bound PUB socket.

    There is no topic prefix, so subscribers use an empty subscription. PUB
    sockets drop messages for subscribers past the high-water mark instead
    of blocking, and sends are issued with NOBLOCK.
    """

    def __init__(
        self,
        address: str = DEFAULT_PUBLISH_ADDRESS,
        send_hwm: int = DEFAULT_SEND_HWM,
        linger_ms: int = 0,
        context: zmq.Context | None = None,
    ):
        super().__init__()
        self.address = address
        self.send_hwm = send_hwm
        self.linger_ms = linger_ms
        self._context = context
        self._owns_context = context is None
        self._socket: zmq.Socket | None = None

    @property
    def endpoint(self) -> str | None:
        """Actual bound endpoint (resolves wildcard ports)."""
        if self._socket is None:
            return None
        return self._socket.getsockopt_string(zmq.LAST_ENDPOINT)

    def bind(self) -> None:
        if self._socket is not None:
            return

        if self._context is None:
            self._context = zmq.Context()

        socket = self._context.socket(zmq.PUB)
        socket.setsockopt(zmq.SNDHWM, self.send_hwm)
        socket.setsockopt(zmq.LINGER, self.linger_ms)
        try:
            socket.bind(self.address)
        except zmq.ZMQError as e:
            socket.close()
            raise PublishError(f"Failed to bind publisher to {self.address}: {e}") from e

        self._socket = socket
        logger.info(f"Publishing on {self.endpoint}")

    def publish(self, text: str) -> None:
        if self._socket is None:
            raise PublishError("Publisher is not bound")

        try:
            self._socket.send_string(text, flags=zmq.NOBLOCK)
        except zmq.Again as e:
            raise PublishError("Send would block; message dropped") from e
        except zmq.ZMQError as e:
            raise PublishError(f"Send failed: {e}") from e
        self.sent += 1

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
            logger.info(
                f"Publisher on {self.address} closed; {self.sent} messages accepted for sending "
                f"(PUB drops messages with no subscriber or past the high-water mark)"
            )

        if self._owns_context and self._context is not None:
            self._context.term()
            self._context = None
