"""Error taxonomy for the stream bridge.

Fatal errors (configuration, connection, transport read, sink bind) unwind to
the process boundary. Record-level errors (framing, parse, per-send publish)
are logged by the session and the receive loop moves on.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigurationError(BridgeError):
    """Missing or invalid setting, raised before any connection is made."""


class StreamConnectionError(BridgeError):
    """The pricing stream request could not be established."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        self.status = status
        self.body = body
        super().__init__(message)


class TransportReadError(BridgeError):
    """Reading further chunks from an established stream failed."""


class FramingError(BridgeError):
    """A received segment is not valid UTF-8 text."""

    def __init__(self, segment: bytes, reason: str):
        self.segment = segment
        self.reason = reason
        super().__init__(f"Invalid UTF-8 in segment ({reason}): {segment!r}")


class ParseError(BridgeError):
    """A line matched neither stream record shape."""

    def __init__(self, text: str, diagnostic: str):
        self.text = text
        self.diagnostic = diagnostic
        super().__init__(f"Failed to parse record: {diagnostic} for line: {text}")


class PublishError(BridgeError):
    """The publish sink failed to bind or to accept a message."""


class TimestampError(ValueError):
    """A broker timestamp could not be converted to epoch nanoseconds."""
