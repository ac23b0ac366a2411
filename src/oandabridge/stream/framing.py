"""Newline framing for the chunked pricing stream."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from oandabridge.constants import LINE_TERMINATOR
from oandabridge.errors import FramingError

logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Accumulates raw transport bytes and yields complete lines.

    Reads from the transport may end anywhere, including in the middle of a
    line or a multi-byte character. Bytes after the last terminator stay
    buffered until a later append completes them.

    Usage:
        buffer = FrameBuffer()
        buffer.append(chunk)
        for line in buffer.extract_lines():
            ...
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        # Bytes before this offset are known to hold no terminator
        self._scan_from = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet resolved into a line."""
        return len(self._buffer)

    def append(self, data: bytes) -> None:
        """Add received bytes to the tail of the buffer."""
        self._buffer.extend(data)

    def next_line(self) -> str | None:
        """
        Remove and return the next non-blank line.

        Returns:
            The decoded line without its terminator, or None when no complete
            line is buffered.

        Raises:
            FramingError: If the next segment is not valid UTF-8. The segment
                is dropped and the rest of the buffer is kept.
        """
        while True:
            pos = self._buffer.find(LINE_TERMINATOR, self._scan_from)
            if pos == -1:
                self._scan_from = len(self._buffer)
                return None

            segment = bytes(self._buffer[: pos + 1])
            del self._buffer[: pos + 1]
            self._scan_from = 0

            try:
                line = segment.decode("utf-8").rstrip("\r\n")
            except UnicodeDecodeError as e:
                raise FramingError(segment, str(e)) from e

            if line.strip():
                return line

    def extract_lines(self) -> Iterator[str]:
        """Yield every complete line currently buffered."""
        while (line := self.next_line()) is not None:
            yield line

    def discard(self) -> bytes:
        """Drop and return the trailing partial segment."""
        remainder = bytes(self._buffer)
        self._buffer.clear()
        self._scan_from = 0
        if remainder:
            logger.debug(f"Discarding {len(remainder)} buffered bytes")
        return remainder
