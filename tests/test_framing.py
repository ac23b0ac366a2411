"""Tests for newline framing of the pricing stream."""

from __future__ import annotations

import pytest

from oandabridge.errors import FramingError
from oandabridge.stream.framing import FrameBuffer

HEARTBEAT = b'{"type":"HEARTBEAT","time":"2024-06-11T14:31:05Z"}'
PRICE = (
    b'{"asks":[{"price":"1.09005","liquidity":1000000}],'
    b'"bids":[{"price":"1.09000","liquidity":1000000}],'
    b'"closeoutAsk":"1.09015","closeoutBid":"1.08990",'
    b'"instrument":"EUR_USD","status":"active","time":"2024-06-11T14:30:00.123456789Z"}'
)
STREAM = PRICE + b"\n" + HEARTBEAT + b"\n\n   \n" + PRICE + b"\r\n" + "{\"x\":\"é€\"}".encode() + b"\n"


def feed(chunks: list[bytes]) -> list[str]:
    buffer = FrameBuffer()
    lines = []
    for chunk in chunks:
        buffer.append(chunk)
        lines.extend(buffer.extract_lines())
    return lines


def expected_lines(data: bytes) -> list[str]:
    return [
        line.decode("utf-8").rstrip("\r")
        for line in data.split(b"\n")[:-1]
        if line.decode("utf-8").strip()
    ]


class TestChunkBoundaries:
    """Extraction does not depend on how the transport splits reads."""

    def test_single_chunk(self) -> None:
        assert feed([STREAM]) == expected_lines(STREAM)

    def test_byte_by_byte(self) -> None:
        chunks = [STREAM[i : i + 1] for i in range(len(STREAM))]
        assert feed(chunks) == expected_lines(STREAM)

    @pytest.mark.parametrize("size", [2, 3, 7, 16, 61, 128])
    def test_fixed_size_chunks(self, size: int) -> None:
        chunks = [STREAM[i : i + size] for i in range(0, len(STREAM), size)]
        assert feed(chunks) == expected_lines(STREAM)

    @pytest.mark.parametrize("split", [1, 50, len(PRICE), len(PRICE) + 1, len(STREAM) - 1])
    def test_two_chunks(self, split: int) -> None:
        assert feed([STREAM[:split], STREAM[split:]]) == expected_lines(STREAM)

    def test_split_multibyte_character(self) -> None:
        data = '{"x":"€"}\n'.encode()
        cut = data.index("€".encode()) + 1
        assert feed([data[:cut], data[cut:]]) == ['{"x":"€"}']


class TestPartialLines:
    def test_partial_line_yields_nothing(self) -> None:
        buffer = FrameBuffer()
        buffer.append(b'{"type":"HEA')
        assert list(buffer.extract_lines()) == []
        assert buffer.pending == len(b'{"type":"HEA')

    def test_partial_line_completed_by_next_append(self) -> None:
        buffer = FrameBuffer()
        buffer.append(b'{"type":"HEA')
        assert list(buffer.extract_lines()) == []

        buffer.append(b'RTBEAT","time":"2024-06-11T14:31:05Z"}\n')
        assert list(buffer.extract_lines()) == [HEARTBEAT.decode()]
        assert buffer.pending == 0

    def test_residual_kept_after_complete_line(self) -> None:
        buffer = FrameBuffer()
        buffer.append(HEARTBEAT + b"\n" + b'{"partial')
        assert list(buffer.extract_lines()) == [HEARTBEAT.decode()]
        assert buffer.pending == len(b'{"partial')

    def test_discard_returns_residual(self) -> None:
        buffer = FrameBuffer()
        buffer.append(b'{"partial')
        assert buffer.discard() == b'{"partial'
        assert buffer.pending == 0
        assert buffer.discard() == b""

    def test_long_partial_line_across_many_appends(self) -> None:
        buffer = FrameBuffer()
        for _ in range(100):
            buffer.append(b"x" * 10)
            assert buffer.next_line() is None
        buffer.append(b"\n")
        assert buffer.next_line() == "x" * 1000


class TestBlankLines:
    def test_blank_and_whitespace_lines_ignored(self) -> None:
        assert feed([b"\n\n  \n\t\r\n"]) == []

    def test_next_line_none_when_empty(self) -> None:
        assert FrameBuffer().next_line() is None


class TestInvalidText:
    def test_invalid_utf8_raises_framing_error(self) -> None:
        buffer = FrameBuffer()
        buffer.append(b"\xff\xfe bad\n" + HEARTBEAT + b"\n")

        with pytest.raises(FramingError) as exc_info:
            buffer.next_line()
        assert exc_info.value.segment == b"\xff\xfe bad\n"

        # Remaining buffered data is intact
        assert buffer.next_line() == HEARTBEAT.decode()

    def test_extract_lines_resumes_after_framing_error(self) -> None:
        buffer = FrameBuffer()
        buffer.append(b"\xc3\n" + HEARTBEAT + b"\n")

        with pytest.raises(FramingError):
            list(buffer.extract_lines())
        assert list(buffer.extract_lines()) == [HEARTBEAT.decode()]
