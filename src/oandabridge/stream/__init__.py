"""Pricing stream framing, record models and session."""

from oandabridge.stream.framing import FrameBuffer
from oandabridge.stream.models import (
    Heartbeat,
    LevelQuote,
    PriceUpdate,
    StreamRecord,
    parse,
    serialize,
)
from oandabridge.stream.session import SessionState, SessionStats, StreamSession

__all__ = [
    "FrameBuffer",
    "Heartbeat",
    "LevelQuote",
    "PriceUpdate",
    "SessionState",
    "SessionStats",
    "StreamRecord",
    "StreamSession",
    "parse",
    "serialize",
]
