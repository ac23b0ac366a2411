"""Pricing stream record models.

The broker streams two record shapes on the same connection without a
reliable discriminator: price updates and heartbeats. Records are decoded
structurally by trying each candidate model in a fixed order and accepting
the first one that validates.

Prices stay exact decimal strings as sent by the broker. Timestamps are
converted to integer nanoseconds since the Unix epoch.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from oandabridge.errors import ParseError, TimestampError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NANOS_PER_SECOND = 1_000_000_000
MIN_NANOS = -(2**63)
MAX_NANOS = 2**63 - 1
MAX_LIQUIDITY = 2**64 - 1

_TIMESTAMP_RE = re.compile(
    r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})[Tt ](?P<clock>[0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"(?:\.(?P<fraction>[0-9]+))?"
    r"(?P<offset>[Zz]|[+-][0-9]{2}:[0-9]{2})"
)


# ============================================
# Timestamp Conversion
# ============================================


def parse_timestamp(value: str) -> int:
    """
    Convert a broker timestamp to nanoseconds since the Unix epoch.

    Accepts RFC 3339 timestamps with up to nine fractional digits and either
    ``Z`` or a numeric UTC offset, e.g. ``2024-06-11T14:30:00.123456789Z``.

    Raises:
        TimestampError: If the text is not a valid timestamp or the result
            does not fit in a signed 64-bit integer.
    """
    match = _TIMESTAMP_RE.fullmatch(value)
    if match is None:
        raise TimestampError(f"invalid timestamp: {value!r}")

    fraction = match.group("fraction") or ""
    if len(fraction) > 9:
        raise TimestampError(f"precision finer than nanoseconds: {value!r}")

    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"

    try:
        moment = datetime.fromisoformat(f"{match.group('date')}T{match.group('clock')}{offset}")
    except ValueError as e:
        raise TimestampError(f"invalid timestamp {value!r}: {e}") from e

    seconds = (moment - EPOCH) // timedelta(seconds=1)
    nanos = seconds * NANOS_PER_SECOND + int(fraction.ljust(9, "0"))

    if not MIN_NANOS <= nanos <= MAX_NANOS:
        raise TimestampError(f"timestamp out of range: {value!r}")
    return nanos


def format_timestamp(nanos: int) -> str:
    """Render epoch nanoseconds as an RFC 3339 UTC timestamp with nine fractional digits."""
    seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
    moment = EPOCH + timedelta(seconds=seconds)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{fraction:09d}Z"


# ============================================
# Record Models
# ============================================


class _TimestampedRecord(BaseModel):
    """Shared config and ``time`` handling for stream records."""

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    time: int = Field(ge=MIN_NANOS, le=MAX_NANOS)

    @field_validator("time", mode="before")
    @classmethod
    def decode_time(cls, value: Any, info: ValidationInfo) -> Any:
        """Convert the wire timestamp string to epoch nanoseconds."""
        if isinstance(value, str):
            return parse_timestamp(value)
        # Already-decoded values are accepted when building records in code
        if info.mode == "python" and isinstance(value, int) and not isinstance(value, bool):
            return value
        raise TimestampError(f"timestamp must be a string, got {type(value).__name__}")

    @field_serializer("time")
    def encode_time(self, value: int) -> str:
        return format_timestamp(value)


class LevelQuote(BaseModel):
    """One price level of the book: available liquidity at a price."""

    model_config = ConfigDict(frozen=True, strict=True)

    liquidity: int = Field(ge=0, le=MAX_LIQUIDITY)
    price: str


class PriceUpdate(_TimestampedRecord):
    """Price record for a single instrument."""

    model_config = ConfigDict(alias_generator=to_camel)

    instrument: str
    status: str
    bids: list[LevelQuote]
    asks: list[LevelQuote]
    closeout_bid: str
    closeout_ask: str


class Heartbeat(_TimestampedRecord):
    """Liveness record sent by the broker when no prices are moving."""

    message_type: str = Field(alias="type")


StreamRecord = Union[PriceUpdate, Heartbeat]

# Order matters: a price record also carries ``type`` and ``time``
DECODERS: tuple[type[_TimestampedRecord], ...] = (PriceUpdate, Heartbeat)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        loc = ".".join(str(item) for item in error["loc"])
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return ", ".join(parts)


def parse(text: str) -> StreamRecord:
    """
    Decode one stream line into a record.

    Each decoder in ``DECODERS`` is tried in order and the first structural
    match is returned.

    Raises:
        ParseError: If the text matches no record shape, or its timestamp
            cannot be converted.
    """
    diagnostics = []
    for decoder in DECODERS:
        try:
            return decoder.model_validate_json(text)
        except ValidationError as e:
            diagnostics.append(f"{decoder.__name__}: {_summarize(e)}")

    raise ParseError(text, "; ".join(diagnostics))


def serialize(record: StreamRecord) -> str:
    """Encode a record back to its wire JSON form."""
    return record.model_dump_json(by_alias=True)
