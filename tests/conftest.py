"""Shared fixtures for bridge tests."""

from __future__ import annotations

import pytest

from oandabridge.config_loader import StreamConfig
from oandabridge.errors import PublishError
from oandabridge.publish.base import PublishSink


class RecordingSink(PublishSink):
    """In-memory sink that records published text."""

    def __init__(self, fail_on: set[str] | None = None):
        super().__init__()
        self.messages: list[str] = []
        self.fail_on = fail_on or set()
        self.bound = False
        self.closed = False

    def bind(self) -> None:
        self.bound = True

    def publish(self, text: str) -> None:
        if text in self.fail_on:
            raise PublishError("subscriber transport rejected message")
        self.messages.append(text)
        self.sent += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def config() -> StreamConfig:
    return StreamConfig(
        auth_token="test-token",
        account_id="101-004-1234567-001",
        instruments=("EUR_USD", "USD_JPY"),
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sink_factory():
    return RecordingSink
