"""Base publish sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class PublishSink(ABC):
    """
    Abstract fan-out target for parsed stream records.

    ``publish`` must return without waiting on subscribers. Delivery is
    best-effort: slow or absent subscribers may miss records.
    """

    def __init__(self):
        # Messages the transport accepted; not a delivery count
        self.sent = 0

    @abstractmethod
    def bind(self) -> None:
        """Acquire the transport. Failure here is fatal."""
        pass

    @abstractmethod
    def publish(self, text: str) -> None:
        """Deliver one record's text to current subscribers."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the transport."""
        pass

    def __enter__(self) -> PublishSink:
        self.bind()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
