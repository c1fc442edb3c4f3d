"""Error types raised by the listing watcher components."""

from typing import Optional

from telegram.error import TelegramError


class HouseFinderError(Exception):
    """Base class for every recoverable error in the watcher."""


class FetchError(HouseFinderError):
    """Raised when the listing feed is unreachable or unparseable."""


class StoreError(HouseFinderError):
    """Raised when a SQLite store cannot be read or written."""


class DeliveryError(HouseFinderError):
    """Raised when a message could not be delivered to one recipient."""

    def __init__(self, recipient: int, message: str) -> None:
        super().__init__(message)
        self.recipient = recipient


class TransportError(HouseFinderError):
    """Raised for failures of the Telegram transport itself (polling, API)."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"Telegram API Error: [{kind}] {message}")
        self.kind = kind

    @classmethod
    def from_exception(cls, exc: BaseException) -> Optional["TransportError"]:
        """Wrap a python-telegram-bot error, or return None for anything else."""
        if not isinstance(exc, TelegramError):
            return None
        # BadRequest subclasses NetworkError, so label by the concrete class
        error = cls(type(exc).__name__, exc.message)
        error.__cause__ = exc
        return error
