import pytest
from telegram.error import BadRequest, Forbidden, NetworkError, RetryAfter, TimedOut

from house_tg.errors import (
    DeliveryError,
    FetchError,
    HouseFinderError,
    StoreError,
    TransportError,
)


@pytest.mark.parametrize("cls", [FetchError, StoreError, TransportError, DeliveryError])
def test_all_errors_share_a_base(cls):
    assert issubclass(cls, HouseFinderError)


@pytest.mark.parametrize(
    "exc, kind",
    [
        (NetworkError("Connection reset"), "NetworkError"),
        (TimedOut(), "TimedOut"),
        (RetryAfter(5), "RetryAfter"),
        (Forbidden("bot was kicked"), "Forbidden"),
        (BadRequest("chat not found"), "BadRequest"),
    ],
)
def test_transport_error_wraps_telegram_errors(exc, kind):
    error = TransportError.from_exception(exc)
    assert error.kind == kind
    assert str(error).startswith(f"Telegram API Error: [{kind}]")
    assert error.__cause__ is exc


def test_transport_error_ignores_other_exceptions():
    assert TransportError.from_exception(ValueError("boom")) is None


def test_bad_request_is_not_labelled_as_network_error():
    # BadRequest is a NetworkError subclass in python-telegram-bot
    error = TransportError.from_exception(BadRequest("chat not found"))
    assert error.kind == "BadRequest"
    assert "[NetworkError]" not in str(error)
