import json
import pickle

from paykit.errors import ErrorCode
from paykit.exceptions import (
    InvalidExchangeRateException,
    InvalidPaymentException,
    PaykitException,
    RateSourceException,
    StrategySelectionLockedException,
    UnknownTokenException,
)


def test_base_paykit_exception() -> None:
    exc = PaykitException("test reason", ErrorCode.INTERNAL_ERROR)
    json_output = json.loads(exc.to_json())

    assert json_output["status"] == "ERROR"
    assert json_output["reason"] == "test reason"
    assert json_output["code"] == "INTERNAL_ERROR"
    assert exc.to_http_status_code() == 500


def test_invalid_payment_exception() -> None:
    exc = InvalidPaymentException("Receiver is not resolved")
    json_output = json.loads(exc.to_json())

    assert json_output["reason"] == "Receiver is not resolved"
    assert json_output["code"] == "INVALID_PAYMENT"
    assert exc.to_http_status_code() == 400


def test_strategy_selection_locked_exception() -> None:
    exc = StrategySelectionLockedException()
    json_output = json.loads(exc.to_json())

    assert json_output["code"] == "STRATEGY_SELECTION_LOCKED"
    assert exc.to_http_status_code() == 409


def test_unknown_token_exception_additional_params() -> None:
    exc = UnknownTokenException("10-0xdeadbeef")
    json_output = json.loads(exc.to_json())

    assert json_output["reason"] == "Unknown token 10-0xdeadbeef."
    assert json_output["code"] == "UNKNOWN_TOKEN"
    assert json_output["tokenKey"] == "10-0xdeadbeef"


def test_from_json() -> None:
    original = RateSourceException("Kraken is down")
    parsed = PaykitException.from_json(original.to_json())

    assert parsed.reason == "Kraken is down"
    assert parsed.error_code == ErrorCode.RATE_SOURCE_ERROR


def test_from_json_invalid() -> None:
    parsed = PaykitException.from_json("not json")

    assert parsed.error_code == ErrorCode.INTERNAL_ERROR
    assert parsed.reason.startswith("Failed to parse error JSON")


def test_exceptions_are_picklable() -> None:
    for exc in [
        PaykitException("reason", ErrorCode.INTERNAL_ERROR),
        InvalidExchangeRateException("bad rate"),
        UnknownTokenException("1-native"),
    ]:
        restored = pickle.loads(pickle.dumps(exc))
        assert type(restored) is type(exc)
        assert restored.reason == exc.reason
        assert restored.error_code == exc.error_code
