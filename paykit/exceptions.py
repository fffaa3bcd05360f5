# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import json
from paykit.errors import ErrorCode


class PaykitException(Exception):
    def __init__(self, reason: str, error_code: ErrorCode) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = error_code.value.code
        self.http_status_code = error_code.value.http_status_code
        self.error_code = error_code

    def get_additional_params(self) -> dict:
        """Override this method in child classes to add additional parameters to the JSON output"""
        return {}

    def to_json(self) -> str:
        result = {
            "status": "ERROR",
            "reason": self.reason,
            "code": self.code,
            **self.get_additional_params(),
        }
        return json.dumps(result)

    @classmethod
    def from_json(cls: type["PaykitException"], json_str: str) -> "PaykitException":
        try:
            data = json.loads(json_str)
            error_code = ErrorCode[data["code"]]
            return cls(data["reason"], error_code)
        except (json.JSONDecodeError, KeyError):
            return cls(
                f"Failed to parse error JSON: {json_str}", ErrorCode.INTERNAL_ERROR
            )

    def to_http_status_code(self) -> int:
        return self.http_status_code

    def __reduce__(self):
        return (self.__class__, (self.reason, self.error_code))


class InvalidPaymentException(PaykitException):
    def __init__(
        self,
        reason: str = "Invalid payment",
        error_code: ErrorCode = ErrorCode.INVALID_PAYMENT,
    ):
        super().__init__(reason, error_code)


class InvalidExchangeRateException(PaykitException):
    def __init__(
        self,
        reason: str = "Invalid exchange rate",
        error_code: ErrorCode = ErrorCode.INVALID_EXCHANGE_RATE,
    ):
        super().__init__(reason, error_code)


class RateSourceException(PaykitException):
    def __init__(
        self,
        reason: str = "Rate source error",
        error_code: ErrorCode = ErrorCode.RATE_SOURCE_ERROR,
    ):
        super().__init__(reason, error_code)


class StrategySelectionLockedException(PaykitException):
    def __init__(
        self,
        reason: str = "Strategy selection is locked while signing",
        error_code: ErrorCode = ErrorCode.STRATEGY_SELECTION_LOCKED,
    ):
        super().__init__(reason, error_code)


class StrategyNotFoundException(PaykitException):
    def __init__(
        self,
        reason: str = "Strategy not found",
        error_code: ErrorCode = ErrorCode.STRATEGY_NOT_FOUND,
    ):
        super().__init__(reason, error_code)


class UnknownTokenException(PaykitException):
    def __init__(
        self,
        token_key: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_TOKEN,
    ):
        super().__init__(f"Unknown token {token_key}.", error_code)
        self.token_key = token_key

    def get_additional_params(self) -> dict:
        return {"tokenKey": self.token_key}

    def __reduce__(self):
        return (self.__class__, (self.token_key, self.error_code))
