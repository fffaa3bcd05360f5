# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from enum import Enum


@dataclass
class ErrorDetails:
    code: str
    http_status_code: int


class ErrorCode(Enum):
    INTERNAL_ERROR = ErrorDetails(code="INTERNAL_ERROR", http_status_code=500)
    """An unexpected error occurred"""

    INVALID_PAYMENT = ErrorDetails(code="INVALID_PAYMENT", http_status_code=400)
    """The payment is malformed or its receiver is unresolved"""

    INVALID_EXCHANGE_RATE = ErrorDetails(
        code="INVALID_EXCHANGE_RATE", http_status_code=400
    )
    """An exchange rate is non-finite or non-positive"""

    RATE_SOURCE_ERROR = ErrorDetails(code="RATE_SOURCE_ERROR", http_status_code=502)
    """An external price source returned an unusable response"""

    STRATEGY_SELECTION_LOCKED = ErrorDetails(
        code="STRATEGY_SELECTION_LOCKED", http_status_code=409
    )
    """The selected strategy cannot change while its transaction is signing or signed"""

    STRATEGY_NOT_FOUND = ErrorDetails(code="STRATEGY_NOT_FOUND", http_status_code=404)
    """The strategy is not among the current candidates"""

    UNKNOWN_TOKEN = ErrorDetails(code="UNKNOWN_TOKEN", http_status_code=404)
    """The token key or ticker is not in the token registry"""
