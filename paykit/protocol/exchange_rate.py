# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass

from paykit.JSONable import JSONable
from paykit.type_utils import normalize_ticker


@dataclass(frozen=True)
class ExchangeRate(JSONable):
    """One rate observation from one source."""

    denominator_ticker: str

    numerator_ticker: str

    rate: float
    """1 denominator == rate numerator."""

    source: str
    """Name of the price source. The latest observation per source supersedes earlier ones."""

    timestamp_millis: int
    """When the fetch that produced this observation started."""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "denominator_ticker", normalize_ticker(self.denominator_ticker)
        )
        object.__setattr__(
            self, "numerator_ticker", normalize_ticker(self.numerator_ticker)
        )

    def is_stale(self, now_millis: int, max_age_millis: int) -> bool:
        return now_millis >= self.timestamp_millis + max_age_millis
