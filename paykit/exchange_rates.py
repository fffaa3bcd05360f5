# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import math
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from paykit.amounts import div_round_half_up
from paykit.exceptions import InvalidExchangeRateException
from paykit.logical_assets import LOGICAL_ASSET_DECIMALS
from paykit.type_utils import normalize_ticker

ExchangeRates = Mapping[str, Mapping[str, float]]
"""
denominator ticker -> numerator ticker -> rate, where 1 denominator == rate numerator.
eg. {"ETH": {"USD": 3000.0}} means 1 ETH == 3000 USD. Tables are read-only; build new
ones with make_exchange_rates or merge_exchange_rates.
"""


def make_exchange_rates(rates: Mapping[str, Mapping[str, float]]) -> ExchangeRates:
    """
    Builds a read-only rate table, normalizing tickers to uppercase.

    Args:
        rates: nested mapping of denominator -> numerator -> rate.

    Raises:
        InvalidExchangeRateException: if any rate is non-finite or not positive.
    """
    table: Dict[str, Dict[str, float]] = {}
    for denominator, numerators in rates.items():
        row = table.setdefault(normalize_ticker(denominator), {})
        for numerator, rate in numerators.items():
            rate = float(rate)
            if not math.isfinite(rate) or rate <= 0:
                raise InvalidExchangeRateException(
                    f"Rate {denominator}/{numerator} must be positive and finite, got {rate}."
                )
            row[normalize_ticker(numerator)] = rate
    return MappingProxyType(
        {denominator: MappingProxyType(row) for denominator, row in table.items()}
    )


def merge_exchange_rates(
    left: Optional[ExchangeRates], right: Optional[ExchangeRates]
) -> Optional[ExchangeRates]:
    """Merges two tables. On a collision the value from right wins."""
    if left is None and right is None:
        return None
    merged: Dict[str, Dict[str, float]] = {}
    for table in (left, right):
        if table is None:
            continue
        for denominator, numerators in table.items():
            merged.setdefault(denominator, {}).update(numerators)
    return make_exchange_rates(merged)


def are_exchange_rates_equal(
    a: Optional[ExchangeRates], b: Optional[ExchangeRates]
) -> bool:
    if a is None or b is None:
        return a is b
    if a.keys() != b.keys():
        return False
    return all(dict(a[denominator]) == dict(b[denominator]) for denominator in a)


def exchange_rates_fingerprint(
    rates: Optional[ExchangeRates],
) -> Optional[Tuple[Tuple[str, str, float], ...]]:
    """A hashable value equal for structurally equal tables, used as a memoization key."""
    if rates is None:
        return None
    return tuple(
        sorted(
            (denominator, numerator, rate)
            for denominator, numerators in rates.items()
            for numerator, rate in numerators.items()
        )
    )


def _lookup_rate(
    rates: ExchangeRates, from_ticker: str, to_ticker: str
) -> Optional[float]:
    direct = rates.get(from_ticker, {}).get(to_ticker)
    if direct is not None:
        return direct
    inverse = rates.get(to_ticker, {}).get(from_ticker)
    if inverse is None or inverse == 0:
        return None
    try:
        return 1 / inverse
    except OverflowError:
        return None


def _multiply_by_rate(amount: int, rate: float) -> Optional[int]:
    if not math.isfinite(rate) or rate <= 0:
        return None
    # repr gives the shortest decimal string that round-trips, so the rate becomes
    # the exact ratio rate_int / 10**scale with no binary float error.
    _, digits, exponent = Decimal(repr(rate)).as_tuple()
    rate_int = int("".join(str(d) for d in digits))
    if exponent >= 0:
        return amount * rate_int * 10**exponent
    return div_round_half_up(amount * rate_int, 10**-exponent)


def convert(
    rates: Optional[ExchangeRates],
    from_ticker: str,
    to_ticker: str,
    from_amount: int,
) -> Optional[int]:
    """
    Converts an integer amount from one ticker to another. Rounds half-up.

    Args:
        rates: the rate table, or None if no rates are available yet.
        from_ticker: ticker of from_amount.
        to_ticker: ticker to convert into.
        from_amount: full-precision integer amount. The result has the same precision.

    Returns:
        The converted amount, or None if neither the direct nor the reciprocal rate exists.
    """
    from_ticker = normalize_ticker(from_ticker)
    to_ticker = normalize_ticker(to_ticker)
    if from_ticker == to_ticker:
        return from_amount
    if rates is None:
        return None
    rate = _lookup_rate(rates, from_ticker, to_ticker)
    if rate is None:
        return None
    return _multiply_by_rate(from_amount, rate)


def unit_rate(
    rates: Optional[ExchangeRates], numerator_ticker: str, denominator_ticker: str
) -> Optional[int]:
    """How many numerator units one whole denominator unit is worth, at logical asset precision."""
    return convert(
        rates, denominator_ticker, numerator_ticker, 10**LOGICAL_ASSET_DECIMALS
    )
