# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from decimal import ROUND_HALF_UP, Decimal, localcontext

# Large enough for any uint256 amount at any token precision.
DECIMAL_PRECISION = 100


def div_round_half_up(numerator: int, denominator: int) -> int:
    """
    Integer division rounding half away from zero. For the non-negative amounts that
    dominate here this is round-half-up: 25 / 10 -> 3, 24 / 10 -> 2.

    Args:
        numerator: the dividend.
        denominator: a positive divisor.
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    magnitude = (abs(numerator) * 2 + denominator) // (2 * denominator)
    return magnitude if numerator >= 0 else -magnitude


def rescale(amount: int, from_decimals: int, to_decimals: int) -> int:
    """Moves a full-precision integer amount between decimal precisions, rounding half-up when narrowing."""
    if to_decimals >= from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return div_round_half_up(amount, 10 ** (from_decimals - to_decimals))


def parse_units(value: str, decimals: int) -> int:
    """
    Parses a decimal string like "1.25" into an integer amount with the given number of
    decimals. Digits beyond the precision are rounded half-up.
    """
    parsed = Decimal(value.strip())
    if not parsed.is_finite():
        raise ValueError(f"Cannot parse non-finite amount {value}")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(parsed.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_units(amount: int, decimals: int) -> Decimal:
    sign, digits, exponent = Decimal(amount).as_tuple()
    return Decimal((sign, digits, exponent - decimals))
