# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext

from paykit.JSONable import JSONable
from paykit.amounts import DECIMAL_PRECISION, format_units
from paykit.logical_assets import get_decimals_to_render_for_token_ticker
from paykit.tokens import TokenKey, get_token_by_token_key_or_throw


@dataclass(frozen=True)
class TokenBalance(JSONable):
    address: str

    token_key: TokenKey

    balance: int
    """Full precision, in the token's own decimals."""

    balance_as_of_millis: int


def is_dust(token_balance: TokenBalance) -> bool:
    """
    True if the balance rounds to zero at the token's display precision, eg. 4 units of
    USDC (0.000004) display as "0.00".
    """
    if token_balance.balance == 0:
        return True
    token = get_token_by_token_key_or_throw(token_balance.token_key)
    decimals_to_render = get_decimals_to_render_for_token_ticker(token.ticker)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        rendered = format_units(token_balance.balance, token.decimals).quantize(
            Decimal(1).scaleb(-decimals_to_render), rounding=ROUND_HALF_UP
        )
    return rendered == 0
