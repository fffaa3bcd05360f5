# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from typing import List, NamedTuple, Optional, Sequence, Tuple

from paykit.exchange_rates import ExchangeRates, convert
from paykit.logical_assets import convert_from_token_decimals_to_logical_asset_decimals
from paykit.protocol.address_context import AddressContext
from paykit.protocol.strategy import Strategy, get_strategy_key
from paykit.tokens import TokenKey, get_logical_asset_ticker_for_token

COMMON_LOGICAL_ASSET_TICKER = "USD"
"""Shortfalls in different tokens are compared after conversion into this logical asset."""


def can_afford(address_context: AddressContext, token_key: TokenKey, amount: int) -> bool:
    """
    True iff the address holds at least amount of the token. A missing balance entry
    means the address holds none of it.
    """
    balance = address_context.get_balance(token_key)
    if balance is None:
        return False
    return balance >= amount


def amount_needed_to_afford(
    address_context: AddressContext, token_key: TokenKey, amount: int
) -> int:
    """
    How much more of the token the address needs to afford amount, in the token's decimals.
    Zero or negative means affordable, with that much headroom.
    """
    balance = address_context.get_balance(token_key)
    if balance is None:
        return amount
    return amount - balance


class AffordabilityPartition(NamedTuple):
    affordable: List[Strategy]
    unaffordable: List[Strategy]


def partition_strategies_by_affordability(
    address_context: AddressContext, strategies: Sequence[Strategy]
) -> AffordabilityPartition:
    """Splits strategies by affordability, keeping their relative order within each group."""
    partition = AffordabilityPartition(affordable=[], unaffordable=[])
    for strategy in strategies:
        if can_afford(address_context, get_strategy_key(strategy), strategy.amount):
            partition.affordable.append(strategy)
        else:
            partition.unaffordable.append(strategy)
    return partition


def logical_amount_needed_to_afford(
    exchange_rates: Optional[ExchangeRates],
    address_context: AddressContext,
    strategy: Strategy,
) -> Optional[int]:
    """
    The strategy's shortfall expressed in USD at logical asset precision, or None if the
    token has no logical asset or there is no rate to convert it.
    """
    token = strategy.token
    logical_asset_ticker = get_logical_asset_ticker_for_token(token)
    if logical_asset_ticker is None:
        return None
    needed = amount_needed_to_afford(
        address_context, get_strategy_key(strategy), strategy.amount
    )
    needed_in_logical_asset_decimals = (
        convert_from_token_decimals_to_logical_asset_decimals(needed, token.decimals)
    )
    return convert(
        exchange_rates,
        logical_asset_ticker,
        COMMON_LOGICAL_ASSET_TICKER,
        needed_in_logical_asset_decimals,
    )


def sort_strategies_by_logical_amount_needed_to_afford(
    exchange_rates: Optional[ExchangeRates],
    address_context: AddressContext,
    strategies: List[Strategy],
) -> None:
    """
    Sorts strategies in place, smallest shortfall first. Strategies whose shortfall can't
    be valued in USD go last, in their original order.
    """

    def _sort_key(strategy: Strategy) -> Tuple[bool, int]:
        needed = logical_amount_needed_to_afford(
            exchange_rates, address_context, strategy
        )
        return (needed is None, needed if needed is not None else 0)

    strategies.sort(key=_sort_key)
