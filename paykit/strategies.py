# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import dataclasses
import sys
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from paykit.affordability import (
    partition_strategies_by_affordability,
    sort_strategies_by_logical_amount_needed_to_afford,
)
from paykit.chains import get_strategy_priority_for_chain_id, is_l1_chain_id
from paykit.eth_transfer_proxy import (
    NativeTokenTransferProxyMode,
    get_eth_transfer_proxy_contract_address,
)
from paykit.exchange_rates import ExchangeRates, convert
from paykit.logical_assets import convert_logical_asset_units, get_default_small_amount
from paykit.protocol.address_context import AddressContext
from paykit.protocol.payment import (
    PayFixedAmount,
    Payment,
    PaymentMode,
    PaymentModeKind,
    PrimaryWithSecondaries,
    ProposedPayment,
)
from paykit.protocol.strategy import AnyStrategy, ProposedStrategy, Strategy
from paykit.protocol.strategy_preferences import StrategyPreferences
from paykit.protocol.token_transfer import ProposedTokenTransfer, TokenTransfer
from paykit.tokens import (
    Token,
    get_all_tokens,
    get_all_tokens_for_logical_asset_ticker,
    get_logical_asset_ticker_for_token,
    is_token_supported,
)

S = TypeVar("S", Strategy, ProposedStrategy)

_HIGHEST_LOGICAL_ASSET_PRIORITY = sys.maxsize
_LOWEST_LOGICAL_ASSET_PRIORITY = -sys.maxsize

TOKEN_TICKER_PRIORITY: Dict[str, int] = {
    "USDC": 1000,
    "USDT": 900,
    "DAI": 800,
    "LUSD": 700,
    "USDP": 600,
    "PYUSD": 500,
    "GUSD": 400,
    # ETH is more natural to pay with than WETH
    "ETH": 150,
    "WETH": 100,
    "STETH": 75,
    "MATIC": 50,
}


def is_token_permitted_by_strategy_preferences(
    preferences: StrategyPreferences, token: Token
) -> bool:
    return preferences.permits_token(token.ticker, token.chain_id)


def is_token_permitted_by_native_token_transfer_proxy(
    mode: NativeTokenTransferProxyMode, token: Token
) -> bool:
    """A native currency is excluded if the proxy is required but has no deployment on its chain."""
    if not token.is_native_currency or mode != NativeTokenTransferProxyMode.REQUIRE:
        return True
    return get_eth_transfer_proxy_contract_address(token.chain_id) is not None


def get_all_tokens_accepted_by_receiver(
    preferences: StrategyPreferences,
    logical_asset_tickers: PrimaryWithSecondaries,
    payment_mode: PaymentMode,
    native_token_transfer_proxy: NativeTokenTransferProxyMode = NativeTokenTransferProxyMode.PREFER,
) -> List[Token]:
    if (
        payment_mode.kind == PaymentModeKind.PAY_WHAT_YOU_WANT
        and payment_mode.can_pay_any_asset  # type: ignore[union-attr]
    ):
        candidates = get_all_tokens()
    else:
        candidates = [
            token
            for ticker in logical_asset_tickers.all
            for token in get_all_tokens_for_logical_asset_ticker(ticker)
        ]
    return [
        token
        for token in candidates
        if is_token_supported(token)
        and is_token_permitted_by_strategy_preferences(preferences, token)
        and is_token_permitted_by_native_token_transfer_proxy(
            native_token_transfer_proxy, token
        )
    ]


def get_amount_denominated_in_token(
    exchange_rates: Optional[ExchangeRates],
    logical_asset_tickers: PrimaryWithSecondaries,
    logical_asset_amount: int,
    token: Token,
) -> Optional[int]:
    """
    Converts an amount of the primary logical asset into the given token, in the token's
    decimals. Returns None if a conversion is needed and no rate is available.
    """
    # Still denominated in the primary logical asset at this point, only rescaled.
    amount_with_token_decimals = convert_logical_asset_units(
        logical_asset_amount, token.decimals
    )
    primary = logical_asset_tickers.primary
    token_logical_asset_ticker = get_logical_asset_ticker_for_token(token)
    if token_logical_asset_ticker == primary:
        return amount_with_token_decimals
    # Tokens outside every logical asset are priced by their own ticker.
    to_ticker = token_logical_asset_ticker or token.ticker
    return convert(exchange_rates, primary, to_ticker, amount_with_token_decimals)


def _get_logical_asset_priority(strategy: AnyStrategy) -> int:
    logical_asset_ticker = get_logical_asset_ticker_for_token(strategy.token)
    if logical_asset_ticker is None:
        # An exotic asset, eg. UNI settling a USD payment.
        return _LOWEST_LOGICAL_ASSET_PRIORITY
    tickers = strategy.logical_asset_tickers
    if logical_asset_ticker == tickers.primary:
        return _HIGHEST_LOGICAL_ASSET_PRIORITY
    if logical_asset_ticker in tickers.secondaries:
        return (
            _HIGHEST_LOGICAL_ASSET_PRIORITY
            - tickers.secondaries.index(logical_asset_ticker)
            - 1
        )
    return _LOWEST_LOGICAL_ASSET_PRIORITY + 1


def _priority_sort_key(strategy: AnyStrategy) -> Tuple[bool, float, float, float, bool]:
    token = strategy.token
    return (
        is_l1_chain_id(token.chain_id),
        -_get_logical_asset_priority(strategy),
        -get_strategy_priority_for_chain_id(token.chain_id),
        -TOKEN_TICKER_PRIORITY.get(token.ticker, float("-inf")),
        # bridged variants first: they can't be seized by the issuer on the L2
        not token.is_bridged,
    )


def sort_strategies_by_priority(strategies: Sequence[S]) -> List[S]:
    """
    Orders strategies by static preference: L1 last, then logical asset (primary first,
    then secondaries in order), then chain, then token ticker, then bridged variants first.
    The sort is stable, so fully tied strategies keep their input order.
    """
    return sorted(strategies, key=_priority_sort_key)


def get_illustrative_logical_asset_amount(
    proposed_payment: ProposedPayment,
) -> Optional[int]:
    """
    The amount proposed strategies are computed for. For pay-what-you-want payments
    this is the first suggested amount, or a small default for the primary logical asset.
    """
    payment_mode = proposed_payment.payment_mode
    if payment_mode.kind == PaymentModeKind.FIXED_AMOUNT:
        return payment_mode.logical_asset_amount  # type: ignore[union-attr]
    suggested = payment_mode.suggested_logical_asset_amounts  # type: ignore[union-attr]
    if suggested:
        return suggested[0]
    return get_default_small_amount(proposed_payment.logical_asset_tickers.primary)


def get_proposed_strategies_for_proposed_payment(
    exchange_rates: Optional[ExchangeRates],
    receiver_strategy_preferences: StrategyPreferences,
    proposed_payment: ProposedPayment,
    native_token_transfer_proxy: NativeTokenTransferProxyMode = NativeTokenTransferProxyMode.PREFER,
) -> List[ProposedStrategy]:
    """
    Generates the illustrative strategies shown before a wallet is connected, ranked by
    static preference only.

    Args:
        exchange_rates: current rates, or None if none are available yet.
        receiver_strategy_preferences: the receiver's token and chain constraints.
        proposed_payment: the payment. Pay-what-you-want payments without an amount are
            illustrated with get_illustrative_logical_asset_amount.
        native_token_transfer_proxy: the checkout's proxy setting.
    """
    amount = get_illustrative_logical_asset_amount(proposed_payment)
    if amount is None:
        return []
    # token acceptance follows the receiver's mode, not the illustrative fixed amount
    tokens = get_all_tokens_accepted_by_receiver(
        receiver_strategy_preferences,
        proposed_payment.logical_asset_tickers,
        proposed_payment.payment_mode,
        native_token_transfer_proxy,
    )
    if proposed_payment.fixed_amount is None:
        proposed_payment = dataclasses.replace(
            proposed_payment, payment_mode=PayFixedAmount(logical_asset_amount=amount)
        )
    proposed_strategies: List[ProposedStrategy] = []
    for token in tokens:
        token_amount = get_amount_denominated_in_token(
            exchange_rates, proposed_payment.logical_asset_tickers, amount, token
        )
        if token_amount is None:
            continue
        proposed_strategies.append(
            ProposedStrategy(
                proposed_payment=proposed_payment,
                proposed_token_transfer=ProposedTokenTransfer(
                    token=token,
                    amount=token_amount,
                    receiver=proposed_payment.receiver,
                    sender_address=proposed_payment.sender_address,
                ),
            )
        )
    return sort_strategies_by_priority(proposed_strategies)


def get_strategies_for_payment(
    exchange_rates: Optional[ExchangeRates],
    receiver_strategy_preferences: StrategyPreferences,
    payment: Payment,
    sender_address_context: AddressContext,
    native_token_transfer_proxy: NativeTokenTransferProxyMode = NativeTokenTransferProxyMode.PREFER,
) -> Optional[List[Strategy]]:
    """
    Generates the strategies the sender can settle payment with, best first.

    Affordable strategies come first, in static preference order. Unaffordable ones follow,
    ordered by how much the sender is short in USD terms. Candidates that can't be priced
    are dropped.

    Returns:
        The ranked strategies, or None if the payment has no fixed amount yet.
    """
    amount = payment.fixed_amount
    if amount is None:
        return None
    tokens = get_all_tokens_accepted_by_receiver(
        receiver_strategy_preferences,
        payment.logical_asset_tickers,
        payment.payment_mode,
        native_token_transfer_proxy,
    )
    strategies: List[Strategy] = []
    for token in tokens:
        token_amount = get_amount_denominated_in_token(
            exchange_rates, payment.logical_asset_tickers, amount, token
        )
        if token_amount is None:
            continue
        strategies.append(
            Strategy(
                payment=payment,
                token_transfer=TokenTransfer(
                    token=token,
                    amount=token_amount,
                    receiver_address=payment.receiver_address,
                    sender_address=payment.sender_address,
                ),
            )
        )
    affordable, unaffordable = partition_strategies_by_affordability(
        sender_address_context, sort_strategies_by_priority(strategies)
    )
    sort_strategies_by_logical_amount_needed_to_afford(
        exchange_rates, sender_address_context, unaffordable
    )
    return affordable + unaffordable
