from typing import Dict, Optional
from unittest.mock import patch

from paykit.affordability import logical_amount_needed_to_afford
from paykit.eth_transfer_proxy import NativeTokenTransferProxyMode
from paykit.exchange_rates import ExchangeRates, make_exchange_rates
from paykit.logical_assets import get_logical_asset_ticker_for_token_ticker
from paykit.protocol.address_context import AddressContext
from paykit.protocol.payment import (
    AddressOrEnsName,
    PayFixedAmount,
    Payment,
    PaymentModeKind,
    PayWhatYouWant,
    PrimaryWithSecondaries,
    ProposedPayment,
    accept_proposed_payment,
)
from paykit.protocol.strategy_preferences import (
    AllowlistOrDenylist,
    StrategyPreferences,
)
from paykit.protocol.token_balance import TokenBalance
from paykit.strategies import (
    get_amount_denominated_in_token,
    get_proposed_strategies_for_proposed_payment,
    get_strategies_for_payment,
    sort_strategies_by_priority,
)
from paykit.tokens import Token, get_all_tokens, get_token_key

SENDER = "0x00000000000000000000000000000000000000aa"
RECEIVER = "0x00000000000000000000000000000000000000bb"
ONE = 10**18


def _token(ticker: str, chain_id: int, bridged: bool = False) -> Token:
    return next(
        t
        for t in get_all_tokens()
        if t.ticker == ticker and t.chain_id == chain_id and t.is_bridged == bridged
    )


def _eth_usd_rates() -> ExchangeRates:
    return make_exchange_rates({"ETH": {"USD": 3000}})


def _proposed_payment(
    amount: Optional[int] = 10 * ONE, secondaries=("ETH",), payment_mode=None
) -> ProposedPayment:
    return ProposedPayment(
        receiver=AddressOrEnsName(address=RECEIVER),
        logical_asset_tickers=PrimaryWithSecondaries("USD", secondaries),
        payment_mode=payment_mode or PayFixedAmount(logical_asset_amount=amount),
    )


def _address_context(balances: Dict[Token, int]) -> AddressContext:
    return AddressContext(
        address=SENDER,
        token_balances={
            get_token_key(token): TokenBalance(
                address=SENDER,
                token_key=get_token_key(token),
                balance=balance,
                balance_as_of_millis=0,
            )
            for token, balance in balances.items()
        },
    )


def test_amount_denominated_in_token() -> None:
    tickers = PrimaryWithSecondaries("USD", ("ETH",))
    assert get_amount_denominated_in_token(None, tickers, 10 * ONE, _token("USDC", 10)) == 10_000_000
    assert get_amount_denominated_in_token(None, tickers, 10 * ONE, _token("DAI", 10)) == 10 * ONE
    assert get_amount_denominated_in_token(None, tickers, 10 * ONE, _token("ETH", 10)) is None
    eth_amount = get_amount_denominated_in_token(
        _eth_usd_rates(), tickers, 10 * ONE, _token("ETH", 10)
    )
    assert eth_amount is not None
    assert abs(eth_amount - 10 * ONE // 3000) <= 1_000


def test_proposed_strategies_are_ranked() -> None:
    strategies = get_proposed_strategies_for_proposed_payment(
        _eth_usd_rates(), StrategyPreferences(), _proposed_payment()
    )
    tokens = [s.token for s in strategies]

    assert tokens[0] == _token("USDC", 42161, bridged=True)
    assert tokens[1] == _token("USDC", 42161)
    assert strategies[0].amount == 10_000_000

    # L1 strategies come last
    first_l1 = next(i for i, t in enumerate(tokens) if t.chain_id == 1)
    assert all(t.chain_id == 1 for t in tokens[first_l1:])
    assert any(t.ticker == "ETH" and t.chain_id == 1 for t in tokens[first_l1:])

    # the primary logical asset outranks the secondary on L2s
    l2_assets = [get_logical_asset_ticker_for_token_ticker(t.ticker) for t in tokens[:first_l1]]
    assert l2_assets == sorted(l2_assets, key=lambda ticker: ticker != "USD")
    assert "ETH" in l2_assets

    # every supported USD and ETH token appears once
    assert len(set(get_token_key(t) for t in tokens)) == len(tokens)
    assert all(t.ticker not in ("EURC", "CADC", "MATIC") for t in tokens)


def test_proposed_strategies_without_rates_omit_converted_tokens() -> None:
    strategies = get_proposed_strategies_for_proposed_payment(
        None, StrategyPreferences(), _proposed_payment()
    )
    assert strategies
    assert all(
        get_logical_asset_ticker_for_token_ticker(s.token.ticker) == "USD"
        for s in strategies
    )


def test_receiver_preferences() -> None:
    usdc_only = StrategyPreferences(
        accepted_token_tickers=AllowlistOrDenylist(allowlist=frozenset(["USDC"]))
    )
    strategies = get_proposed_strategies_for_proposed_payment(
        _eth_usd_rates(), usdc_only, _proposed_payment()
    )
    assert strategies
    assert all(s.token.ticker == "USDC" for s in strategies)

    no_arbitrum = StrategyPreferences(
        accepted_chain_ids=AllowlistOrDenylist(denylist=frozenset([42161]))
    )
    strategies = get_proposed_strategies_for_proposed_payment(
        _eth_usd_rates(), no_arbitrum, _proposed_payment()
    )
    assert strategies
    assert all(s.token.chain_id != 42161 for s in strategies)
    assert strategies[0].token.chain_id == 8453


def test_can_pay_any_asset() -> None:
    rates = make_exchange_rates({"MATIC": {"USD": 0.5}})
    proposed_payment = _proposed_payment(
        secondaries=(),
        payment_mode=PayWhatYouWant(
            can_pay_any_asset=True, suggested_logical_asset_amounts=(5 * ONE,)
        ),
    )
    strategies = get_proposed_strategies_for_proposed_payment(
        rates, StrategyPreferences(), proposed_payment
    )
    non_l1 = [s for s in strategies if s.token.chain_id != 1]

    assert non_l1[-1].token == _token("MATIC", 137)
    assert non_l1[-1].amount == 10 * ONE
    # ETH and EURC need rates that aren't available
    assert all(s.token.ticker not in ("ETH", "EURC") for s in strategies)


def test_native_token_transfer_proxy_required() -> None:
    strategies = get_proposed_strategies_for_proposed_payment(
        _eth_usd_rates(),
        StrategyPreferences(),
        _proposed_payment(),
        NativeTokenTransferProxyMode.REQUIRE,
    )
    assert all(not s.token.is_native_currency for s in strategies)
    assert any(s.token.ticker == "WETH" for s in strategies)

    with patch.dict(
        "paykit.eth_transfer_proxy.ETH_TRANSFER_PROXY_CONTRACT_ADDRESSES",
        {10: "0x0000000000000000000000000000000000000001"},
    ):
        strategies = get_proposed_strategies_for_proposed_payment(
            _eth_usd_rates(),
            StrategyPreferences(),
            _proposed_payment(),
            NativeTokenTransferProxyMode.REQUIRE,
        )
    native = [s.token for s in strategies if s.token.is_native_currency]
    assert native == [_token("ETH", 10)]


def test_pay_what_you_want_proposals_use_default_amount() -> None:
    proposed_payment = _proposed_payment(secondaries=(), payment_mode=PayWhatYouWant())
    strategies = get_proposed_strategies_for_proposed_payment(
        None, StrategyPreferences(), proposed_payment
    )

    assert strategies[0].token == _token("USDC", 42161, bridged=True)
    assert strategies[0].amount == 5_000_000
    assert strategies[0].proposed_payment.payment_mode == PayFixedAmount(5 * ONE)

    payment = accept_proposed_payment(SENDER, proposed_payment)
    assert payment.payment_mode.kind == PaymentModeKind.PAY_WHAT_YOU_WANT
    assert (
        get_strategies_for_payment(None, StrategyPreferences(), payment, _address_context({}))
        is None
    )


def test_strategies_for_payment_rank_affordable_first() -> None:
    usdc = _token("USDC", 10)
    eth_l1 = _token("ETH", 1)
    payment = Payment(
        receiver_address=RECEIVER,
        sender_address=SENDER,
        logical_asset_tickers=PrimaryWithSecondaries("USD", ("ETH",)),
        payment_mode=PayFixedAmount(logical_asset_amount=10 * ONE),
    )
    context = _address_context({eth_l1: 3 * 10**15, usdc: 12_000_000})

    strategies = get_strategies_for_payment(
        _eth_usd_rates(), StrategyPreferences(), payment, context
    )

    assert strategies is not None
    assert strategies[0].token == usdc
    assert strategies[0].amount == 10_000_000
    assert strategies[0].token_transfer.sender_address == SENDER
    assert strategies[0].token_transfer.receiver_address == RECEIVER
    # 0.003 ETH held against ~0.00333 needed: about 1 USD short, the smallest shortfall
    assert strategies[1].token == eth_l1
    shortfall = logical_amount_needed_to_afford(_eth_usd_rates(), context, strategies[1])
    assert shortfall is not None
    assert abs(shortfall - ONE) < 10**15
    assert len(strategies) == len(set(get_token_key(s.token) for s in strategies))

    again = get_strategies_for_payment(
        _eth_usd_rates(), StrategyPreferences(), payment, context
    )
    assert again == strategies


def test_sort_by_priority_is_stable_for_ties() -> None:
    strategies = get_proposed_strategies_for_proposed_payment(
        None, StrategyPreferences(), _proposed_payment()
    )
    assert sort_strategies_by_priority(strategies) == strategies
    assert sort_strategies_by_priority(list(reversed(strategies))) == strategies
