from typing import Dict, Optional

import pytest

from paykit.best_strategy import SigningStatus
from paykit.checkout import (
    CheckoutReadiness,
    CheckoutSession,
    derive_payment_with_fixed_amount,
)
from paykit.exchange_rates import ExchangeRates, make_exchange_rates
from paykit.memo import MemoCache
from paykit.observable import ObservableValue
from paykit.protocol.address_context import AddressContext
from paykit.protocol.checkout_settings import CheckoutSettings
from paykit.protocol.payment import (
    AddressOrEnsName,
    PayFixedAmount,
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
from paykit.tokens import Token, get_all_tokens, get_token_key

SENDER = "0x00000000000000000000000000000000000000aa"
RECEIVER = "0x00000000000000000000000000000000000000bb"
ONE = 10**18


class FakeClock:
    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _token(ticker: str, chain_id: int) -> Token:
    return next(
        t
        for t in get_all_tokens()
        if t.ticker == ticker and t.chain_id == chain_id and not t.is_bridged
    )


def _address_context(balances: Optional[Dict[Token, int]] = None) -> AddressContext:
    return AddressContext(
        address=SENDER,
        token_balances={
            get_token_key(token): TokenBalance(
                address=SENDER,
                token_key=get_token_key(token),
                balance=balance,
                balance_as_of_millis=0,
            )
            for token, balance in (balances or {}).items()
        },
    )


def _settings(
    receiver: Optional[AddressOrEnsName] = None,
    payment_mode=None,
    secondaries=("ETH",),
    preferences: Optional[StrategyPreferences] = None,
    exchange_rates: Optional[ExchangeRates] = None,
) -> CheckoutSettings:
    return CheckoutSettings(
        proposed_payment=ProposedPayment(
            receiver=receiver or AddressOrEnsName(address=RECEIVER),
            logical_asset_tickers=PrimaryWithSecondaries("USD", secondaries),
            payment_mode=payment_mode or PayFixedAmount(logical_asset_amount=10 * ONE),
        ),
        receiver_strategy_preferences=preferences or StrategyPreferences(),
        exchange_rates=exchange_rates,
    )


def test_readiness_progression() -> None:
    clock = FakeClock(0)
    session = CheckoutSession(
        _settings(receiver=AddressOrEnsName(ens_name="merchant.eth")), clock=clock
    )
    assert session.readiness() == CheckoutReadiness.RECEIVER_ADDRESS_LOADING

    session.set_receiver_address(None)
    assert session.readiness() == CheckoutReadiness.RECEIVER_ADDRESS_COULD_NOT_BE_DETERMINED

    session.set_receiver_address(RECEIVER)
    assert session.readiness() == CheckoutReadiness.SENDER_ACCOUNT_NOT_CONNECTED
    assert session.payment is None
    assert session.strategies is None

    session.set_address_context(_address_context())
    payment = session.payment
    assert payment is not None
    assert payment.receiver_address == RECEIVER
    assert payment.sender_address == SENDER
    # no balances yet: loading during the grace period, then unaffordable
    assert session.readiness(100) == CheckoutReadiness.SENDER_ADDRESS_CONTEXT_LOADING
    assert session.readiness(600) == CheckoutReadiness.BEST_STRATEGY_UNAFFORDABLE

    usdc = _token("USDC", 10)
    session.set_address_context(_address_context({usdc: 12_000_000}))
    assert session.best_strategy is not None
    assert session.best_strategy.token == usdc
    assert session.is_best_strategy_affordable()
    assert session.readiness(100) == CheckoutReadiness.READY


def test_no_payment_options() -> None:
    preferences = StrategyPreferences(
        accepted_chain_ids=AllowlistOrDenylist(allowlist=frozenset([999]))
    )
    session = CheckoutSession(_settings(preferences=preferences), clock=FakeClock(0))
    session.set_address_context(_address_context())

    assert session.strategies == []
    assert session.readiness(499) == CheckoutReadiness.SENDER_ADDRESS_CONTEXT_LOADING
    assert session.readiness(500) == CheckoutReadiness.SENDER_HAS_NO_PAYMENT_OPTIONS


def test_pay_what_you_want() -> None:
    session = CheckoutSession(
        _settings(payment_mode=PayWhatYouWant(), secondaries=("EUR", "ETH")),
        clock=FakeClock(0),
    )
    session.set_address_context(_address_context())
    assert session.strategies is None
    assert session.readiness(1_000) == CheckoutReadiness.SENDER_MUST_SPECIFY_AMOUNT

    session.set_pay_what_you_want_amount(10**16, "eth")
    payment = session.payment
    assert payment is not None
    assert payment.fixed_amount == 10**16
    assert payment.logical_asset_tickers == PrimaryWithSecondaries("ETH", ("USD", "EUR"))

    best = session.best_strategy
    assert best is not None
    assert best.token == _token("ETH", 42161)
    assert best.amount == 10**16

    session.set_pay_what_you_want_amount(None)
    assert session.strategies is None
    assert session.best_strategy is None


def test_pay_what_you_want_amount_rejected_for_fixed_payments() -> None:
    session = CheckoutSession(_settings())
    with pytest.raises(ValueError):
        session.set_pay_what_you_want_amount(ONE)


def test_derive_payment_with_fixed_amount() -> None:
    proposed_payment = _settings(payment_mode=PayWhatYouWant()).proposed_payment
    payment = accept_proposed_payment(SENDER, proposed_payment)

    derived = derive_payment_with_fixed_amount(payment, 3 * ONE)
    assert derived.payment_mode == PayFixedAmount(3 * ONE)
    assert derived.logical_asset_tickers == payment.logical_asset_tickers

    derived = derive_payment_with_fixed_amount(proposed_payment, ONE, "ETH")
    assert derived.logical_asset_tickers == PrimaryWithSecondaries("ETH", ("USD",))
    assert derived.receiver == proposed_payment.receiver


def test_transaction_fee_unaffordable_moves_to_another_chain() -> None:
    base_usdc = _token("USDC", 8453)
    op_usdc = _token("USDC", 10)
    session = CheckoutSession(_settings(), clock=FakeClock(0))
    session.set_address_context(
        _address_context({base_usdc: 12_000_000, op_usdc: 12_000_000})
    )
    best = session.best_strategy
    assert best is not None
    assert best.token == base_usdc

    session.on_transaction_fee_unaffordable(best)
    assert session.selector.disabled_chain_ids == {8453}
    new_best = session.best_strategy
    assert new_best is not None
    assert new_best.token == op_usdc

    # regeneration keeps the chain disabled
    session.set_exchange_rates(make_exchange_rates({"ETH": {"USD": 3000}}))
    assert session.strategies is not None
    assert session.best_strategy == new_best
    assert all(s.token.chain_id != 8453 for s in session.selector.other_strategies)


def test_signing_locks_selection() -> None:
    session = CheckoutSession(_settings(), clock=FakeClock(0))
    session.set_address_context(_address_context({_token("USDC", 10): 12_000_000}))
    best = session.best_strategy
    assert best is not None

    session.set_signing_status(SigningStatus.SIGNING)
    session.set_address_context(_address_context({_token("USDC", 8453): 12_000_000}))
    assert session.best_strategy == best


def test_checkout_exchange_rates_override_market_rates() -> None:
    session = CheckoutSession(
        _settings(exchange_rates=make_exchange_rates({"ETH": {"USD": 2000}}))
    )
    exchange_rates = session.exchange_rates
    assert exchange_rates is not None
    assert exchange_rates["ETH"]["USD"] == 2000

    market: ObservableValue[Optional[ExchangeRates]] = ObservableValue(None)
    unsubscribe = session.attach_exchange_rates(market.observer)
    market.set_value_and_notify_observers(
        make_exchange_rates({"ETH": {"USD": 3000}, "EUR": {"USD": 1.25}})
    )
    exchange_rates = session.exchange_rates
    assert exchange_rates is not None
    assert exchange_rates["ETH"]["USD"] == 2000
    assert exchange_rates["EUR"]["USD"] == 1.25

    unsubscribe()
    assert market.subscriber_count == 0


def test_attach_address_context() -> None:
    session = CheckoutSession(_settings(), clock=FakeClock(0))
    address_context: ObservableValue[Optional[AddressContext]] = ObservableValue(None)
    session.attach_address_context(address_context.observer)
    assert session.readiness() == CheckoutReadiness.SENDER_ACCOUNT_NOT_CONNECTED

    address_context.set_value_and_notify_observers(
        _address_context({_token("USDC", 10): 12_000_000})
    )
    assert session.readiness() == CheckoutReadiness.READY

    address_context.set_value_and_notify_observers(None)
    assert session.readiness() == CheckoutReadiness.SENDER_ACCOUNT_NOT_CONNECTED
    assert session.best_strategy is None


def test_proposed_strategies_are_memoized() -> None:
    cache: MemoCache = MemoCache()
    session = CheckoutSession(_settings(), proposed_strategies_cache=cache)

    first = session.proposed_strategies
    assert first
    assert session.proposed_strategies is first
    assert (cache.hits, cache.misses) == (1, 1)

    # a second session for the same checkout shares the cached result
    other = CheckoutSession(_settings(), proposed_strategies_cache=cache)
    assert other.proposed_strategies is first

    session.set_exchange_rates(make_exchange_rates({"ETH": {"USD": 3000}}))
    with_eth = session.proposed_strategies
    assert with_eth is not first
    assert len(with_eth) > len(first)
    assert cache.misses == 2


def test_default_proposed_strategies_cache_is_bounded() -> None:
    session = CheckoutSession(_settings())
    for i in range(50):
        session.set_exchange_rates(make_exchange_rates({"ETH": {"USD": 3000 + i}}))
        assert session.proposed_strategies
    assert len(session._proposed_strategies_cache) == 1
