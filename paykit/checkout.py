# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import dataclasses
import logging
from enum import Enum
from typing import List, Optional, TypeVar, Union

from paykit.affordability import can_afford
from paykit.best_strategy import BestStrategySelector, SigningStatus
from paykit.config import EngineConfig
from paykit.exchange_rates import (
    ExchangeRates,
    exchange_rates_fingerprint,
    merge_exchange_rates,
)
from paykit.memo import MemoCache
from paykit.observable import IObserver, Unsubscribe
from paykit.protocol.address_context import AddressContext
from paykit.protocol.checkout_settings import CheckoutSettings
from paykit.protocol.payment import (
    AddressOrEnsName,
    PayFixedAmount,
    Payment,
    PaymentModeKind,
    ProposedPayment,
    accept_proposed_payment,
)
from paykit.protocol.strategy import ProposedStrategy, Strategy, get_strategy_key
from paykit.strategies import (
    get_proposed_strategies_for_proposed_payment,
    get_strategies_for_payment,
)
from paykit.time_utils import Clock, now_millis
from paykit.type_utils import normalize_ticker

logger = logging.getLogger(__name__)

P = TypeVar("P", Payment, ProposedPayment)


class CheckoutReadiness(Enum):
    RECEIVER_ADDRESS_LOADING = "receiver_address_loading"
    RECEIVER_ADDRESS_COULD_NOT_BE_DETERMINED = "receiver_address_could_not_be_determined"
    SENDER_ACCOUNT_NOT_CONNECTED = "sender_account_not_connected"
    SENDER_ADDRESS_CONTEXT_LOADING = "sender_address_context_loading"
    """Balances and rates are still arriving. Shown instead of "no options" for a grace period."""
    SENDER_MUST_SPECIFY_AMOUNT = "sender_must_specify_amount"
    SENDER_HAS_NO_PAYMENT_OPTIONS = "sender_has_no_payment_options"
    BEST_STRATEGY_UNAFFORDABLE = "best_strategy_unaffordable"
    """There are strategies but the sender can't afford any. Prompt for another payment method."""
    READY = "ready"


def derive_payment_with_fixed_amount(
    payment: P, logical_asset_amount: int, logical_asset_ticker: Optional[str] = None
) -> P:
    """
    Fixes the amount of a pay-what-you-want payment. If the sender chose to pay in a
    different logical asset, that asset becomes the primary one and the original primary
    becomes the first secondary.
    """
    logical_asset_tickers = payment.logical_asset_tickers
    if logical_asset_ticker is not None:
        logical_asset_tickers = logical_asset_tickers.with_primary(
            normalize_ticker(logical_asset_ticker)
        )
    return dataclasses.replace(
        payment,
        logical_asset_tickers=logical_asset_tickers,
        payment_mode=PayFixedAmount(logical_asset_amount=logical_asset_amount),
    )


class CheckoutSession:
    """
    Generates and selects strategies for one checkout as its inputs change.

    Inputs arrive independently: exchange rates from the aggregator, the sender's
    AddressContext from the balance updater, the resolved receiver address, and the
    sender's chosen amount for pay-what-you-want payments. Every change regenerates the
    real strategies and hands them to the selection state machine.
    """

    def __init__(
        self,
        checkout_settings: CheckoutSettings,
        config: Optional[EngineConfig] = None,
        clock: Clock = now_millis,
        proposed_strategies_cache: Optional[MemoCache[List[ProposedStrategy]]] = None,
    ) -> None:
        self.checkout_settings = checkout_settings
        self._config = config or EngineConfig()
        self._clock = clock
        # keyed on the rate table, which changes with every publish
        self._proposed_strategies_cache: MemoCache[List[ProposedStrategy]] = (
            proposed_strategies_cache
            if proposed_strategies_cache is not None
            else MemoCache(max_entries=1)
        )
        self._exchange_rates: Optional[ExchangeRates] = merge_exchange_rates(
            None, checkout_settings.exchange_rates
        )
        self._address_context: Optional[AddressContext] = None
        self._sender_connected_at: Optional[int] = None
        self._receiver_address: Optional[str] = (
            checkout_settings.proposed_payment.receiver.address
        )
        self._receiver_address_could_not_be_determined = False
        self._chosen_amount: Optional[int] = None
        self._chosen_logical_asset_ticker: Optional[str] = None
        self._strategies: Optional[List[Strategy]] = None
        self.selector: BestStrategySelector[Strategy] = BestStrategySelector()

    @property
    def exchange_rates(self) -> Optional[ExchangeRates]:
        """Market rates with the checkout's own rates merged over them."""
        return self._exchange_rates

    @property
    def address_context(self) -> Optional[AddressContext]:
        return self._address_context

    @property
    def strategies(self) -> Optional[List[Strategy]]:
        return self._strategies

    @property
    def best_strategy(self) -> Optional[Strategy]:
        return self.selector.best_strategy

    @property
    def proposed_payment(self) -> ProposedPayment:
        return self.checkout_settings.proposed_payment

    @property
    def proposed_strategies(self) -> List[ProposedStrategy]:
        settings = self.checkout_settings
        key = (
            settings.proposed_payment,
            settings.receiver_strategy_preferences,
            settings.native_token_transfer_proxy,
            exchange_rates_fingerprint(self._exchange_rates),
        )
        return self._proposed_strategies_cache.get_or_compute(
            key,
            lambda: get_proposed_strategies_for_proposed_payment(
                self._exchange_rates,
                settings.receiver_strategy_preferences,
                settings.proposed_payment,
                settings.native_token_transfer_proxy,
            ),
        )

    @property
    def payment(self) -> Optional[Payment]:
        """
        The payment the connected sender would settle, or None until both the receiver
        address and the sender are known. A pay-what-you-want payment keeps its mode until
        the sender chooses an amount.
        """
        if self._receiver_address is None or self._address_context is None:
            return None
        proposed_payment = self.proposed_payment
        if proposed_payment.receiver.address != self._receiver_address:
            proposed_payment = dataclasses.replace(
                proposed_payment,
                receiver=AddressOrEnsName(address=self._receiver_address),
            )
        payment = accept_proposed_payment(
            self._address_context.address, proposed_payment
        )
        if payment.fixed_amount is None and self._chosen_amount is not None:
            payment = derive_payment_with_fixed_amount(
                payment, self._chosen_amount, self._chosen_logical_asset_ticker
            )
        return payment

    def set_exchange_rates(self, exchange_rates: Optional[ExchangeRates]) -> None:
        self._exchange_rates = merge_exchange_rates(
            exchange_rates, self.checkout_settings.exchange_rates
        )
        self._regenerate()

    def attach_exchange_rates(
        self, observer: IObserver[Optional[ExchangeRates]]
    ) -> Unsubscribe:
        self.set_exchange_rates(observer.get_current_value())
        return observer.subscribe(self.set_exchange_rates)

    def set_address_context(self, address_context: Optional[AddressContext]) -> None:
        previous = self._address_context
        if address_context is None:
            self._sender_connected_at = None
        elif previous is None or previous.address != address_context.address:
            self._sender_connected_at = self._clock()
        self._address_context = address_context
        self._regenerate()

    def attach_address_context(
        self, observer: IObserver[Optional[AddressContext]]
    ) -> Unsubscribe:
        self.set_address_context(observer.get_current_value())
        return observer.subscribe(self.set_address_context)

    def set_receiver_address(self, receiver_address: Optional[str]) -> None:
        """Supplies the result of resolving the receiver's ENS name. None means it could not be resolved."""
        self._receiver_address = receiver_address
        self._receiver_address_could_not_be_determined = receiver_address is None
        self._regenerate()

    def set_pay_what_you_want_amount(
        self,
        logical_asset_amount: Optional[int],
        logical_asset_ticker: Optional[str] = None,
    ) -> None:
        if self.proposed_payment.payment_mode.kind != PaymentModeKind.PAY_WHAT_YOU_WANT:
            raise ValueError("Only pay-what-you-want payments accept a sender amount.")
        self._chosen_amount = logical_asset_amount
        self._chosen_logical_asset_ticker = logical_asset_ticker
        self._regenerate()

    def select_strategy(self, strategy: Strategy) -> None:
        self.selector.select_strategy(strategy)

    def set_signing_status(self, signing_status: SigningStatus) -> None:
        self.selector.set_signing_status(signing_status)

    def on_transaction_fee_unaffordable(
        self, strategy: Union[Strategy, ProposedStrategy]
    ) -> None:
        """
        If the fee for one strategy on a chain is unaffordable, assume it is for every
        strategy on that chain.
        """
        self.selector.disable_all_strategies_originating_from_chain_id(
            strategy.token.chain_id
        )

    def is_best_strategy_affordable(self) -> bool:
        best = self.best_strategy
        if best is None or self._address_context is None:
            return False
        return can_afford(self._address_context, get_strategy_key(best), best.amount)

    def readiness(self, now: Optional[int] = None) -> CheckoutReadiness:
        now = self._clock() if now is None else now
        if self._receiver_address is None:
            if self._receiver_address_could_not_be_determined:
                return CheckoutReadiness.RECEIVER_ADDRESS_COULD_NOT_BE_DETERMINED
            return CheckoutReadiness.RECEIVER_ADDRESS_LOADING
        if self._address_context is None:
            return CheckoutReadiness.SENDER_ACCOUNT_NOT_CONNECTED
        payment = self.payment
        if payment is None or payment.fixed_amount is None:
            return CheckoutReadiness.SENDER_MUST_SPECIFY_AMOUNT
        in_grace_period = (
            self._sender_connected_at is not None
            and now
            < self._sender_connected_at
            + self._config.checkout_readiness_grace_period_millis
        )
        if self.best_strategy is None:
            if in_grace_period:
                return CheckoutReadiness.SENDER_ADDRESS_CONTEXT_LOADING
            return CheckoutReadiness.SENDER_HAS_NO_PAYMENT_OPTIONS
        if not self.is_best_strategy_affordable():
            if in_grace_period:
                return CheckoutReadiness.SENDER_ADDRESS_CONTEXT_LOADING
            return CheckoutReadiness.BEST_STRATEGY_UNAFFORDABLE
        return CheckoutReadiness.READY

    def _regenerate(self) -> None:
        payment = self.payment
        address_context = self._address_context
        if payment is None or address_context is None:
            self._strategies = None
        else:
            settings = self.checkout_settings
            self._strategies = get_strategies_for_payment(
                self._exchange_rates,
                settings.receiver_strategy_preferences,
                payment,
                address_context,
                settings.native_token_transfer_proxy,
            )
            logger.debug("Generated %d strategies", len(self._strategies or []))
        self.selector.set_strategies(self._strategies)
