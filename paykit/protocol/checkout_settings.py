# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass, field
from typing import Optional

from paykit.eth_transfer_proxy import NativeTokenTransferProxyMode
from paykit.exchange_rates import ExchangeRates
from paykit.protocol.payment import ProposedPayment
from paykit.protocol.strategy_preferences import StrategyPreferences


@dataclass(frozen=True)
class CheckoutSettings:
    """The receiver's configuration of a single checkout."""

    proposed_payment: ProposedPayment

    receiver_strategy_preferences: StrategyPreferences = field(
        default_factory=StrategyPreferences
    )

    native_token_transfer_proxy: NativeTokenTransferProxyMode = (
        NativeTokenTransferProxyMode.PREFER
    )

    exchange_rates: Optional[ExchangeRates] = field(default=None, compare=False)
    """Rates that take precedence over the aggregated market rates, eg. a fixed EUR/USD."""
