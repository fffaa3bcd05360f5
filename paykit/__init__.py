# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from paykit.exceptions import *
from paykit.affordability import (
    AffordabilityPartition,
    amount_needed_to_afford,
    can_afford,
    logical_amount_needed_to_afford,
    partition_strategies_by_affordability,
    sort_strategies_by_logical_amount_needed_to_afford,
)
from paykit.balances import AddressContextUpdater, BalanceTracker, IBalanceSource
from paykit.best_strategy import (
    BestStrategySelector,
    BestStrategyState,
    HasBestStrategy,
    NoStrategies,
    SigningStatus,
)
from paykit.chains import Chain, get_chain, get_strategy_priority_for_chain_id
from paykit.checkout import (
    CheckoutReadiness,
    CheckoutSession,
    derive_payment_with_fixed_amount,
)
from paykit.config import EngineConfig
from paykit.errors import ErrorCode
from paykit.eth_transfer_proxy import (
    NativeTokenTransferProxyMode,
    get_eth_transfer_proxy_contract_address,
)
from paykit.exchange_rate_aggregator import (
    ExchangeRateAggregator,
    compute_exchange_rates,
    median,
)
from paykit.exchange_rates import (
    ExchangeRates,
    are_exchange_rates_equal,
    convert,
    make_exchange_rates,
    merge_exchange_rates,
    unit_rate,
)
from paykit.fetch_loop import RefetchLoop
from paykit.logical_assets import (
    LOGICAL_ASSET_DECIMALS,
    LogicalAsset,
    convert_from_token_decimals_to_logical_asset_decimals,
    convert_logical_asset_units,
    get_logical_asset,
    parse_logical_asset_amount,
)
from paykit.memo import MemoCache
from paykit.observable import IObserver, ObservableValue
from paykit.protocol.address_context import AddressContext
from paykit.protocol.checkout_settings import CheckoutSettings
from paykit.protocol.exchange_rate import ExchangeRate
from paykit.protocol.payment import (
    AddressOrEnsName,
    PayFixedAmount,
    Payment,
    PaymentMode,
    PaymentModeKind,
    PayWhatYouWant,
    PrimaryWithSecondaries,
    ProposedPayment,
    accept_proposed_payment,
)
from paykit.protocol.strategy import (
    ProposedStrategy,
    Strategy,
    StrategyKind,
    get_strategy_key,
)
from paykit.protocol.strategy_preferences import (
    AllowlistOrDenylist,
    StrategyPreferences,
)
from paykit.protocol.token_balance import TokenBalance, is_dust
from paykit.protocol.token_transfer import ProposedTokenTransfer, TokenTransfer
from paykit.rate_sources import (
    ExchangeRateFetcher,
    get_default_exchange_rate_fetchers,
)
from paykit.strategies import (
    get_proposed_strategies_for_proposed_payment,
    get_strategies_for_payment,
    sort_strategies_by_priority,
)
from paykit.tokens import (
    Token,
    TokenKey,
    get_all_tokens_for_logical_asset_ticker,
    get_token_by_token_key,
    get_token_key,
)
from paykit.type_utils import none_throws
from paykit.visibility import VisibilityTracker
