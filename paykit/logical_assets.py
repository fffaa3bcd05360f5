# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from paykit.amounts import parse_units, rescale
from paykit.type_utils import normalize_ticker

LOGICAL_ASSET_DECIMALS = 18
"""All logical asset amounts are integers with this many decimals, eg. 1 USD == 10**18."""


@dataclass(frozen=True)
class LogicalAsset:
    """
    A unit of account independent of any on-chain token, eg. USD settled in USDC or DAI.
    """

    ticker: str

    name: str

    symbol: str
    """Display symbol, eg. "$"."""

    decimals_to_render: int
    """How many decimals a balance in this asset is shown with. Also the dust threshold."""

    supported_token_tickers: FrozenSet[str]
    """Token tickers that are accepted as settling this logical asset."""

    default_small_amount: str
    """Illustrative amount used for pay-what-you-want proposals before the sender picks one."""


_LOGICAL_ASSETS: Dict[str, LogicalAsset] = {
    asset.ticker: asset
    for asset in [
        LogicalAsset(
            ticker="USD",
            name="US Dollars",
            symbol="$",
            decimals_to_render=2,
            supported_token_tickers=frozenset(["DAI", "USDC", "USDT", "LUSD", "PYUSD"]),
            default_small_amount="5",
        ),
        LogicalAsset(
            ticker="EUR",
            name="Euros",
            symbol="€",
            decimals_to_render=2,
            supported_token_tickers=frozenset(["EURC"]),
            default_small_amount="5",
        ),
        LogicalAsset(
            ticker="CAD",
            name="Canadian Dollars",
            symbol="$",
            decimals_to_render=2,
            supported_token_tickers=frozenset(["CADC"]),
            default_small_amount="5",
        ),
        LogicalAsset(
            ticker="ETH",
            name="Ether",
            symbol="Ξ",
            decimals_to_render=5,
            supported_token_tickers=frozenset(["ETH", "WETH", "STETH"]),
            default_small_amount="0.001",
        ),
    ]
}

_LOGICAL_ASSET_TICKER_BY_TOKEN_TICKER: Dict[str, str] = {
    token_ticker: asset.ticker
    for asset in _LOGICAL_ASSETS.values()
    for token_ticker in asset.supported_token_tickers
}

DEFAULT_DECIMALS_TO_RENDER = 2


def get_logical_asset(ticker: str) -> Optional[LogicalAsset]:
    return _LOGICAL_ASSETS.get(normalize_ticker(ticker))


def get_logical_asset_ticker_for_token_ticker(token_ticker: str) -> Optional[str]:
    """Returns the logical asset a token settles, or None for tokens outside every logical asset (eg. MATIC)."""
    return _LOGICAL_ASSET_TICKER_BY_TOKEN_TICKER.get(normalize_ticker(token_ticker))


def get_decimals_to_render_for_token_ticker(token_ticker: str) -> int:
    logical_asset_ticker = get_logical_asset_ticker_for_token_ticker(token_ticker)
    if logical_asset_ticker is None:
        return DEFAULT_DECIMALS_TO_RENDER
    return _LOGICAL_ASSETS[logical_asset_ticker].decimals_to_render


def parse_logical_asset_amount(amount: str) -> int:
    """Parses a human amount like "10.50" into full logical asset precision."""
    return parse_units(amount, LOGICAL_ASSET_DECIMALS)


def convert_logical_asset_units(logical_asset_amount: int, new_decimals: int) -> int:
    """
    Converts an 18-decimal logical asset amount into an amount with new_decimals, eg. to
    express 10 USD in USDC's 6 decimals. Narrowing rounds half-up.
    """
    return rescale(logical_asset_amount, LOGICAL_ASSET_DECIMALS, new_decimals)


def convert_from_token_decimals_to_logical_asset_decimals(
    amount: int, token_decimals: int
) -> int:
    return rescale(amount, token_decimals, LOGICAL_ASSET_DECIMALS)


def get_default_small_amount(logical_asset_ticker: str) -> Optional[int]:
    asset = get_logical_asset(logical_asset_ticker)
    if asset is None:
        return None
    return parse_logical_asset_amount(asset.default_small_amount)
