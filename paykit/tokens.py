# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from typing import Dict, List, Optional

from paykit.JSONable import JSONable
from paykit.chains import get_chain
from paykit.exceptions import UnknownTokenException
from paykit.logical_assets import (
    get_logical_asset,
    get_logical_asset_ticker_for_token_ticker,
)

TokenKey = str
"""Stable identifier for a token on a chain: "<chain id>-native" or "<chain id>-<lowercase address>"."""


@dataclass(frozen=True)
class Token(JSONable):
    """
    An asset on a specific chain. A token without a contract address is the chain's
    native currency (eg. ETH on OP Mainnet).
    """

    ticker: str

    name: str

    chain_id: int

    decimals: int

    contract_address: Optional[str] = None
    """ERC-20 contract address. None for the native currency."""

    ticker_canonical: Optional[str] = None
    """
    Set for bridged variants that share a ticker with a native issuance on the same chain,
    eg. USDC.e on Arbitrum. Used to tell them apart in UI and to rank them.
    """

    @property
    def is_native_currency(self) -> bool:
        return self.contract_address is None

    @property
    def is_bridged(self) -> bool:
        return self.ticker_canonical is not None


def get_token_key(token: Token) -> TokenKey:
    if token.contract_address is None:
        return f"{token.chain_id}-native"
    return f"{token.chain_id}-{token.contract_address.lower()}"


def _native(ticker: str, name: str, chain_id: int) -> Token:
    return Token(ticker=ticker, name=name, chain_id=chain_id, decimals=18)


def _erc20(
    ticker: str,
    chain_id: int,
    contract_address: str,
    decimals: int,
    name: Optional[str] = None,
    ticker_canonical: Optional[str] = None,
) -> Token:
    return Token(
        ticker=ticker,
        name=name or ticker,
        chain_id=chain_id,
        decimals=decimals,
        contract_address=contract_address,
        ticker_canonical=ticker_canonical,
    )


_DAI_L2 = "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1"
_WETH_OP_STACK = "0x4200000000000000000000000000000000000006"

_TOKENS: List[Token] = [
    # Ethereum
    _native("ETH", "Ether", 1),
    _erc20("WETH", 1, "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18, "Wrapped Ether"),
    _erc20("STETH", 1, "0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84", 18, "Lido Staked Ether"),
    _erc20("DAI", 1, "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18, "Dai"),
    _erc20("USDC", 1, "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6, "USD Coin"),
    _erc20("USDT", 1, "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6, "Tether USD"),
    _erc20("LUSD", 1, "0x5f98805A4E8be255a32880FDeC7F6728C6568bA0", 18, "Liquity USD"),
    _erc20("PYUSD", 1, "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8", 6, "PayPal USD"),
    _erc20("EURC", 1, "0x1aBaEA1f7C830bD89Acc67eC4af516284b1bC33c", 6, "Euro Coin"),
    _erc20("CADC", 1, "0xcaDC0acd4B445166f12d2C07EAc6E2544FbE2Eef", 18, "CAD Coin"),
    # OP Mainnet
    _native("ETH", "Ether", 10),
    _erc20("WETH", 10, _WETH_OP_STACK, 18, "Wrapped Ether"),
    _erc20("DAI", 10, _DAI_L2, 18, "Dai"),
    _erc20("USDC", 10, "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85", 6, "USD Coin"),
    _erc20("USDC", 10, "0x7F5c764cBc14f9669B88837ca1490cCa17c31607", 6, "Bridged USD Coin", "USDC.e"),
    _erc20("USDT", 10, "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58", 6, "Tether USD"),
    _erc20("LUSD", 10, "0xc40F949F8a4e094D1b49a23ea9241D289B7b2819", 18, "Liquity USD"),
    # Arbitrum One
    _native("ETH", "Ether", 42161),
    _erc20("WETH", 42161, "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18, "Wrapped Ether"),
    _erc20("DAI", 42161, _DAI_L2, 18, "Dai"),
    _erc20("USDC", 42161, "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6, "USD Coin"),
    _erc20("USDC", 42161, "0xFF970A61A04b1cA14834A43f5dE4533eBDDB5CC8", 6, "Bridged USD Coin", "USDC.e"),
    _erc20("USDT", 42161, "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", 6, "Tether USD"),
    # Base
    _native("ETH", "Ether", 8453),
    _erc20("WETH", 8453, _WETH_OP_STACK, 18, "Wrapped Ether"),
    _erc20("DAI", 8453, "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb", 18, "Dai"),
    _erc20("USDC", 8453, "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6, "USD Coin"),
    _erc20("EURC", 8453, "0x60a3E35Cc302bFA44Cb288Bc5a4F316Fdb1adb42", 6, "Euro Coin"),
    # Polygon
    _native("MATIC", "Matic", 137),
    _erc20("WETH", 137, "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", 18, "Wrapped Ether"),
    _erc20("DAI", 137, "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063", 18, "Dai"),
    _erc20("USDC", 137, "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", 6, "USD Coin"),
    _erc20("USDC", 137, "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", 6, "Bridged USD Coin", "USDC.e"),
    _erc20("USDT", 137, "0xc2132D05D31c914a87C6611C10748AEb04B58e8F", 6, "Tether USD"),
    # zkSync Era
    _native("ETH", "Ether", 324),
    _erc20("USDC", 324, "0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4", 6, "Bridged USD Coin", "USDC.e"),
    # Scroll
    _native("ETH", "Ether", 534352),
    _erc20("USDC", 534352, "0x06eFdBFf2a14a7c8E15944D1F4A48F9F95F663A4", 6, "USD Coin"),
    # Linea
    _native("ETH", "Ether", 59144),
    _erc20("USDC", 59144, "0x176211869cA2b568f2A7D4EE941E073a821EE1ff", 6, "USD Coin"),
    # Zora
    _native("ETH", "Ether", 7777777),
    # Arbitrum Nova
    _native("ETH", "Ether", 42170),
]

_TOKENS_BY_TOKEN_KEY: Dict[TokenKey, Token] = {
    get_token_key(token): token for token in _TOKENS
}


def get_all_tokens() -> List[Token]:
    return list(_TOKENS)


def get_token_by_token_key(token_key: TokenKey) -> Optional[Token]:
    return _TOKENS_BY_TOKEN_KEY.get(token_key)


def get_token_by_token_key_or_throw(token_key: TokenKey) -> Token:
    token = get_token_by_token_key(token_key)
    if token is None:
        raise UnknownTokenException(token_key)
    return token


def get_all_tokens_for_logical_asset_ticker(logical_asset_ticker: str) -> List[Token]:
    """Every token on every chain that settles the given logical asset, in registry order."""
    asset = get_logical_asset(logical_asset_ticker)
    if asset is None:
        return []
    return [
        token for token in _TOKENS if token.ticker in asset.supported_token_tickers
    ]


def get_logical_asset_ticker_for_token(token: Token) -> Optional[str]:
    return get_logical_asset_ticker_for_token_ticker(token.ticker)


def is_token_supported(token: Token) -> bool:
    return get_chain(token.chain_id) is not None
