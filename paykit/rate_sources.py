# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import asyncio
import json
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import requests

from paykit.exceptions import RateSourceException
from paykit.type_utils import normalize_ticker

COINBASE_ETH_USD_URL = "https://api.coinbase.com/v2/prices/ETH-USD/spot"
COINGECKO_ETH_USD_URL = (
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd"
)
KRAKEN_ETH_USD_URL = "https://api.kraken.com/0/public/Ticker?pair=ETHUSD"
BINANCE_ETH_USDC_URL = "https://api.binance.com/api/v3/ticker/price?symbol=ETHUSDC"

COINGECKO_REFETCH_INTERVAL_MILLIS = 60_500
"""Coingecko's free tier allows roughly one request per minute."""

_HTTP_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class ExchangeRateFetcher:
    """A price source for one currency pair. Any price API adapter is wrapped in one of these."""

    denominator_ticker: str

    numerator_ticker: str

    source: str
    """Unique name of the source. Observations are deduplicated by it."""

    fetch_exchange_rate: Callable[[], Awaitable[float]]
    """Fetches the current rate, 1 denominator == rate numerator. Raises on failure."""

    refetch_interval_millis: Optional[int] = None
    """Time between fetches. None uses the configured default."""

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "denominator_ticker", normalize_ticker(self.denominator_ticker)
        )
        object.__setattr__(
            self, "numerator_ticker", normalize_ticker(self.numerator_ticker)
        )


def _run_http_get(url: str) -> str:
    with requests.session() as session:
        response = session.get(url=url, timeout=_HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.text


def _parse_rate(source: str, extract: Callable[[Any], Any], response_text: str) -> float:
    try:
        rate = float(extract(json.loads(response_text)))
    except (ValueError, KeyError, IndexError, TypeError) as ex:
        raise RateSourceException(
            f"Unexpected response from {source}: {response_text[:200]}"
        ) from ex
    if not math.isfinite(rate) or rate <= 0:
        raise RateSourceException(f"{source} returned invalid rate {rate}")
    return rate


def fetch_coinbase_eth_usd() -> float:
    return _parse_rate(
        "Coinbase",
        lambda data: data["data"]["amount"],
        _run_http_get(COINBASE_ETH_USD_URL),
    )


def fetch_coingecko_eth_usd() -> float:
    return _parse_rate(
        "Coingecko",
        lambda data: data["ethereum"]["usd"],
        _run_http_get(COINGECKO_ETH_USD_URL),
    )


def fetch_kraken_eth_usd() -> float:
    # c is the last trade closed, as [price, lot volume]
    return _parse_rate(
        "Kraken",
        lambda data: data["result"]["XETHZUSD"]["c"][0],
        _run_http_get(KRAKEN_ETH_USD_URL),
    )


def fetch_binance_eth_usdc() -> float:
    return _parse_rate(
        "Binance USDC",
        lambda data: data["price"],
        _run_http_get(BINANCE_ETH_USDC_URL),
    )


def _off_event_loop(fetch: Callable[[], float]) -> Callable[[], Awaitable[float]]:
    async def fetch_in_thread() -> float:
        return await asyncio.to_thread(fetch)

    return fetch_in_thread


def get_default_exchange_rate_fetchers() -> List[ExchangeRateFetcher]:
    """ETH/USD from four independent exchanges. requests is blocking, so each fetch runs in a worker thread."""
    return [
        ExchangeRateFetcher(
            "ETH", "USD", "Coinbase", _off_event_loop(fetch_coinbase_eth_usd)
        ),
        ExchangeRateFetcher(
            "ETH",
            "USD",
            "Coingecko",
            _off_event_loop(fetch_coingecko_eth_usd),
            refetch_interval_millis=COINGECKO_REFETCH_INTERVAL_MILLIS,
        ),
        ExchangeRateFetcher(
            "ETH", "USD", "Kraken", _off_event_loop(fetch_kraken_eth_usd)
        ),
        # USDC is treated as USD
        ExchangeRateFetcher(
            "ETH", "USD", "Binance USDC", _off_event_loop(fetch_binance_eth_usdc)
        ),
    ]
