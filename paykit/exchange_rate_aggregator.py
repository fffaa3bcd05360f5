# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import asyncio
import logging
import statistics
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from paykit.config import EngineConfig
from paykit.exchange_rates import (
    ExchangeRates,
    are_exchange_rates_equal,
    make_exchange_rates,
)
from paykit.fetch_loop import RefetchLoop
from paykit.observable import IObserver, ObservableValue
from paykit.protocol.exchange_rate import ExchangeRate
from paykit.rate_sources import ExchangeRateFetcher
from paykit.time_utils import Clock, now_millis
from paykit.visibility import VisibilityTracker

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]
"""(denominator ticker, numerator ticker)"""


def median(rates: Sequence[float]) -> float:
    """The middle rate, or the mean of the two middle rates for an even count."""
    if not rates:
        raise ValueError("median of no rates")
    return statistics.median(rates)


def compute_exchange_rates(
    observations: Iterable[ExchangeRate], now: int, config: EngineConfig
) -> Optional[ExchangeRates]:
    """
    Fuses observations into a rate table. Stale observations are ignored, a pair with
    fewer fresh observations than its quorum is left out, and every other pair gets the
    median of its fresh rates.

    Args:
        observations: at most one observation per source and pair.
        now: current time in milliseconds.
        config: staleness and quorum settings.

    Returns:
        The table, or None if no pair reached quorum.
    """
    fresh_rates_by_pair: Dict[Pair, List[float]] = {}
    for observation in observations:
        if observation.is_stale(now, config.max_exchange_rate_age_millis):
            continue
        pair = (observation.denominator_ticker, observation.numerator_ticker)
        fresh_rates_by_pair.setdefault(pair, []).append(observation.rate)

    table: Dict[str, Dict[str, float]] = {}
    for (denominator, numerator), rates in fresh_rates_by_pair.items():
        if len(rates) < config.quorum_for(denominator, numerator):
            continue
        table.setdefault(denominator, {})[numerator] = median(rates)
    if not table:
        return None
    return make_exchange_rates(table)


class ExchangeRateAggregator:
    """
    Single writer of the published exchange rate table.

    Observations are added as sources report them. Every tick recomputes the table; a
    change is held back until it has been quiet for debounce_millis, or until
    max_debounce_wait_millis after the first unpublished change, whichever comes first.
    The published table only changes when its contents change.
    """

    def __init__(
        self, config: Optional[EngineConfig] = None, clock: Clock = now_millis
    ) -> None:
        self._config = config or EngineConfig()
        self._clock = clock
        self._observations: Dict[Pair, Dict[str, ExchangeRate]] = {}
        self._computed: Optional[ExchangeRates] = None
        self._first_unpublished_change_at: Optional[int] = None
        self._last_change_at: Optional[int] = None
        self._published: ObservableValue[Optional[ExchangeRates]] = ObservableValue(
            None, is_equal=are_exchange_rates_equal
        )
        self._wakeup: Optional[asyncio.Event] = None
        self._tasks: List["asyncio.Task[None]"] = []
        self._fetch_loops: List[RefetchLoop[float]] = []

    @property
    def observer(self) -> IObserver[Optional[ExchangeRates]]:
        return self._published.observer

    @property
    def exchange_rates(self) -> Optional[ExchangeRates]:
        return self._published.get_current_value()

    @property
    def observations(self) -> List[ExchangeRate]:
        return [
            observation
            for by_source in self._observations.values()
            for observation in by_source.values()
        ]

    @property
    def flush_deadline(self) -> Optional[int]:
        """When the pending change must be published. None if nothing is pending."""
        if self._first_unpublished_change_at is None or self._last_change_at is None:
            return None
        return min(
            self._last_change_at + self._config.debounce_millis,
            self._first_unpublished_change_at + self._config.max_debounce_wait_millis,
        )

    def add_observation(self, observation: ExchangeRate, now: Optional[int] = None) -> bool:
        """
        Records an observation, replacing the previous one from the same source for the
        same pair, then ticks. Returns whether a new table was published.
        """
        pair = (observation.denominator_ticker, observation.numerator_ticker)
        self._observations.setdefault(pair, {})[observation.source] = observation
        published = self.tick(now)
        if self._wakeup is not None:
            self._wakeup.set()
        return published

    def tick(self, now: Optional[int] = None) -> bool:
        """Recomputes the table and publishes it if the debounce deadline has passed."""
        now = self._clock() if now is None else now
        computed = compute_exchange_rates(self.observations, now, self._config)
        if not are_exchange_rates_equal(computed, self._computed):
            self._computed = computed
            self._last_change_at = now
            if self._first_unpublished_change_at is None:
                self._first_unpublished_change_at = now
        deadline = self.flush_deadline
        if deadline is not None and now >= deadline:
            return self.flush()
        return False

    def flush(self) -> bool:
        """Publishes the latest computed table immediately."""
        self._first_unpublished_change_at = None
        self._last_change_at = None
        published = self._published.set_value_and_notify_observers(self._computed)
        if published:
            logger.debug("Published exchange rates %s", _describe(self._computed))
        return published

    def start(
        self,
        fetchers: Sequence[ExchangeRateFetcher],
        visibility: Optional[VisibilityTracker] = None,
    ) -> None:
        """
        Starts one fetch loop per fetcher plus the recompute timer on the running event loop.
        """
        self.stop()
        self._wakeup = asyncio.Event()
        for fetcher in fetchers:
            loop = RefetchLoop(
                name=f"{fetcher.source} {fetcher.denominator_ticker}/{fetcher.numerator_ticker}",
                fetch=fetcher.fetch_exchange_rate,
                on_result=self._make_observation_handler(fetcher),
                interval_millis=fetcher.refetch_interval_millis
                or self._config.default_refetch_interval_millis,
                visibility=visibility,
                clock=self._clock,
            )
            self._fetch_loops.append(loop)
            self._tasks.append(loop.start())
        self._tasks.append(asyncio.get_running_loop().create_task(self._run_timer()))

    def stop(self) -> None:
        for loop in self._fetch_loops:
            loop.stop()
        for task in self._tasks:
            task.cancel()
        self._fetch_loops = []
        self._tasks = []
        self._wakeup = None

    def _make_observation_handler(self, fetcher: ExchangeRateFetcher):
        def on_rate(rate: float, started_at: int) -> None:
            self.add_observation(
                ExchangeRate(
                    denominator_ticker=fetcher.denominator_ticker,
                    numerator_ticker=fetcher.numerator_ticker,
                    rate=rate,
                    source=fetcher.source,
                    timestamp_millis=started_at,
                )
            )

        return on_rate

    async def _run_timer(self) -> None:
        wakeup = self._wakeup
        while wakeup is not None:
            self.tick()
            now = self._clock()
            sleep_millis = self._config.recompute_interval_millis
            deadline = self.flush_deadline
            if deadline is not None:
                sleep_millis = min(sleep_millis, max(0, deadline - now))
            wakeup.clear()
            try:
                await asyncio.wait_for(wakeup.wait(), sleep_millis / 1000)
            except asyncio.TimeoutError:
                pass


def _describe(rates: Optional[ExchangeRates]) -> str:
    if rates is None:
        return "(none)"
    return ", ".join(
        f"{denominator}/{numerator}={rate}"
        for denominator, numerators in rates.items()
        for numerator, rate in numerators.items()
    )
