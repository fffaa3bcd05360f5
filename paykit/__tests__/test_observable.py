import json
from typing import List

import pytest

from paykit.config import EngineConfig
from paykit.memo import MemoCache
from paykit.observable import ObservableValue


def test_observable_value_notifies_on_change() -> None:
    value = ObservableValue(1)
    seen: List[int] = []
    unsubscribe = value.observer.subscribe(seen.append)

    assert value.set_value_and_notify_observers(2)
    assert not value.set_value_and_notify_observers(2)
    assert value.observer.get_current_value() == 2

    unsubscribe()
    unsubscribe()
    assert value.set_value_and_notify_observers(3)
    assert seen == [2]
    assert value.subscriber_count == 0


def test_observable_value_custom_equality() -> None:
    value = ObservableValue([1], is_equal=lambda a, b: a == b)
    seen: List[List[int]] = []
    value.subscribe(seen.append)

    assert not value.set_value_and_notify_observers([1])
    assert value.set_value_and_notify_observers([1, 2])
    assert seen == [[1, 2]]


def test_observer_view_is_read_only() -> None:
    observer = ObservableValue(1).observer
    assert not hasattr(observer, "set_value_and_notify_observers")


def test_subscriber_may_unsubscribe_during_notification() -> None:
    value = ObservableValue(0)
    seen: List[str] = []

    def once(_: int) -> None:
        seen.append("once")
        unsubscribe_once()

    unsubscribe_once = value.subscribe(once)
    value.subscribe(lambda _: seen.append("always"))

    value.set_value_and_notify_observers(1)
    value.set_value_and_notify_observers(2)
    assert seen == ["once", "always", "always"]


def test_memo_cache() -> None:
    cache: MemoCache[str] = MemoCache()
    computed: List[str] = []

    def compute(key: str) -> str:
        computed.append(key)
        return key.upper()

    assert cache.get_or_compute("a", lambda: compute("a")) == "A"
    assert cache.get_or_compute("a", lambda: compute("a")) == "A"
    assert computed == ["a"]
    assert (cache.hits, cache.misses) == (1, 1)
    assert "a" in cache

    cache.clear()
    assert len(cache) == 0


def test_memo_cache_evicts_least_recently_used() -> None:
    cache: MemoCache[int] = MemoCache(max_entries=2)
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("b", lambda: 2)
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("c", lambda: 3)

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache
    assert len(cache) == 2

    with pytest.raises(ValueError):
        MemoCache(max_entries=0)


def test_engine_config_defaults() -> None:
    config = EngineConfig()
    assert config.max_exchange_rate_age_millis == 65_000
    assert config.quorum_for("eth", "usd") == 3
    assert config.quorum_for("EUR", "USD") == 2
    assert config.debounce_millis == 150
    assert config.checkout_readiness_grace_period_millis == 500


def test_engine_config_from_env() -> None:
    config = EngineConfig.from_env(
        {
            "PAYKIT_DEFAULT_QUORUM": "1",
            "PAYKIT_DEBOUNCE_MILLIS": "50",
            "PAYKIT_QUORUM_OVERRIDES": json.dumps({"eth": {"usd": 4}}),
        }
    )
    assert config.default_quorum == 1
    assert config.debounce_millis == 50
    assert config.quorum_for("ETH", "USD") == 4
    assert config.quorum_for("EUR", "USD") == 1
    assert config.max_debounce_wait_millis == 150
    assert EngineConfig.from_env({}) == EngineConfig()
