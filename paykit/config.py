# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import json
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from paykit.type_utils import normalize_ticker


def _default_quorum_overrides() -> Dict[str, Dict[str, int]]:
    # ETH/USD has the most independent sources, so it is held to a higher bar.
    return {"ETH": {"USD": 3}}


@dataclass
class EngineConfig:
    """
    Tunables for exchange rate aggregation, fetch scheduling and checkout readiness.
    All durations are in milliseconds.
    """

    max_exchange_rate_age_millis: int = 65_000
    """An observation is stale once now >= its timestamp + this age."""

    default_quorum: int = 2
    """Minimum number of non-stale sources for a pair without an override."""

    quorum_overrides: Dict[str, Dict[str, int]] = field(
        default_factory=_default_quorum_overrides
    )
    """Per-pair quorum, keyed denominator -> numerator."""

    recompute_interval_millis: int = 2_000
    """Period of the recompute tick that ages out stale observations without new data."""

    debounce_millis: int = 150
    """Quiet period after the last table change before it is published."""

    max_debounce_wait_millis: int = 150
    """Upper bound between the first unpublished change and its forced publication."""

    default_refetch_interval_millis: int = 29_000
    """Refetch interval for rate sources that do not specify their own."""

    balance_refetch_interval_millis: int = 12_000
    """Time between balance fetches for each tracked token, about one L1 block."""

    recently_visible_millis: int = 13_000
    """How long after the page is hidden fetch loops keep running."""

    checkout_readiness_grace_period_millis: int = 500
    """How long to report loading before concluding the sender has no payment options."""

    def quorum_for(self, denominator_ticker: str, numerator_ticker: str) -> int:
        return self.quorum_overrides.get(normalize_ticker(denominator_ticker), {}).get(
            normalize_ticker(numerator_ticker), self.default_quorum
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Builds a config from PAYKIT_* environment variables, falling back to defaults for
        anything unset. PAYKIT_QUORUM_OVERRIDES is a JSON object, eg. {"ETH": {"USD": 3}}.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            return int(raw) if raw else default

        overrides = defaults.quorum_overrides
        raw_overrides = env.get("PAYKIT_QUORUM_OVERRIDES")
        if raw_overrides:
            overrides = {
                normalize_ticker(denominator): {
                    normalize_ticker(numerator): int(quorum)
                    for numerator, quorum in numerators.items()
                }
                for denominator, numerators in json.loads(raw_overrides).items()
            }

        return cls(
            max_exchange_rate_age_millis=_int(
                "PAYKIT_MAX_EXCHANGE_RATE_AGE_MILLIS",
                defaults.max_exchange_rate_age_millis,
            ),
            default_quorum=_int("PAYKIT_DEFAULT_QUORUM", defaults.default_quorum),
            quorum_overrides=overrides,
            recompute_interval_millis=_int(
                "PAYKIT_RECOMPUTE_INTERVAL_MILLIS", defaults.recompute_interval_millis
            ),
            debounce_millis=_int("PAYKIT_DEBOUNCE_MILLIS", defaults.debounce_millis),
            max_debounce_wait_millis=_int(
                "PAYKIT_MAX_DEBOUNCE_WAIT_MILLIS", defaults.max_debounce_wait_millis
            ),
            default_refetch_interval_millis=_int(
                "PAYKIT_DEFAULT_REFETCH_INTERVAL_MILLIS",
                defaults.default_refetch_interval_millis,
            ),
            balance_refetch_interval_millis=_int(
                "PAYKIT_BALANCE_REFETCH_INTERVAL_MILLIS",
                defaults.balance_refetch_interval_millis,
            ),
            recently_visible_millis=_int(
                "PAYKIT_RECENTLY_VISIBLE_MILLIS", defaults.recently_visible_millis
            ),
            checkout_readiness_grace_period_millis=_int(
                "PAYKIT_CHECKOUT_READINESS_GRACE_PERIOD_MILLIS",
                defaults.checkout_readiness_grace_period_millis,
            ),
        )
