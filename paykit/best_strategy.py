# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Optional, Sequence, Set, Tuple, TypeVar, Union

from paykit.exceptions import (
    StrategyNotFoundException,
    StrategySelectionLockedException,
)
from paykit.observable import IObserver, ObservableValue
from paykit.protocol.strategy import ProposedStrategy, Strategy, get_strategy_key

logger = logging.getLogger(__name__)

S = TypeVar("S", Strategy, ProposedStrategy)


class SigningStatus(Enum):
    IDLE = "IDLE"
    SIGNING = "SIGNING"
    """The sender's wallet is prompting to sign the current strategy's transaction."""

    SIGNED = "SIGNED"
    """The transaction was signed and broadcast."""

    ERROR = "ERROR"
    """Signing failed or was rejected. The sender may pick another strategy."""


@dataclass(frozen=True)
class NoStrategies:
    pass


@dataclass(frozen=True)
class HasBestStrategy(Generic[S]):
    best_strategy: S

    other_strategies: Tuple[S, ...]


BestStrategyState = Union[NoStrategies, HasBestStrategy]


class BestStrategySelector(Generic[S]):
    """
    Tracks which of a regenerating list of strategies is selected.

    By default the first (best ranked) strategy is selected. A strategy the user picked
    stays selected across regenerations for as long as a strategy with the same token and
    chain is still offered. Chains can be disabled for the rest of the session. While a
    transaction is being signed, or once it is signed, the selection is frozen so a late
    regeneration can't produce a second transfer for the same payment.
    """

    def __init__(self) -> None:
        self._strategies: Optional[List[S]] = None
        self._disabled_chain_ids: Set[int] = set()
        self._selected_key: Optional[str] = None
        self._is_user_selected = False
        self._signing_status = SigningStatus.IDLE
        self._locked_strategy: Optional[S] = None
        self._state: ObservableValue[BestStrategyState] = ObservableValue(
            NoStrategies(), is_equal=lambda a, b: a == b
        )

    @property
    def observer(self) -> IObserver[BestStrategyState]:
        return self._state.observer

    @property
    def state(self) -> BestStrategyState:
        return self._state.get_current_value()

    @property
    def best_strategy(self) -> Optional[S]:
        state = self.state
        return state.best_strategy if isinstance(state, HasBestStrategy) else None

    @property
    def other_strategies(self) -> Tuple[S, ...]:
        state = self.state
        return state.other_strategies if isinstance(state, HasBestStrategy) else ()

    @property
    def has_strategies(self) -> bool:
        """False until the first list is set, and whenever the last list was None."""
        return self._strategies is not None

    @property
    def disabled_chain_ids(self) -> Set[int]:
        return set(self._disabled_chain_ids)

    @property
    def can_select_new_strategy(self) -> bool:
        return self._signing_status not in (SigningStatus.SIGNING, SigningStatus.SIGNED)

    @property
    def is_user_selected(self) -> bool:
        return self._is_user_selected

    def set_strategies(self, strategies: Optional[Sequence[S]]) -> None:
        """Replaces the candidate list with a freshly generated one."""
        self._strategies = list(strategies) if strategies is not None else None
        self._update()

    def select_strategy(self, strategy: S) -> None:
        """
        Manually selects strategy.

        Raises:
            StrategySelectionLockedException: if a transaction is being signed or was signed.
            StrategyNotFoundException: if no current candidate has the strategy's token and chain.
        """
        if not self.can_select_new_strategy:
            raise StrategySelectionLockedException()
        key = get_strategy_key(strategy)
        if key not in (get_strategy_key(s) for s in self._available_strategies()):
            raise StrategyNotFoundException(f"Strategy {key} is not available.")
        self._selected_key = key
        self._is_user_selected = True
        self._update()

    def disable_all_strategies_originating_from_chain_id(self, chain_id: int) -> None:
        """
        Removes every strategy on chain_id from this and all future lists. Used after a
        transaction fee on that chain turned out to be unaffordable. Never undone.
        """
        if chain_id in self._disabled_chain_ids:
            return
        logger.info("Disabling all strategies on chain %s", chain_id)
        self._disabled_chain_ids.add(chain_id)
        self._update()

    def set_signing_status(self, signing_status: SigningStatus) -> None:
        self._signing_status = signing_status
        if self.can_select_new_strategy:
            self._locked_strategy = None
        elif self._locked_strategy is None:
            self._locked_strategy = self.best_strategy
        self._update()

    def _available_strategies(self) -> List[S]:
        if self._strategies is None:
            return []
        return [
            s
            for s in self._strategies
            if s.token.chain_id not in self._disabled_chain_ids
        ]

    def _update(self) -> None:
        available = self._available_strategies()
        best: Optional[S] = None
        if self._locked_strategy is not None:
            best = self._locked_strategy
        elif available:
            if self._is_user_selected:
                best = next(
                    (s for s in available if get_strategy_key(s) == self._selected_key),
                    None,
                )
            if best is None:
                best = available[0]
                self._is_user_selected = False
        if best is None:
            self._selected_key = None
            self._is_user_selected = False
            self._state.set_value_and_notify_observers(NoStrategies())
            return
        best_key = get_strategy_key(best)
        self._selected_key = best_key
        self._state.set_value_and_notify_observers(
            HasBestStrategy(
                best_strategy=best,
                other_strategies=tuple(
                    s for s in available if get_strategy_key(s) != best_key
                ),
            )
        )
