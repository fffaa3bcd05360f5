# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from paykit.config import EngineConfig
from paykit.fetch_loop import RefetchLoop
from paykit.observable import IObserver, ObservableValue
from paykit.protocol.address_context import AddressContext
from paykit.protocol.token_balance import TokenBalance, is_dust
from paykit.time_utils import Clock, now_millis
from paykit.tokens import Token, get_all_tokens, get_token_key
from paykit.visibility import VisibilityTracker

logger = logging.getLogger(__name__)


class IBalanceSource(ABC):
    @abstractmethod
    async def fetch_balance(self, address: str, token: Token) -> Optional[int]:
        """
        Fetches the balance of a token held by an address on the token's chain.

        Args:
            address: the holder.
            token: the token, which also identifies the chain to query.

        Returns:
            The balance in the token's own decimals, or None if it is unavailable.
        """


class AddressContextUpdater:
    """
    Single writer of the connected sender's AddressContext.

    Switching address publishes an empty context and bumps a generation counter. A
    balance update carries the generation it was requested under, so one that was in
    flight across an address switch is dropped instead of leaking into the new context.
    """

    def __init__(self, clock: Clock = now_millis) -> None:
        self._clock = clock
        self._generation = 0
        self._address_context: ObservableValue[Optional[AddressContext]] = (
            ObservableValue(None)
        )

    @property
    def observer(self) -> IObserver[Optional[AddressContext]]:
        return self._address_context.observer

    @property
    def address_context(self) -> Optional[AddressContext]:
        return self._address_context.get_current_value()

    @property
    def generation(self) -> int:
        return self._generation

    def set_address(self, address: Optional[str]) -> int:
        """
        Connects address, or disconnects with None. Returns the generation that balance
        updates for this address must carry.
        """
        current = self.address_context
        if current is not None and address is not None and current.address == address:
            return self._generation
        if current is None and address is None:
            return self._generation
        self._generation += 1
        logger.info(
            "Sender address changed to %s, resetting balances (generation %d)",
            address,
            self._generation,
        )
        self._address_context.set_value_and_notify_observers(
            AddressContext(address=address) if address is not None else None
        )
        return self._generation

    def apply_balance_update(
        self,
        generation: int,
        token: Token,
        balance: Optional[int],
        balance_as_of_millis: Optional[int] = None,
    ) -> bool:
        """
        Records a fetched balance. An unavailable or dust balance removes the token's entry.
        Returns whether a new context was published.
        """
        if generation != self._generation:
            logger.debug(
                "Dropping balance of %s from generation %d, current is %d",
                get_token_key(token),
                generation,
                self._generation,
            )
            return False
        current = self.address_context
        if current is None:
            return False

        token_key = get_token_key(token)
        token_balance: Optional[TokenBalance] = None
        if balance is not None:
            token_balance = TokenBalance(
                address=current.address,
                token_key=token_key,
                balance=balance,
                balance_as_of_millis=balance_as_of_millis
                if balance_as_of_millis is not None
                else self._clock(),
            )
            if is_dust(token_balance):
                token_balance = None

        existing = current.token_balances.get(token_key)
        if token_balance is None and existing is None:
            return False
        if (
            token_balance is not None
            and existing is not None
            and token_balance.balance == existing.balance
        ):
            return False

        updated = current.copy()
        if token_balance is None:
            del updated.token_balances[token_key]
        else:
            updated.token_balances[token_key] = token_balance
        return self._address_context.set_value_and_notify_observers(updated)


class BalanceTracker:
    """Runs one balance fetch loop per token for the connected address."""

    def __init__(
        self,
        updater: AddressContextUpdater,
        balance_source: IBalanceSource,
        config: Optional[EngineConfig] = None,
        tokens: Optional[Sequence[Token]] = None,
        visibility: Optional[VisibilityTracker] = None,
        clock: Clock = now_millis,
    ) -> None:
        self._updater = updater
        self._balance_source = balance_source
        self._refetch_interval_millis = (
            config or EngineConfig()
        ).balance_refetch_interval_millis
        self._tokens = list(tokens) if tokens is not None else get_all_tokens()
        self._visibility = visibility
        self._clock = clock
        self._loops: List[RefetchLoop[Optional[int]]] = []

    def connect(self, address: str) -> None:
        """Resets balances for address and starts fetching them. Requires a running event loop."""
        self._stop_loops()
        generation = self._updater.set_address(address)
        for token in self._tokens:
            loop = RefetchLoop(
                name=f"balance {get_token_key(token)}",
                fetch=self._make_fetch(address, token),
                on_result=self._make_result_handler(generation, token),
                interval_millis=self._refetch_interval_millis,
                visibility=self._visibility,
                clock=self._clock,
            )
            self._loops.append(loop)
            loop.start()

    def disconnect(self) -> None:
        self._stop_loops()
        self._updater.set_address(None)

    def _stop_loops(self) -> None:
        for loop in self._loops:
            loop.stop()
        self._loops = []

    def _make_fetch(self, address: str, token: Token):
        async def fetch() -> Optional[int]:
            return await self._balance_source.fetch_balance(address, token)

        return fetch

    def _make_result_handler(self, generation: int, token: Token):
        def on_balance(balance: Optional[int], fetched_at: int) -> None:
            self._updater.apply_balance_update(generation, token, balance, fetched_at)

        return on_balance
