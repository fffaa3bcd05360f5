# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from typing import FrozenSet, Generic, Hashable, Optional, TypeVar

T = TypeVar("T", bound=Hashable)


@dataclass(frozen=True)
class AllowlistOrDenylist(Generic[T]):
    allowlist: Optional[FrozenSet[T]] = None
    """If set, only these values are permitted."""

    denylist: Optional[FrozenSet[T]] = None
    """If set, these values are not permitted."""

    def permits(self, value: T) -> bool:
        if self.denylist is not None and value in self.denylist:
            return False
        if self.allowlist is not None and value not in self.allowlist:
            return False
        return True


@dataclass(frozen=True)
class StrategyPreferences:
    """Receiver constraints applied to every generated strategy."""

    accepted_token_tickers: Optional[AllowlistOrDenylist[str]] = None

    accepted_chain_ids: Optional[AllowlistOrDenylist[int]] = None

    def permits_token(self, ticker: str, chain_id: int) -> bool:
        tickers = self.accepted_token_tickers
        if tickers is not None and not tickers.permits(ticker):
            return False
        chain_ids = self.accepted_chain_ids
        if chain_ids is not None and not chain_ids.permits(chain_id):
            return False
        return True
