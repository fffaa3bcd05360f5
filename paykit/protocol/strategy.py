# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from paykit.protocol.payment import Payment, PrimaryWithSecondaries, ProposedPayment
from paykit.protocol.token_transfer import ProposedTokenTransfer, TokenTransfer
from paykit.tokens import Token, TokenKey, get_token_key


class StrategyKind(Enum):
    PROPOSED = "PROPOSED"
    REAL = "REAL"


@dataclass(frozen=True)
class Strategy:
    """A settlement option bound to a sender's wallet: one token transfer that settles the payment."""

    payment: Payment

    token_transfer: TokenTransfer

    kind: StrategyKind = field(default=StrategyKind.REAL, init=False)

    @property
    def token(self) -> Token:
        return self.token_transfer.token

    @property
    def amount(self) -> int:
        return self.token_transfer.amount

    @property
    def logical_asset_tickers(self) -> PrimaryWithSecondaries:
        return self.payment.logical_asset_tickers


@dataclass(frozen=True)
class ProposedStrategy:
    """An illustrative settlement option shown before a wallet is connected."""

    proposed_payment: ProposedPayment

    proposed_token_transfer: ProposedTokenTransfer

    kind: StrategyKind = field(default=StrategyKind.PROPOSED, init=False)

    @property
    def token(self) -> Token:
        return self.proposed_token_transfer.token

    @property
    def amount(self) -> int:
        return self.proposed_token_transfer.amount

    @property
    def logical_asset_tickers(self) -> PrimaryWithSecondaries:
        return self.proposed_payment.logical_asset_tickers


AnyStrategy = Union[Strategy, ProposedStrategy]


def get_strategy_key(strategy: AnyStrategy) -> TokenKey:
    """Stable identity of a strategy across regenerations: the token and chain it settles with."""
    return get_token_key(strategy.token)
