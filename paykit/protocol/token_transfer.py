# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from typing import Optional

from paykit.protocol.payment import AddressOrEnsName
from paykit.tokens import Token


@dataclass(frozen=True)
class ProposedTokenTransfer:
    token: Token

    amount: int
    """Amount in the token's own decimals."""

    receiver: AddressOrEnsName

    sender_address: Optional[str] = None


@dataclass(frozen=True)
class TokenTransfer:
    token: Token

    amount: int
    """Amount in the token's own decimals."""

    receiver_address: str

    sender_address: str
