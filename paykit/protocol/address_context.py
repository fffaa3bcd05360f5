# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass, field
from typing import Dict, Optional

from paykit.protocol.token_balance import TokenBalance
from paykit.tokens import TokenKey


@dataclass
class AddressContext:
    """
    The balances known for one address. A token with no entry has no balance, or only dust.
    Published snapshots are treated as read-only by consumers.
    """

    address: str

    token_balances: Dict[TokenKey, TokenBalance] = field(default_factory=dict)

    def get_balance(self, token_key: TokenKey) -> Optional[int]:
        token_balance = self.token_balances.get(token_key)
        return token_balance.balance if token_balance is not None else None

    def copy(self) -> "AddressContext":
        return AddressContext(address=self.address, token_balances=dict(self.token_balances))
