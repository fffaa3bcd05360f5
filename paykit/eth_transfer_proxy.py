# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from enum import Enum
from typing import Dict, Optional


class NativeTokenTransferProxyMode(Enum):
    """Whether native currency transfers go through the transfer proxy contract."""

    NEVER = "never"
    """Always send native currency directly."""

    PREFER = "prefer"
    """Use the proxy on chains where it is deployed, otherwise send directly."""

    REQUIRE = "require"
    """Only chains with a proxy deployment may receive native currency."""


# chain id -> canonical deployment of the native currency transfer proxy
ETH_TRANSFER_PROXY_CONTRACT_ADDRESSES: Dict[int, str] = {
    11155111: "0x374f328ba653bc43e42cbeb41e4f8cf2647edb6e",
    300: "0x35626B9C13D0D72C4153026C9A8581d3991C5C6e",
}


def get_eth_transfer_proxy_contract_address(chain_id: int) -> Optional[str]:
    return ETH_TRANSFER_PROXY_CONTRACT_ADDRESSES.get(chain_id)
