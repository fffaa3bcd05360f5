# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Chain:
    chain_id: int

    name: str

    strategy_priority: int
    """Higher is preferred when ranking otherwise equivalent strategies. Roughly tracks fees."""


MAINNET_CHAIN_ID = 1
"""The L1. Strategies here are ranked last because of its fees."""

_CHAINS: Dict[int, Chain] = {
    chain.chain_id: chain
    for chain in [
        Chain(42161, "Arbitrum One", 900),
        Chain(8453, "Base", 850),
        Chain(10, "OP Mainnet", 800),
        Chain(1101, "Polygon zkEVM", 750),
        Chain(13371, "Immutable zkEVM", 740),
        Chain(167000, "Taiko", 725),
        Chain(324, "zkSync Era", 700),
        Chain(534352, "Scroll", 650),
        Chain(59144, "Linea", 625),
        Chain(7777777, "Zora", 600),
        Chain(81457, "Blast", 500),
        Chain(34443, "Mode", 400),
        Chain(42170, "Arbitrum Nova", 300),
        Chain(137, "Polygon", 100),
        Chain(MAINNET_CHAIN_ID, "Ethereum", 1),
    ]
}


def get_chain(chain_id: int) -> Optional[Chain]:
    return _CHAINS.get(chain_id)


def get_strategy_priority_for_chain_id(chain_id: int) -> float:
    chain = _CHAINS.get(chain_id)
    return chain.strategy_priority if chain is not None else float("-inf")


def is_l1_chain_id(chain_id: int) -> bool:
    return chain_id == MAINNET_CHAIN_ID
