"""
Chain identification and account-class routing.

EVM chains and StarkNet share the integer chain-id namespace but belong to
different wallets, so every chain maps to exactly one account class.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import List, Optional


class SupportedChainId(IntEnum):
    MAINNET = 1
    ROPSTEN = 3
    RINKEBY = 4
    GOERLI = 5
    KOVAN = 42

    ARBITRUM_ONE = 42161
    ARBITRUM_RINKEBY = 421611

    OPTIMISM = 10
    OPTIMISM_GOERLI = 420

    POLYGON = 137
    POLYGON_MUMBAI = 80001

    CELO = 42220
    CELO_ALFAJORES = 44787

    STARKNET = 15366
    STARKNET_GOERLI = 15367

    FANTOM = 250

    AURORA = 1313161554
    AURORA_TESTNET = 1313161555

    BSC = 56

    AVALANCHE = 43114

    BASE = 8453


VISIBLE_CHAIN_IDS: List[int] = [
    SupportedChainId.MAINNET,
    SupportedChainId.POLYGON,
    SupportedChainId.STARKNET,
    SupportedChainId.ARBITRUM_ONE,
    SupportedChainId.OPTIMISM,
    SupportedChainId.FANTOM,
    SupportedChainId.BSC,
    SupportedChainId.AVALANCHE,
    SupportedChainId.BASE,
]

STARKNET_CHAIN_IDS = frozenset({SupportedChainId.STARKNET, SupportedChainId.STARKNET_GOERLI})

# Token feeds mark the native asset with the zero address; internally it is
# always keyed by NATIVE_ADDRESS.
NATIVE_SENTINEL = "0x0000000000000000000000000000000000000000"
NATIVE_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


class AccountClass(str, Enum):
    """Wallet namespace holding balances for a set of chains."""
    EVM = "evm"
    STARKNET = "starknet"


def is_starknet_chain(chain_id: Optional[int]) -> bool:
    return chain_id in STARKNET_CHAIN_IDS


def account_class_for_chain(chain_id: int) -> AccountClass:
    """Return the account class whose wallet holds assets on ``chain_id``."""
    return AccountClass.STARKNET if is_starknet_chain(chain_id) else AccountClass.EVM


def is_native_address(address: Optional[str]) -> bool:
    """True for both the feed sentinel and the canonical native address."""
    if not address:
        return False
    lowered = address.lower()
    return lowered in (NATIVE_SENTINEL, NATIVE_ADDRESS.lower())


def canonical_address(address: str) -> str:
    """Alias the native sentinel to NATIVE_ADDRESS; other addresses pass through."""
    return NATIVE_ADDRESS if is_native_address(address) else address
