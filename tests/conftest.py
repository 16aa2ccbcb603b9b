"""Shared fixtures: a small multi-chain token list and in-process providers."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from swapdesk.core.catalog import build_catalog
from swapdesk.providers.base import BalanceProvider, TokenListProvider

ZERO = "0x0000000000000000000000000000000000000000"
NATIVE = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
USDC_MAINNET = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDC_POLYGON = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
STARK_ETH = "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"
GNOSIS_USDC = "0xDDAfbb505ad214D7b80b1f830fcCc89B60fb7A83"

EVM_ACCOUNT = "0x1111111111111111111111111111111111111111"
OTHER_EVM_ACCOUNT = "0x2222222222222222222222222222222222222222"
STARKNET_ACCOUNT = "0x0333333333333333333333333333333333333333333333333333333333333333"


def token_list() -> List[Dict[str, Any]]:
    return [
        {"chainId": 1, "address": ZERO, "decimals": 18, "symbol": "ETH", "name": "Ether"},
        {"chainId": 1, "address": USDC_MAINNET, "decimals": 6, "symbol": "USDC", "name": "USD Coin"},
        {"chainId": 137, "address": ZERO, "decimals": 18, "symbol": "MATIC", "name": "Matic"},
        {"chainId": 137, "address": USDC_POLYGON, "decimals": 6, "symbol": "USDC", "name": "USD Coin (PoS)"},
        {"chainId": 15366, "address": STARK_ETH, "decimals": 18, "symbol": "ETH", "name": "Ether"},
        {"chainId": 100, "address": GNOSIS_USDC, "decimals": 6, "symbol": "USDC", "name": "USD Coin on xDai"},
    ]


class FakeBalanceProvider(BalanceProvider):
    """Returns canned balances per account and counts calls."""

    name = "fake_balances"

    def __init__(
        self,
        balances: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.balances = balances or {}
        self.error = error
        self.gate = gate
        self.calls: List[str] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "configured"}

    async def get_balances(self, account_address: str) -> List[Dict[str, Any]]:
        self.calls.append(account_address)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.balances.get(account_address, []))


class FakeTokenListProvider(TokenListProvider):
    name = "fake_tokens"

    def __init__(self, tokens: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.tokens = tokens if tokens is not None else token_list()
        self.error = error
        self.calls = 0

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "configured"}

    async def get_supported_tokens(self) -> List[Dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.tokens)


@pytest.fixture
def tokens() -> List[Dict[str, Any]]:
    return token_list()


@pytest.fixture
def catalog(tokens):
    return build_catalog(tokens)
