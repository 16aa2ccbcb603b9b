"""Content-hash name resolution, only available on Ethereum mainnet."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from ..core.chains import SupportedChainId
from ..errors import ConfigurationFailure, FetchFailure

logger = logging.getLogger(__name__)

ContentHashLookup = Callable[[str], Awaitable[str]]


class NameResolver:
    """
    Guard around an external content-hash lookup.

    Args:
        chain_id: Chain the connected EVM wallet is on.
        lookup: Coroutine resolving a name to its content hash (None when no
            mainnet RPC is configured).
    """

    def __init__(self, chain_id: Optional[int], lookup: Optional[ContentHashLookup] = None) -> None:
        self.chain_id = chain_id
        self._lookup = lookup

    @property
    def supported(self) -> bool:
        return self._lookup is not None and self.chain_id == SupportedChainId.MAINNET

    async def resolve_content_hash(self, name: str) -> str:
        if not self.supported:
            raise ConfigurationFailure("Could not construct mainnet name resolver")

        try:
            return await self._lookup(name)  # type: ignore[misc]
        except FetchFailure:
            raise
        except Exception as exc:
            logger.warning("Content hash lookup for %s failed: %s", name, exc)
            raise FetchFailure(f"Failed to resolve {name}: {exc}", provider="names") from exc
