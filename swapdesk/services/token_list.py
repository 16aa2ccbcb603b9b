"""
Token List Service

Keeps the session's ChainTokenMap current.

Flow:
1. Warm start from the persisted token list so pickers are never empty.
2. Fetch the authoritative list from the token-list provider.
3. Replace the in-memory catalog and the persisted copy.

A failed authoritative fetch leaves the stale catalog in place and raises
TokenCatalogUnavailable to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..core.catalog import ChainTokenMap, TokenDescriptor, build_catalog
from ..errors import FetchFailure, ParseFailure, TokenCatalogUnavailable
from ..providers.base import TokenListProvider
from .token_cache import PersistentTokenListCache

logger = logging.getLogger(__name__)


class TokenListService:
    """
    Owner of the session's token catalog.

    Usage:
        service = TokenListService(provider, cache)
        service.warm_start()
        await service.refresh()
        service.catalog.get(1, NATIVE_ADDRESS)
    """

    def __init__(
        self,
        provider: TokenListProvider,
        cache: Optional[PersistentTokenListCache] = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._catalog = ChainTokenMap()
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_error: Optional[TokenCatalogUnavailable] = None

    @property
    def catalog(self) -> ChainTokenMap:
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self._catalog.is_loaded

    @property
    def refresh_error(self) -> Optional[TokenCatalogUnavailable]:
        """Failure of the last authoritative fetch; None once a fetch succeeds.

        While set, the catalog (if loaded) is the persisted copy and may be stale.
        """
        return self._refresh_error

    def warm_start(self) -> bool:
        """Build the catalog from the persisted list. Returns True when one was found."""
        if self._cache is None:
            return False

        tokens = self._cache.load()
        if not tokens:
            return False

        self._catalog = build_catalog(tokens)
        logger.info(
            "Loaded %d persisted tokens across %d chains",
            len(tokens),
            len(self._catalog),
        )
        return True

    async def refresh(self) -> ChainTokenMap:
        """
        Fetch the authoritative token list and swap it in.

        Raises:
            TokenCatalogUnavailable: provider failed or returned malformed data.
        """
        try:
            raw_tokens = await self._provider.get_supported_tokens()
        except (FetchFailure, ParseFailure) as exc:
            logger.error(f"Failed to fetch supported tokens: {exc}")
            self._refresh_error = TokenCatalogUnavailable(
                f"Token list unavailable: {exc}",
                provider=getattr(exc, "provider", None),
                status_code=getattr(exc, "status_code", None),
            )
            raise self._refresh_error from exc

        tokens: List[TokenDescriptor] = []
        for item in raw_tokens:
            try:
                tokens.append(TokenDescriptor.from_dict(item))
            except ParseFailure as exc:
                logger.debug("Skipping token entry: %s", exc)

        self._catalog = build_catalog(tokens)
        self._refresh_error = None
        if self._cache is not None:
            self._cache.save(tokens)

        logger.info("Token catalog refreshed: %d tokens across %d chains", len(tokens), len(self._catalog))
        return self._catalog

    async def initialize(self) -> ChainTokenMap:
        """Warm start, then refresh. The stale catalog stays if the refresh raises."""
        self.warm_start()
        return await self.refresh()

    def start(self) -> asyncio.Task:
        """Warm start synchronously and schedule the refresh; callers await the task for errors."""
        if self._refresh_task is None:
            self.warm_start()
            self._refresh_task = asyncio.create_task(self.refresh(), name="token-list-refresh")
            self._refresh_task.add_done_callback(_log_refresh_outcome)
        return self._refresh_task

    async def ensure_loaded(self) -> ChainTokenMap:
        """
        Return a non-empty catalog, waiting on (or starting) the authoritative fetch.

        A persisted catalog is returned as is, even after a failed refresh;
        ``refresh_error`` tells whether it is stale.

        Raises:
            TokenCatalogUnavailable: nothing persisted and the fetch failed.
        """
        if self.is_loaded:
            return self._catalog
        if self._refresh_task is not None and not self._refresh_task.done():
            return await self._refresh_task
        return await self.refresh()

    async def aclose(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
        self._refresh_task = None


def _log_refresh_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Background token list refresh failed: %s", exc)
