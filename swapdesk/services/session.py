"""
Swap session wiring.

One session owns the token catalog, the balance cache and the outbound
provider clients. Nothing here is process-global; tests and the API each
build their own session.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..config import Settings, settings as default_settings
from ..core.chains import AccountClass
from ..core.trade import Trade, trade_from_quote
from ..errors import ConfigurationFailure
from ..providers import BalanceApiProvider, NameResolver, QuoteApiProvider, TokenListApiProvider
from ..providers.base import BalanceProvider, TokenListProvider
from ..providers.names import ContentHashLookup
from .balances import BalanceCache
from .store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .token_cache import PersistentTokenListCache
from .token_list import TokenListService

logger = logging.getLogger(__name__)


class SwapSession:
    """
    Aggregation session for one connected user.

    Args:
        token_provider: Source of the authoritative token list.
        balance_providers: Balance provider per account class.
        store: Backing store for the persisted token list (None disables it).
        quote_provider: Optional quote client used by ``fetch_trade``.
        name_lookup: Optional mainnet content-hash lookup.
    """

    def __init__(
        self,
        token_provider: TokenListProvider,
        balance_providers: Dict[AccountClass, BalanceProvider],
        store: Optional[KeyValueStore] = None,
        quote_provider: Optional[QuoteApiProvider] = None,
        name_lookup: Optional[ContentHashLookup] = None,
    ) -> None:
        self.token_provider = token_provider
        self.balance_providers = dict(balance_providers)
        self.quote_provider = quote_provider
        self.tokens = TokenListService(
            token_provider,
            PersistentTokenListCache(store) if store is not None else None,
        )
        self.balances = BalanceCache(self.balance_providers)
        self._name_lookup = name_lookup
        self.evm_chain_id: Optional[int] = None

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "SwapSession":
        """Build a session talking to the configured routing service."""
        config = config or default_settings
        http_kwargs: Dict[str, Any] = {
            "base_url": config.api_base_url,
            "timeout_s": config.request_timeout_seconds,
        }
        balance_provider = BalanceApiProvider(path=config.balances_path, **http_kwargs)

        store: KeyValueStore
        if config.enable_token_store:
            store = FileKeyValueStore(config.token_store_dir)
        else:
            store = MemoryKeyValueStore()

        return cls(
            token_provider=TokenListApiProvider(path=config.tokens_path, **http_kwargs),
            # One endpoint serves both address formats
            balance_providers={
                AccountClass.EVM: balance_provider,
                AccountClass.STARKNET: balance_provider,
            },
            store=store,
            quote_provider=QuoteApiProvider(path=config.quote_path, **http_kwargs),
        )

    @property
    def names(self) -> NameResolver:
        return NameResolver(self.evm_chain_id, self._name_lookup)

    def connect(
        self,
        evm_address: Optional[str] = None,
        starknet_address: Optional[str] = None,
        evm_chain_id: Optional[int] = None,
    ) -> None:
        """Set the active accounts; must run inside the event loop."""
        self.evm_chain_id = evm_chain_id
        self.balances.set_active_account(AccountClass.EVM, evm_address)
        self.balances.set_active_account(AccountClass.STARKNET, starknet_address)

    async def fetch_trade(self, request: Dict[str, Any]) -> Trade:
        """Request a quote and resolve it against the current catalog."""
        if self.quote_provider is None:
            raise ConfigurationFailure("No quote provider configured")
        payload = await self.quote_provider.quote(request)
        return trade_from_quote(payload, self.tokens.catalog)

    async def health_check(self) -> Dict[str, Any]:
        providers: Dict[str, Any] = {"token_list": await self.token_provider.health_check()}
        for account_class, provider in self.balance_providers.items():
            providers[f"balances_{account_class.value}"] = await provider.health_check()
        if self.quote_provider is not None:
            providers["quote"] = await self.quote_provider.health_check()
        return providers

    async def aclose(self) -> None:
        await self.tokens.aclose()
        await self.balances.aclose()

        closed = set()
        providers = [self.token_provider, *self.balance_providers.values(), self.quote_provider]
        for provider in providers:
            if provider is None or id(provider) in closed:
                continue
            closed.add(id(provider))
            await provider.aclose()
        logger.debug("Swap session closed")

    async def __aenter__(self) -> "SwapSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
