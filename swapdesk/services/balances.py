"""
Balance Cache.

Per-session, per-account-class balance fetcher with merge semantics.

Features:
- At most one provider call per (account class, address) per session
- Native-asset headroom correction
- Merged BalanceMap across the active EVM and StarkNet accounts, memoized on
  (active accounts, raw-store version)
- Failed fetches are recorded, never retried and never raised to readers
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.chains import NATIVE_ADDRESS, AccountClass, account_class_for_chain, canonical_address
from ..core.currency import Currency, CurrencyAmount, NativeCurrency, Token
from ..errors import ConfigurationFailure, FetchFailure, ParseFailure
from ..providers.base import BalanceProvider

logger = logging.getLogger(__name__)

# Smallest units withheld from the native balance so a "max" transfer still
# leaves something for gas; some wallets reject the transaction otherwise.
NATIVE_BALANCE_HEADROOM = 2

BalanceMap = Dict[int, Dict[str, CurrencyAmount]]


@dataclass(frozen=True)
class Balance:
    """One (account, chain, token) balance as returned by the balance provider."""
    chain_id: int
    address: str
    balance: str
    decimals: int
    symbol: str = ""
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Balance":
        try:
            balance = str(data["balance"]).strip()
            if not balance.isdigit():
                raise ValueError(f"balance is not an unsigned integer: {balance!r}")
            return cls(
                chain_id=int(data["chainId"]),
                address=canonical_address(str(data["address"])),
                balance=balance,
                decimals=int(data.get("decimals", 18)),
                symbol=str(data.get("symbol") or ""),
                name=str(data.get("name") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseFailure(f"Malformed balance entry: {exc}") from exc

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_ADDRESS

    def to_currency(self) -> Currency:
        if self.is_native:
            return NativeCurrency(chain_id=self.chain_id, decimals=self.decimals, symbol=self.symbol, name=self.name)
        return Token(
            chain_id=self.chain_id,
            address=self.address,
            decimals=self.decimals,
            symbol=self.symbol,
            name=self.name,
        )


def native_balance_correction(raw_balance: int, headroom: int = NATIVE_BALANCE_HEADROOM) -> int:
    """Withhold ``headroom`` smallest units; balances below it expose zero."""
    return max(raw_balance - headroom, 0)


def merge_balances(balance_lists: List[List[Balance]]) -> BalanceMap:
    """Merge balance lists in order; a later (chain, address) entry wins."""
    merged: BalanceMap = {}
    for balances in balance_lists:
        for item in balances:
            raw = int(item.balance)
            if item.is_native:
                raw = native_balance_correction(raw)
            merged.setdefault(item.chain_id, {})[item.address] = CurrencyAmount(
                currency=item.to_currency(),
                raw=raw,
            )
    return merged


def has_sufficient_balance(balance: Optional[CurrencyAmount], amount: Optional[CurrencyAmount]) -> bool:
    """True only when both are known and the balance covers the amount."""
    if balance is None or amount is None:
        return False
    return amount.raw <= balance.raw


class BalanceCache:
    """
    Session-scoped balance store for every connected account.

    Usage:
        cache = BalanceCache({AccountClass.EVM: provider, AccountClass.STARKNET: provider})
        cache.set_active_account(AccountClass.EVM, "0x...")
        await cache.wait_for_pending()
        cache.lookup(currency)
    """

    def __init__(self, providers: Mapping[AccountClass, BalanceProvider]) -> None:
        self._providers: Dict[AccountClass, BalanceProvider] = dict(providers)
        self._tasks: Dict[AccountClass, Dict[str, asyncio.Task]] = {cls: {} for cls in AccountClass}
        self._raw: Dict[AccountClass, Dict[str, List[Balance]]] = {cls: {} for cls in AccountClass}
        self._errors: Dict[AccountClass, Dict[str, Exception]] = {cls: {} for cls in AccountClass}
        self._active: Dict[AccountClass, Optional[str]] = {cls: None for cls in AccountClass}
        self._version = 0
        self._memo: Optional[Tuple[Tuple[Any, ...], BalanceMap]] = None

    # =========================================================================
    # Fetch dispatch
    # =========================================================================

    def is_dispatched(self, account_class: AccountClass, address: str) -> bool:
        return address in self._tasks[account_class]

    def is_fetched(self, account_class: AccountClass, address: str) -> bool:
        return address in self._raw[account_class]

    def ensure_fetch_dispatched(self, account_class: AccountClass, address: str) -> asyncio.Task:
        """
        Start the balance fetch for ``address`` unless one was already started.

        The registry check and the task registration happen with no await in
        between, so repeated calls within the event loop never issue a second
        provider call. Must be called from a running event loop.
        """
        existing = self._tasks[account_class].get(address)
        if existing is not None:
            return existing

        provider = self._providers.get(account_class)
        if provider is None:
            raise ConfigurationFailure(f"No balance provider configured for {account_class.value} accounts")

        task = asyncio.get_running_loop().create_task(
            self._fetch(account_class, provider, address),
            name=f"balances:{account_class.value}:{address}",
        )
        self._tasks[account_class][address] = task
        logger.debug("Dispatched %s balance fetch for %s", account_class.value, address)
        return task

    async def _fetch(self, account_class: AccountClass, provider: BalanceProvider, address: str) -> None:
        try:
            items = list(await provider.get_balances(address))
        except (FetchFailure, ParseFailure) as exc:
            self._errors[account_class][address] = exc
            logger.warning(f"Balance fetch failed for {account_class.value} account {address}: {exc}")
            return
        except Exception as exc:
            # Any other provider error is recorded the same way
            self._errors[account_class][address] = exc
            logger.error(
                f"Balance provider {getattr(provider, 'name', provider)!r} raised for {address}: {exc!r}",
                exc_info=True,
            )
            return

        balances: List[Balance] = []
        for item in items:
            try:
                balances.append(Balance.from_api(item))
            except ParseFailure as exc:
                logger.debug("Skipping balance entry for %s: %s", address, exc)

        self._raw[account_class] = {**self._raw[account_class], address: balances}
        self._version += 1
        logger.info("Stored %d %s balances for %s", len(balances), account_class.value, address)

    def fetch_error(self, account_class: AccountClass, address: str) -> Optional[Exception]:
        return self._errors[account_class].get(address)

    async def wait_for_pending(self) -> None:
        pending = [task for tasks in self._tasks.values() for task in tasks.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # =========================================================================
    # Active accounts
    # =========================================================================

    @property
    def active_accounts(self) -> Dict[AccountClass, Optional[str]]:
        return dict(self._active)

    def set_active_account(self, account_class: AccountClass, address: Optional[str]) -> None:
        """Switch the connected account of one class; a new address gets its fetch dispatched."""
        self._active[account_class] = address or None
        if address:
            self.ensure_fetch_dispatched(account_class, address)

    # =========================================================================
    # Derived views
    # =========================================================================

    def current_balance_map(self) -> BalanceMap:
        """Merged balances of the active accounts, EVM first then StarkNet."""
        key = (self._version, tuple(self._active[cls] for cls in AccountClass))
        if self._memo is not None and self._memo[0] == key:
            return self._memo[1]

        balance_lists = [
            self._raw[cls].get(address, [])
            for cls, address in self._active.items()
            if address
        ]
        merged = merge_balances(balance_lists)
        self._memo = (key, merged)
        return merged

    def lookup(self, currency: Optional[Currency]) -> Optional[CurrencyAmount]:
        """Balance of ``currency`` for its account, or None if not fetched or not held."""
        if currency is None:
            return None
        address = NATIVE_ADDRESS if currency.is_native else currency.address
        return self.current_balance_map().get(currency.chain_id, {}).get(address)

    def account_for_currency(self, currency: Currency) -> Optional[str]:
        """Active address of the account class that holds ``currency``."""
        return self._active[account_class_for_chain(currency.chain_id)]

    # =========================================================================
    # Teardown
    # =========================================================================

    async def aclose(self) -> None:
        pending = [task for tasks in self._tasks.values() for task in tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
