from .balances import Balance, BalanceCache, has_sufficient_balance, native_balance_correction
from .session import SwapSession
from .store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .token_cache import TOKEN_LIST_STORE_KEY, PersistentTokenListCache
from .token_list import TokenListService

__all__ = [
    "Balance",
    "BalanceCache",
    "has_sufficient_balance",
    "native_balance_correction",
    "SwapSession",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "TOKEN_LIST_STORE_KEY",
    "PersistentTokenListCache",
    "TokenListService",
]
