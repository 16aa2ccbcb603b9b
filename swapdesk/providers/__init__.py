from .balances import BalanceApiProvider
from .base import BalanceProvider, HttpProvider, Provider, TokenListProvider
from .names import NameResolver
from .quote import QuoteApiProvider
from .token_list import TokenListApiProvider

__all__ = [
    "BalanceApiProvider",
    "BalanceProvider",
    "HttpProvider",
    "Provider",
    "TokenListProvider",
    "NameResolver",
    "QuoteApiProvider",
    "TokenListApiProvider",
]
