"""Balance provider backed by the routing service's balances endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config import settings
from ..errors import ParseFailure
from .base import BalanceProvider, HttpProvider


class BalanceApiProvider(HttpProvider, BalanceProvider):
    """Fetch every balance of one account (EVM or StarkNet address) in a single call."""

    name = "balances"

    def __init__(self, *, path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.path = path or settings.balances_path

    async def get_balances(self, account_address: str) -> List[Dict[str, Any]]:
        payload = await self._get_json(self.path, params={"user": account_address})

        # Some deployments wrap the list in {"balances": [...]}
        if isinstance(payload, dict):
            payload = payload.get("balances")
        if not isinstance(payload, list):
            raise ParseFailure("Unexpected response from balances API")

        return [item for item in payload if isinstance(item, dict)]
