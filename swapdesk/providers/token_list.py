"""Supported-token list provider."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config import settings
from ..errors import ParseFailure
from .base import HttpProvider, TokenListProvider


class TokenListApiProvider(HttpProvider, TokenListProvider):
    """Fetch the authoritative flat token list served by the routing service."""

    name = "token_list"

    def __init__(self, *, path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.path = path or settings.tokens_path

    async def get_supported_tokens(self) -> List[Dict[str, Any]]:
        payload = await self._get_json(self.path)

        if isinstance(payload, dict):
            payload = payload.get("tokens")
        if not isinstance(payload, list):
            raise ParseFailure("Unexpected response from token list API")

        return payload
