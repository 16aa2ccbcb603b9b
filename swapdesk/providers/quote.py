"""Async client for the routing service's quote endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..config import settings
from ..errors import ParseFailure
from .base import HttpProvider


class QuoteApiProvider(HttpProvider):
    """Thin wrapper around the quote endpoint. The response is passed through untouched."""

    name = "quote"

    def __init__(self, *, path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.path = path or settings.quote_path

    async def quote(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Request a quote.

        `request` follows the routing service schema (fromChainId, fromToken,
        toChainId, toToken, amount, slippagePercentage, user, ...).
        """
        params = {key: value for key, value in request.items() if value is not None}
        payload = await self._get_json(self.path, params=params)
        if not isinstance(payload, dict):
            raise ParseFailure("Unexpected response from quote API")
        return payload
