from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import FetchFailure, ParseFailure

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Base provider interface"""

    name: str

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None


class BalanceProvider(Provider):
    """Provider for per-account token balances"""

    @abstractmethod
    async def get_balances(self, account_address: str) -> List[Dict[str, Any]]:
        """Get every token balance held by an account, across its chains"""
        pass


class TokenListProvider(Provider):
    """Provider for the authoritative supported-token list"""

    @abstractmethod
    async def get_supported_tokens(self) -> List[Dict[str, Any]]:
        """Get the flat list of supported token descriptors"""
        pass


class HttpProvider(Provider):
    """
    Shared httpx plumbing for the routing service endpoints.

    Transport errors and non-2xx responses become FetchFailure; a body that is
    not JSON becomes ParseFailure.
    """

    name = "http"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> Dict[str, str]:
        return {"accept": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                headers=self._headers(),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "Base URL not configured"}
        # Avoid hitting the API on every health check – report configured state.
        return {"status": "configured", "base_url": self.base_url}

    async def _get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchFailure(
                f"{self.name} returned HTTP {exc.response.status_code} for {path}",
                provider=self.name,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(f"{self.name} request to {path} failed: {exc}", provider=self.name) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ParseFailure(f"{self.name} returned a non-JSON body for {path}") from exc
