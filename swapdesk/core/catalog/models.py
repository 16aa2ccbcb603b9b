"""
Token Catalog Models

Token descriptors as served by the token-list service and persisted locally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...errors import ParseFailure
from ..chains import NATIVE_ADDRESS, canonical_address
from ..currency import Currency, NativeCurrency, Token


@dataclass(frozen=True)
class TokenDescriptor:
    """One token on one chain. ``address`` is unique within ``chain_id``."""
    chain_id: int
    address: str
    decimals: int
    symbol: str
    name: str
    logo_uri: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_ADDRESS

    @property
    def canonical_id(self) -> str:
        """Unique identifier: chain_id:address."""
        return f"{self.chain_id}:{self.address}"

    def with_canonical_address(self) -> "TokenDescriptor":
        address = canonical_address(self.address)
        if address == self.address:
            return self
        return TokenDescriptor(
            chain_id=self.chain_id,
            address=address,
            decimals=self.decimals,
            symbol=self.symbol,
            name=self.name,
            logo_uri=self.logo_uri,
        )

    def to_currency(self) -> Currency:
        if self.is_native:
            return NativeCurrency(
                chain_id=self.chain_id,
                decimals=self.decimals,
                symbol=self.symbol,
                name=self.name,
            )
        return Token(
            chain_id=self.chain_id,
            address=self.address,
            decimals=self.decimals,
            symbol=self.symbol,
            name=self.name,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "chainId": self.chain_id,
            "address": self.address,
            "decimals": self.decimals,
            "symbol": self.symbol,
            "name": self.name,
        }
        if self.logo_uri:
            data["logoURI"] = self.logo_uri
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenDescriptor":
        """Parse a token-list entry.

        Raises:
            ParseFailure: chainId or address missing, or a field has the wrong type.
        """
        if not isinstance(data, dict):
            raise ParseFailure(f"Token entry must be an object, got {type(data).__name__}")

        chain_id = data.get("chainId")
        address = data.get("address")
        if chain_id is None or not address:
            raise ParseFailure("Token entry is missing chainId or address")

        try:
            return cls(
                chain_id=int(chain_id),
                address=str(address),
                decimals=int(data.get("decimals", 18)),
                symbol=str(data.get("symbol") or ""),
                name=str(data.get("name") or ""),
                logo_uri=data.get("logoURI"),
            )
        except (TypeError, ValueError) as exc:
            raise ParseFailure(f"Malformed token entry: {exc}") from exc


@dataclass(frozen=True)
class CatalogEntry:
    """Value stored per (chain, address) in a ChainTokenMap."""
    token: TokenDescriptor


@dataclass(frozen=True)
class TokenPreset:
    """Externally configured (chain, address) pair restricting a token picker."""
    chain_id: int
    address: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPreset":
        try:
            return cls(chain_id=int(data["chainId"]), address=str(data["address"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseFailure(f"Malformed token preset: {data!r}") from exc
