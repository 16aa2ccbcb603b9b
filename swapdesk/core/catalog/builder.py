"""
Token Catalog Builder

Turns a flat token list into a per-chain, per-address lookup table and the
views token pickers are built from.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ...errors import ParseFailure
from ..chains import VISIBLE_CHAIN_IDS, canonical_address
from .models import CatalogEntry, TokenDescriptor, TokenPreset

logger = logging.getLogger(__name__)

TokenInput = Union[TokenDescriptor, Mapping[str, Any]]


class ChainTokenMap:
    """
    Read-only mapping chain_id -> (address -> CatalogEntry).

    Native assets are always keyed by NATIVE_ADDRESS, whatever sentinel the
    source feed used. Lookups alias the sentinel the same way, so callers can
    pass raw route addresses.
    """

    def __init__(self, chains: Optional[Dict[int, Dict[str, CatalogEntry]]] = None) -> None:
        self._chains: Dict[int, Dict[str, CatalogEntry]] = chains or {}

    def __getitem__(self, chain_id: int) -> Dict[str, CatalogEntry]:
        return self._chains[chain_id]

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __len__(self) -> int:
        return len(self._chains)

    @property
    def chain_ids(self) -> List[int]:
        return list(self._chains.keys())

    @property
    def is_loaded(self) -> bool:
        return bool(self._chains)

    def get(self, chain_id: int, address: str) -> Optional[TokenDescriptor]:
        entry = self._chains.get(chain_id, {}).get(canonical_address(address))
        return entry.token if entry else None

    def token_map(self, chain_id: int) -> Dict[str, TokenDescriptor]:
        return {address: entry.token for address, entry in self._chains.get(chain_id, {}).items()}

    def all_tokens(self) -> List[TokenDescriptor]:
        tokens: List[TokenDescriptor] = []
        for token_map in self._chains.values():
            tokens.extend(entry.token for entry in token_map.values())
        return tokens

    def visible_tokens(self, visible_chain_ids: Optional[Iterable[int]] = None) -> List[TokenDescriptor]:
        allowed = set(VISIBLE_CHAIN_IDS if visible_chain_ids is None else visible_chain_ids)
        return [token for token in self.all_tokens() if token.chain_id in allowed]

    def resolve_presets(self, presets: Iterable[TokenPreset]) -> List[TokenDescriptor]:
        """Resolve presets against the catalog, dropping the ones it does not know."""
        resolved: List[TokenDescriptor] = []
        for preset in presets:
            token = self.get(preset.chain_id, preset.address)
            if token is None:
                logger.debug("Dropping unknown preset token %s:%s", preset.chain_id, preset.address)
                continue
            resolved.append(token)
        return resolved

    def select_tokens(
        self,
        presets: Optional[Sequence[TokenPreset]] = None,
        visible_chain_ids: Optional[Iterable[int]] = None,
    ) -> List[TokenDescriptor]:
        """
        Tokens offered by a picker.

        A non-empty preset list replaces the visible-chain view entirely;
        otherwise every token on a visible chain is offered.
        """
        if presets:
            return self.resolve_presets(presets)
        return self.visible_tokens(visible_chain_ids)

    # Both pickers share the same rule; the names mirror the widget's from/to sides.
    from_tokens = select_tokens
    to_tokens = select_tokens

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            str(chain_id): {address: entry.token.to_dict() for address, entry in token_map.items()}
            for chain_id, token_map in self._chains.items()
        }


def build_catalog(tokens: Iterable[TokenInput]) -> ChainTokenMap:
    """
    Build a ChainTokenMap from a flat token list.

    Args:
        tokens: TokenDescriptor instances or raw token-list dicts.

    Returns:
        ChainTokenMap with native sentinels rewritten to NATIVE_ADDRESS.
        Malformed entries are skipped; a later duplicate of the same
        (chain, address) replaces the earlier one.
    """
    chains: Dict[int, Dict[str, CatalogEntry]] = {}
    skipped = 0

    for item in tokens:
        if isinstance(item, TokenDescriptor):
            descriptor = item
        else:
            try:
                descriptor = TokenDescriptor.from_dict(item)  # type: ignore[arg-type]
            except ParseFailure as exc:
                skipped += 1
                logger.debug("Skipping token entry: %s", exc)
                continue

        if descriptor.chain_id is None or not descriptor.address:
            skipped += 1
            continue

        descriptor = descriptor.with_canonical_address()
        chains.setdefault(descriptor.chain_id, {})[descriptor.address] = CatalogEntry(token=descriptor)

    if skipped:
        logger.info("Skipped %d malformed token entries while building catalog", skipped)

    return ChainTokenMap(chains)
