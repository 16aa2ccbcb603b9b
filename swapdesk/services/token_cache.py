"""Write-through local copy of the supported-token list."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence

from ..core.catalog import TokenDescriptor
from ..errors import ParseFailure
from .store import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_LIST_STORE_KEY = "swapdesk_tokens"


def _default_serializer(tokens: Sequence[TokenDescriptor]) -> bytes:
    return json.dumps([token.to_dict() for token in tokens]).encode("utf-8")


def _default_deserializer(raw: Optional[bytes]) -> Optional[List[Any]]:
    if not raw:
        return None
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, list) else None


class PersistentTokenListCache:
    """
    Best-effort warm-start cache for the token catalog.

    ``load`` never raises: a missing key, unreadable store or malformed content
    all read as None. ``save`` failures are logged and dropped.
    """

    def __init__(self, store: KeyValueStore, key: str = TOKEN_LIST_STORE_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> Optional[List[TokenDescriptor]]:
        try:
            raw = self._store.get(self._key)
        except OSError as exc:
            logger.warning("Failed to read persisted token list: %s", exc)
            return None

        items = _default_deserializer(raw)
        if items is None:
            return None

        tokens: List[TokenDescriptor] = []
        for item in items:
            try:
                tokens.append(TokenDescriptor.from_dict(item))
            except ParseFailure:
                logger.debug("Dropping malformed persisted token entry: %r", item)
        return tokens

    def save(self, tokens: Sequence[TokenDescriptor]) -> None:
        try:
            self._store.set(self._key, _default_serializer(tokens))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to persist token list: %s", exc)
