"""
Token Catalog

Normalized per-chain token lookup tables.
"""

from .builder import ChainTokenMap, build_catalog
from .models import CatalogEntry, TokenDescriptor, TokenPreset

__all__ = [
    "ChainTokenMap",
    "build_catalog",
    "CatalogEntry",
    "TokenDescriptor",
    "TokenPreset",
]
