"""Thresholds for price-impact and slippage classification."""

from __future__ import annotations

from ..currency import Percent

# Price impact: loss above MEDIUM warns, above HIGH is an error.
ALLOWED_PRICE_IMPACT_MEDIUM = Percent(3, 100)
ALLOWED_PRICE_IMPACT_HIGH = Percent(5, 100)

# Impacts smaller than this in magnitude render as exactly "0.00%".
PRICE_IMPACT_DISPLAY_EPSILON = Percent(5, 100_000)  # 0.005%

# Slippage tolerance
DEFAULT_SLIPPAGE = Percent(1, 100)
MIN_HIGH_SLIPPAGE = Percent(1, 100)
MAX_VALID_SLIPPAGE = Percent(1, 2)

__all__ = [
    "ALLOWED_PRICE_IMPACT_MEDIUM",
    "ALLOWED_PRICE_IMPACT_HIGH",
    "PRICE_IMPACT_DISPLAY_EPSILON",
    "DEFAULT_SLIPPAGE",
    "MIN_HIGH_SLIPPAGE",
    "MAX_VALID_SLIPPAGE",
]
