"""
Slippage input handling.

An empty or unparsable entry means "use the default tolerance", which is a
different state from an entry that parses but is too large to accept.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from ..currency import Percent
from .constants import DEFAULT_SLIPPAGE, MAX_VALID_SLIPPAGE, MIN_HIGH_SLIPPAGE
from .models import Severity, SlippageSetting


def to_percent(text: Optional[str]) -> Optional[Percent]:
    """Parse a percent string (``"0.5"`` → 0.5%). Returns None when unusable."""
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    try:
        value = Decimal(stripped)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return Percent(value, 100)


def slippage_input_is_valid(text: Optional[str]) -> bool:
    return to_percent(text) is not None


def slippage_warning(percent: Optional[Percent]) -> Severity:
    if percent is None:
        return Severity.NONE
    if percent > MAX_VALID_SLIPPAGE:
        return Severity.ERROR
    if percent > MIN_HIGH_SLIPPAGE:
        return Severity.WARNING
    return Severity.NONE


def process_slippage_input(text: Optional[str]) -> SlippageSetting:
    """Turn a custom slippage entry into a setting, keeping the raw text."""
    percent = to_percent(text)
    use_default = percent is None or slippage_warning(percent) is Severity.ERROR
    return SlippageSetting(default=use_default, max=text or None)


def effective_slippage(setting: Optional[SlippageSetting]) -> Percent:
    """The tolerance a quote is actually requested and evaluated with."""
    if setting is None or setting.default:
        return DEFAULT_SLIPPAGE
    percent = to_percent(setting.max)
    if percent is None or slippage_warning(percent) is Severity.ERROR:
        return DEFAULT_SLIPPAGE
    return percent


def slippage_label(setting: Optional[SlippageSetting]) -> str:
    if setting is None or setting.default:
        return f"{DEFAULT_SLIPPAGE.to_fixed(0)}%"
    return f"{setting.max}%"
