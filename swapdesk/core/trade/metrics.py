"""
Trade metrics.

Pure functions over quote data: the guaranteed minimum output under a
slippage tolerance and the USD price impact with its warning level.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Optional

from ...errors import ValidationFailure
from ..currency import CurrencyAmount, Percent, Rational, to_fraction
from .constants import ALLOWED_PRICE_IMPACT_HIGH, ALLOWED_PRICE_IMPACT_MEDIUM
from .models import PriceImpact, Severity, Trade


def minimum_amount_out(slippage_tolerance: Percent, amount_out: CurrencyAmount) -> CurrencyAmount:
    """
    ``amount_out * (1 - slippage_tolerance)``, truncated toward zero.

    Raises:
        ValidationFailure: tolerance outside [0, 1].
    """
    tolerance = slippage_tolerance.value
    if tolerance < 0 or tolerance > 1:
        raise ValidationFailure(f"Slippage tolerance must be within [0, 1], got {tolerance}")

    adjusted = (Fraction(1) - tolerance) * amount_out.quotient
    return CurrencyAmount(currency=amount_out.currency, raw=adjusted.numerator // adjusted.denominator)


def price_impact_severity(percent: Percent) -> Severity:
    """Classify a signed impact; only losses produce a warning."""
    loss = -percent
    if loss > ALLOWED_PRICE_IMPACT_HIGH:
        return Severity.ERROR
    if loss > ALLOWED_PRICE_IMPACT_MEDIUM:
        return Severity.WARNING
    return Severity.NONE


def compute_fiat_price_impact(
    input_usd_value: Optional[Rational],
    output_usd_value: Optional[Rational],
) -> Optional[Percent]:
    """``(out - in) / in`` or None when either value is missing or input is zero."""
    if input_usd_value is None or output_usd_value is None:
        return None

    input_usd = to_fraction(input_usd_value)
    output_usd = to_fraction(output_usd_value)
    if input_usd == 0:
        return None
    return Percent((output_usd - input_usd) / input_usd)


def price_impact(
    input_usd_value: Optional[Rational],
    output_usd_value: Optional[Rational],
) -> Optional[PriceImpact]:
    percent = compute_fiat_price_impact(input_usd_value, output_usd_value)
    if percent is None:
        return None
    return PriceImpact(percent=percent, severity=price_impact_severity(percent))


def trade_price_impact(trade: Optional[Trade]) -> Optional[PriceImpact]:
    if trade is None:
        return None
    return price_impact(trade.input_usd_value, trade.output_usd_value)
