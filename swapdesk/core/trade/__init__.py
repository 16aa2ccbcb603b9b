"""
Trade metrics: quote parsing, minimum amount out, price impact and slippage.
"""

from .metrics import (
    compute_fiat_price_impact,
    minimum_amount_out,
    price_impact,
    price_impact_severity,
    trade_price_impact,
)
from .models import PriceImpact, Severity, SlippageSetting, Step, Trade, TradeMessage
from .quote import parse_step, route_symbols, trade_from_quote
from .slippage import (
    effective_slippage,
    process_slippage_input,
    slippage_input_is_valid,
    slippage_label,
    slippage_warning,
    to_percent,
)

__all__ = [
    "compute_fiat_price_impact",
    "minimum_amount_out",
    "price_impact",
    "price_impact_severity",
    "trade_price_impact",
    "PriceImpact",
    "Severity",
    "SlippageSetting",
    "Step",
    "Trade",
    "TradeMessage",
    "parse_step",
    "route_symbols",
    "trade_from_quote",
    "effective_slippage",
    "process_slippage_input",
    "slippage_input_is_valid",
    "slippage_label",
    "slippage_warning",
    "to_percent",
]
