"""Typed models used by the trade metrics subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, Optional

from ..currency import Currency, CurrencyAmount, Percent, Price
from .constants import PRICE_IMPACT_DISPLAY_EPSILON


class Severity(str, Enum):
    """Warning level attached to a price impact or slippage setting."""
    NONE = "none"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Step:
    """One hop of a (possibly cross-chain) route."""
    protocol: str
    chain_id: int
    from_token: str
    to_token: str
    to_chain_id: int
    function_name: Optional[str] = None

    @property
    def is_cross_chain(self) -> bool:
        return self.chain_id != self.to_chain_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "chainId": self.chain_id,
            "fromToken": self.from_token,
            "toToken": self.to_token,
            "toChainId": self.to_chain_id,
            "functionName": self.function_name,
        }


@dataclass(frozen=True)
class TradeMessage:
    type: str
    message: str


@dataclass
class Trade:
    """A quote resolved against the token catalog. Owned by whoever requested it."""
    input_amount: CurrencyAmount
    output_amount: CurrencyAmount
    steps: List[Step] = field(default_factory=list)
    input_usd_value: Optional[Fraction] = None
    output_usd_value: Optional[Fraction] = None
    messages: List[TradeMessage] = field(default_factory=list)

    @property
    def input_currency(self) -> Currency:
        return self.input_amount.currency

    @property
    def output_currency(self) -> Currency:
        return self.output_amount.currency

    @property
    def is_single_chain(self) -> bool:
        return self.input_currency.chain_id == self.output_currency.chain_id

    @property
    def execution_price(self) -> Optional[Price]:
        if self.input_amount.raw == 0:
            return None
        return Price.from_amounts(self.input_amount, self.output_amount)


@dataclass(frozen=True)
class SlippageSetting:
    """User slippage choice. ``max`` is the raw percent text the user typed."""
    default: bool = True
    max: Optional[str] = None


@dataclass(frozen=True)
class PriceImpact:
    """
    Signed USD value change of a trade: ``(out - in) / in``.

    A loss is negative. ``str()`` renders the figure a summary shows; anything
    under PRICE_IMPACT_DISPLAY_EPSILON in magnitude is exactly ``"0.00%"``;
    other values carry a sign and up to two decimals.
    """
    percent: Percent
    severity: Severity = Severity.NONE

    @property
    def is_negligible(self) -> bool:
        return abs(self.percent) < PRICE_IMPACT_DISPLAY_EPSILON

    @property
    def warning(self) -> Optional[str]:
        return None if self.severity is Severity.NONE else self.severity.value

    def __str__(self) -> str:
        if self.is_negligible:
            return "0.00%"
        sign = "+" if self.percent.value > 0 else "-"
        # Two decimals at most, trailing zeros dropped: "-4%", "-3.5%", "+0.01%"
        text = abs(self.percent).to_fixed(2)
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return f"{sign}{text}%"
