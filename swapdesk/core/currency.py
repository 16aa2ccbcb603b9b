"""
Exact currency arithmetic.

Amounts are integers in a currency's smallest unit. Ratios (percentages, prices,
slippage) are ``fractions.Fraction`` so no step ever goes through floating point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Union

from ..errors import ValidationFailure
from .chains import NATIVE_ADDRESS

Rational = Union[int, Fraction, Decimal, str]


def to_fraction(value: Rational) -> Fraction:
    """Convert an int, Decimal, Fraction or decimal string to an exact Fraction."""
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise ValidationFailure(f"Not a number: {value!r}")
    if isinstance(value, int):
        return Fraction(value)
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationFailure(f"Not a number: {value!r}") from exc
    if not decimal_value.is_finite():
        raise ValidationFailure(f"Not a finite number: {value!r}")
    return Fraction(decimal_value)


def format_fraction(value: Fraction, places: int, rounding: str = ROUND_HALF_UP) -> str:
    """Render ``value`` with a fixed number of decimal places.

    Only ROUND_DOWN (toward zero) and ROUND_HALF_UP (half away from zero) are
    supported. The rounding is done on integers, so large raw amounts keep
    every digit.
    """
    scaled = value * 10 ** places
    magnitude = abs(scaled)
    if rounding == ROUND_DOWN:
        digits_value = magnitude.numerator // magnitude.denominator
    elif rounding == ROUND_HALF_UP:
        digits_value = math.floor(magnitude + Fraction(1, 2))
    else:
        raise ValueError(f"Unsupported rounding mode: {rounding}")

    sign = "-" if scaled < 0 and digits_value else ""
    digits = str(digits_value).rjust(places + 1, "0")
    if not places:
        return f"{sign}{digits}"
    return f"{sign}{digits[:-places]}.{digits[-places:]}"


@dataclass(frozen=True)
class Token:
    """An ERC20-style token identified by (chain_id, address)."""
    chain_id: int
    address: str
    decimals: int
    symbol: str = ""
    name: str = ""

    @property
    def is_native(self) -> bool:
        return False

    @property
    def is_token(self) -> bool:
        return True


@dataclass(frozen=True)
class NativeCurrency:
    """The gas asset of a chain. Always looked up under NATIVE_ADDRESS."""
    chain_id: int
    decimals: int
    symbol: str = ""
    name: str = ""

    @property
    def address(self) -> str:
        return NATIVE_ADDRESS

    @property
    def is_native(self) -> bool:
        return True

    @property
    def is_token(self) -> bool:
        return False


Currency = Union[Token, NativeCurrency]


@dataclass(frozen=True)
class Percent:
    """A ratio expressed as an exact fraction (``Percent(1, 100)`` is 1%)."""
    value: Fraction

    def __init__(self, numerator: Rational, denominator: int = 1):
        object.__setattr__(self, "value", to_fraction(numerator) / denominator)

    @classmethod
    def from_percent_string(cls, text: str) -> "Percent":
        """``"0.5"`` → 0.5%."""
        return cls(to_fraction(text), 100)

    def __lt__(self, other: "Percent") -> bool:
        return self.value < other.value

    def __gt__(self, other: "Percent") -> bool:
        return self.value > other.value

    def __le__(self, other: "Percent") -> bool:
        return self.value <= other.value

    def __ge__(self, other: "Percent") -> bool:
        return self.value >= other.value

    def __neg__(self) -> "Percent":
        return Percent(-self.value)

    def __abs__(self) -> "Percent":
        return Percent(abs(self.value))

    def to_fixed(self, places: int = 2, rounding: str = ROUND_HALF_UP) -> str:
        """Percentage points with ``places`` decimals: ``Percent(1, 200).to_fixed()`` is ``"0.50"``."""
        return format_fraction(self.value * 100, places, rounding)

    def __str__(self) -> str:
        return f"{self.to_fixed(2)}%"


@dataclass(frozen=True)
class CurrencyAmount:
    """An unsigned integer amount of ``currency`` in its smallest unit."""
    currency: Any
    raw: int

    def __post_init__(self) -> None:
        if isinstance(self.raw, bool) or not isinstance(self.raw, int):
            raise ValidationFailure(f"Raw amount must be an integer, got {self.raw!r}")
        if self.raw < 0:
            raise ValidationFailure(f"Raw amount must not be negative, got {self.raw}")

    @classmethod
    def from_raw_amount(cls, currency: Currency, raw: Union[int, str]) -> "CurrencyAmount":
        if isinstance(raw, str):
            text = raw.strip()
            if not text.isdigit():
                raise ValidationFailure(f"Raw amount must be an unsigned integer string, got {raw!r}")
            raw = int(text)
        return cls(currency=currency, raw=raw)

    @property
    def quotient(self) -> int:
        return self.raw

    @property
    def scale(self) -> int:
        return 10 ** self.currency.decimals

    def to_fraction(self) -> Fraction:
        """Amount in whole units."""
        return Fraction(self.raw, self.scale)

    def to_exact(self) -> str:
        whole, remainder = divmod(self.raw, self.scale)
        if not remainder:
            return str(whole)
        fraction_digits = str(remainder).rjust(self.currency.decimals, "0").rstrip("0")
        return f"{whole}.{fraction_digits}"

    def to_fixed(self, places: int) -> str:
        return format_fraction(self.to_fraction(), places, ROUND_DOWN)

    def _check_same_currency(self, other: "CurrencyAmount") -> None:
        if self.currency != other.currency:
            raise ValidationFailure("Cannot compare amounts of different currencies")

    def less_than(self, other: "CurrencyAmount") -> bool:
        self._check_same_currency(other)
        return self.raw < other.raw

    def __lt__(self, other: "CurrencyAmount") -> bool:
        return self.less_than(other)

    def __le__(self, other: "CurrencyAmount") -> bool:
        self._check_same_currency(other)
        return self.raw <= other.raw


@dataclass(frozen=True)
class Price:
    """Quote units per base unit, from a pair of raw amounts."""
    base: Any
    quote: Any
    raw_ratio: Fraction

    @classmethod
    def from_amounts(cls, base_amount: CurrencyAmount, quote_amount: CurrencyAmount) -> "Price":
        if base_amount.raw == 0:
            raise ValidationFailure("Cannot derive a price from a zero base amount")
        return cls(
            base=base_amount.currency,
            quote=quote_amount.currency,
            raw_ratio=Fraction(quote_amount.raw, base_amount.raw),
        )

    @property
    def adjusted(self) -> Fraction:
        """Ratio in whole units, corrected for both currencies' decimals."""
        return self.raw_ratio * Fraction(10 ** self.base.decimals, 10 ** self.quote.decimals)

    def to_fixed(self, places: int = 6) -> str:
        return format_fraction(self.adjusted, places)
