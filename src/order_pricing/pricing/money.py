"""Integer-cent helpers shared by every pricing stage.

Amounts cross the API surface as decimal currency units (floats rounded to
two places). Inside the engines they are always integer cents. Conversions go
through ``Decimal(str(value))`` so a float such as ``1.005`` is read as the
literal the caller wrote, not as its binary approximation.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, str, Decimal]

_ONE = Decimal("1")
_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric input to ``Decimal`` without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("boolean is not a currency amount")
    return Decimal(str(value))


def round_cents(value: Decimal) -> int:
    """Round a fractional cent amount to whole cents, half away from zero."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def to_cents(amount: Number) -> int:
    """Convert a decimal currency amount to integer cents."""
    return round_cents(to_decimal(amount) * _HUNDRED)


def to_dollars(cents: int) -> float:
    """Convert integer cents to a decimal amount rounded to 2 places."""
    return float((Decimal(cents) / _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP))


def percent_of(cents: int, rate: Number) -> int:
    """Return ``round(cents * rate / 100)`` in whole cents."""
    return round_cents(Decimal(cents) * to_decimal(rate) / _HUNDRED)


def scale(cents: int, factor: Number) -> int:
    """Return ``round(cents * factor)`` in whole cents."""
    return round_cents(Decimal(cents) * to_decimal(factor))


def round2(value: Number) -> float:
    """Round any numeric value (not only money) to 2 decimals, half up."""
    return float(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))
