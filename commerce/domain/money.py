"""
Money helpers: rupee Decimals at the edges, integer paisa inside.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

PAISA = Decimal("0.01")
_ONE = Decimal("1")


def to_decimal(value) -> Decimal:
    """Coerce int, float, str or Decimal to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def to_paisa(amount) -> int:
    """Convert a rupee amount to paisa."""
    return round_half_up(to_decimal(amount) * 100)


def from_paisa(paisa: int) -> Decimal:
    """Convert paisa to a rupee Decimal with two places."""
    return (Decimal(paisa) / 100).quantize(PAISA)


def round2(amount) -> Decimal:
    """Round a rupee amount to paisa (commercial rounding)."""
    return to_decimal(amount).quantize(PAISA, rounding=ROUND_HALF_UP)
