"""
Cent-exact rounding helpers.

Amounts cross the public API as decimal currency units and are held as
integer cents internally. Rounding is always half-up to the cent.
"""
from decimal import Decimal, ROUND_HALF_UP

import numpy as np

CENT = Decimal("0.01")
HUNDRED = Decimal(100)

# Anything within one cent of zero counts as settled.
TOLERANCE_CENTS = 1


def to_decimal(value) -> Decimal:
    """Convert a number to Decimal without picking up binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (np.integer, np.floating)):
        value = value.item()
    return Decimal(str(value))


def round2(value) -> Decimal:
    """Round half-up to two decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    """Convert a decimal amount to integer cents, rounding half-up."""
    return int(round2(value) * HUNDRED)


def percent_of(value, percent) -> Decimal:
    """round2(value * percent / 100)."""
    return round2(to_decimal(value) * to_decimal(percent) / HUNDRED)


def from_cents(cents) -> float:
    """Convert integer cents back to a float amount."""
    return float(Decimal(int(cents)) / HUNDRED)


def cents_array(values) -> np.ndarray:
    """Convert an iterable of amounts to an int64 array of cents."""
    return np.array([to_cents(v) for v in values], dtype=np.int64)
