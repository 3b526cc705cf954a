"""Conversion between decimal major units and integer minor units.

Applied once, at the HTTP boundary. Everything below the routes works in
integer minor units.
"""

from __future__ import annotations

from decimal import Decimal

from .errors import InvalidAmountError

MINOR_UNIT_SCALE = 100
# Largest value a BIGINT balance or amount column can hold.
MAX_MINOR_UNITS = 2**63 - 1


def to_minor_units(amount: Decimal) -> int:
    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a finite number")
    scaled = amount * MINOR_UNIT_SCALE
    if scaled != scaled.to_integral_value():
        raise InvalidAmountError("Amount must have at most 2 decimal places")
    if abs(scaled) > MAX_MINOR_UNITS:
        raise InvalidAmountError("Amount is too large")
    return int(scaled)
