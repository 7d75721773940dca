"""Progress arithmetic for savings goals."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

PERCENT_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def _as_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_progress(current: Number, target: Number) -> Decimal:
    """Return ``current / target`` as a percentage rounded half-up to 2 places.

    A zero target yields 0. The result is not clamped; callers keep
    ``0 <= current <= target`` so it always lands in [0, 100].

    >>> calculate_progress(Decimal("333.33"), Decimal("1000"))
    Decimal('33.33')
    >>> calculate_progress(2, 3)
    Decimal('66.67')
    """
    current_amount = _as_decimal(current)
    target_amount = _as_decimal(target)
    if target_amount == 0:
        return Decimal("0.00")
    percent = current_amount / target_amount * HUNDRED
    return percent.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)
