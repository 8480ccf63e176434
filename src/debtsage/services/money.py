"""Cent rounding and numeric defaulting shared by every projector."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def round_currency(amount: float) -> float:
    """Round to cents using half-up rounding.

    ``Decimal(repr(...))`` keeps the shortest float representation so values
    like ``2.675`` round to ``2.68`` instead of falling on the binary side.
    """

    return float(Decimal(repr(float(amount))).quantize(CENT, rounding=ROUND_HALF_UP))


def finite_or_zero(value: Any) -> float:
    """Return ``value`` as a float, or 0.0 when missing, non-numeric or non-finite."""

    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_non_negative(value: Any) -> float:
    return max(finite_or_zero(value), 0.0)


def clamp_percent(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def to_day_of_month(value: Any, fallback: int) -> int:
    """Accept whole days in 1..31, otherwise return ``fallback``."""

    if value is None or isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number != int(number):
        return fallback
    day = int(number)
    return day if 1 <= day <= 31 else fallback


def clamp_day(value: Any) -> int:
    """Truncate to a whole day and clamp into 1..31."""

    return min(max(int(finite_or_zero(value)), 1), 31)


def monthly_rate_for(apr: float) -> float:
    """Convert an APR percentage into a simple monthly rate."""

    return apr / 100 / 12 if apr > 0 else 0.0


def utilization_for(balance: float, limit: float) -> float:
    """Return balance / limit, or 0 when there is no limit to divide by."""

    return balance / limit if limit > 0 else 0.0
