from __future__ import annotations

import math
from typing import Any


def to_number(value: Any, default: float = math.nan) -> float:
    """Parse a form value as a finite float, returning `default` when it can't be."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def round_half_up(value: float) -> int:
    """Whole-dollar rounding with halves away from zero (round() is banker's)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def format_dollars(value: float) -> str:
    return f"${round_half_up(value):,}"


def format_number(value: float) -> str:
    """Drop a trailing .0 so 80.0 renders as 80."""
    value = round(float(value), 6)
    return f"{value:,.0f}" if value.is_integer() else f"{value:,.1f}"
