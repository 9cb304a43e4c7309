"""
Numeric helpers shared by the scoring, outcome and reward modules.

All helpers are total: they accept loosely-typed values coming from JSON
payloads and never raise, so callers can rely on a number coming back.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional


def coerce_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Convert a payload value to a finite float.
    
    Args:
        value: Raw value (number, numeric string, bool, None, ...)
        default: Returned when the value is missing or not numeric
    
    Returns:
        The float value, or ``default``
    """
    if value is None or isinstance(value, bool):
        return default
    
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    
    if math.isnan(result) or math.isinf(result):
        return default
    
    return result


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp a value into [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round using the half-up rule on the decimal representation.
    
    Python's built-in ``round`` uses banker's rounding, which turns
    1.25 into 1.2. Scores are displayed to users, so 1.25 must become 1.3.
    
    Args:
        value: Value to round
        digits: Number of decimal places
    
    Returns:
        Rounded value
    """
    try:
        quantum = Decimal(1).scaleb(-digits)
        rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return 0.0
    return float(rounded)


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` instead of NaN/Infinity on a zero denominator."""
    if not denominator:
        return default
    return numerator / denominator


def mean(values: list[float], default: float = 0.0) -> float:
    """Arithmetic mean with a default for empty input."""
    if not values:
        return default
    return sum(values) / len(values)
