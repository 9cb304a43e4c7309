"""
Stake calculation.

An agent's token stake grows with the cube of its confidence, so the most
confident specialist earns disproportionately more and a crowd of
low-confidence agents cannot dilute the pool.
"""

from typing import Any

from src.utils.numbers import clamp, coerce_float, round_half_up


BASE_STAKE = 10.0


def calculate_stake(confidence: Any, base_stake: float = BASE_STAKE) -> float:
    """
    Convert a confidence into a token stake.

    ``stake = round(base * confidence^3, 1)`` with half-up rounding.
    Confidence is clamped to [0, 1]; non-numeric input stakes nothing.

    Args:
        confidence: Confidence value, nominally 0-1
        base_stake: Stake at full confidence

    Returns:
        Token stake (>= 0, one decimal)
    """
    value = clamp(coerce_float(confidence, 0.0))
    return round_half_up(base_stake * value ** 3, 1)
