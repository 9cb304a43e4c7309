"""Utility functions and helpers."""

from src.utils.numbers import clamp, coerce_float, mean, round_half_up, safe_ratio
from src.utils.parsing import (
    extract_response_text,
    first_meaningful_sentence,
    humanize_identifier,
    match_specialist_keyword,
    truncate_text,
)
from src.utils.settings import Settings

__all__ = [
    "clamp",
    "coerce_float",
    "mean",
    "round_half_up",
    "safe_ratio",
    "extract_response_text",
    "first_meaningful_sentence",
    "humanize_identifier",
    "match_specialist_keyword",
    "truncate_text",
    "Settings",
]
