"""
Shared text parsing utilities for specialist response extraction.

These utilities are used by the boundary parsers and the prediction
extractor to pull plain text out of loosely structured agent output.
"""

import re
from typing import Any, Optional


# Keyword fragments that identify each specialist in free-form type strings,
# checked in order. The first fragment group that matches wins.
SPECIALIST_KEYWORDS = [
    ("triage", ("triage", "orthotriage")),
    ("painWhisperer", ("pain", "whisperer")),
    ("movementDetective", ("movement", "detective")),
    ("strengthSage", ("strength", "sage")),
    ("mindMender", ("mind", "mender", "mental")),
]

# Keys checked, in priority order, inside a nested response object
NESTED_TEXT_KEYS = ("response", "synthesis", "rawSynthesis")

SENTENCE_SPLIT = re.compile(r"[.!?]+")


def match_specialist_keyword(raw_type: Optional[str]) -> Optional[str]:
    """
    Match a free-form specialist type string to a canonical identifier.

    Accepts camelCase, snake_case and display forms
    (e.g. "painWhisperer", "pain_whisperer", "Pain Whisperer").

    Args:
        raw_type: Raw type string from the payload

    Returns:
        Canonical specialist identifier, or None if nothing matches
    """
    if not raw_type or not isinstance(raw_type, str):
        return None

    normalized = re.sub(r"[^a-z]", "", raw_type.lower())
    if not normalized:
        return None

    for identifier, fragments in SPECIALIST_KEYWORDS:
        if any(fragment in normalized for fragment in fragments):
            return identifier

    return None


def extract_response_text(response: Any, assessment: Any = None) -> str:
    """
    Extract the free text of a specialist response.

    A nested response object wins over everything else; within it the
    ``response``, ``synthesis`` and ``rawSynthesis`` keys are tried in order.
    A plain string response comes next, then the ``assessment`` field.

    Args:
        response: Top-level ``response`` value (string, dict or None)
        assessment: Top-level ``assessment`` value

    Returns:
        The response text, or an empty string
    """
    text = ""

    if isinstance(response, dict):
        for key in NESTED_TEXT_KEYS:
            value = response.get(key)
            if isinstance(value, str) and value:
                text = value
                break
    elif isinstance(response, str):
        text = response

    if not text and isinstance(assessment, str):
        text = assessment

    return text


def split_sentences(text: str) -> list[str]:
    """Split text on sentence terminators, stripping whitespace."""
    if not text:
        return []
    return [part.strip() for part in SENTENCE_SPLIT.split(text)]


def first_meaningful_sentence(text: str, min_length: int = 20) -> Optional[str]:
    """
    Find the first sentence longer than ``min_length`` characters.

    Args:
        text: Text to scan
        min_length: Sentences must be strictly longer than this

    Returns:
        The sentence, or None if none qualifies
    """
    for sentence in split_sentences(text):
        if len(sentence) > min_length:
            return sentence
    return None


def truncate_text(text: str, max_length: int = 80, keep: int = 77) -> str:
    """Truncate to ``keep`` characters plus an ellipsis when longer than ``max_length``."""
    if len(text) > max_length:
        return text[:keep] + "..."
    return text


def humanize_identifier(identifier: str) -> str:
    """
    Turn a camelCase or snake_case identifier into words.

    Args:
        identifier: e.g. "painWhisperer" or "pain_whisperer"

    Returns:
        e.g. "pain Whisperer" / "pain whisperer" with separators as spaces
    """
    spaced = re.sub(r"([A-Z])", r" \1", identifier or "")
    return re.sub(r"\s+", " ", spaced.replace("_", " ")).strip()
