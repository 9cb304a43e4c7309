"""
OrthoIQ Intelligence Engine - Enumerations

Centralized enum definitions shared by scoring, outcomes and rewards.
"""

from enum import Enum


class SpecialistType(str, Enum):
    """The five specialist agents. Declaration order is the canonical order."""

    TRIAGE = "triage"
    PAIN_WHISPERER = "painWhisperer"
    MOVEMENT_DETECTIVE = "movementDetective"
    STRENGTH_SAGE = "strengthSage"
    MIND_MENDER = "mindMender"

    @property
    def order(self) -> int:
        """Position in the canonical order (used for stake tie-breaks)."""
        return list(SpecialistType).index(self)


class CardTier(str, Enum):
    """Rarity tier of an Intelligence Card, lowest to highest."""

    STANDARD = "standard"
    COMPLETE = "complete"
    VERIFIED = "verified"
    EXCEPTIONAL = "exceptional"

    @property
    def rank(self) -> int:
        return list(CardTier).index(self)


class MilestoneType(str, Enum):
    """What a follow-up milestone measures."""

    PAIN = "pain"
    FUNCTIONAL = "functional"
    MOVEMENT = "movement"


class MilestoneState(str, Enum):
    """Lifecycle of a single milestone day."""

    UPCOMING = "upcoming"  # daysSince < day
    DUE = "due"  # daysSince >= day, no feedback yet
    COMPLETED = "completed"  # Terminal


class Trend(str, Enum):
    """Recent vs. overall accuracy trajectory."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class AccuracyUnit(str, Enum):
    """Declared unit of an upstream accuracy value."""

    FRACTION = "fraction"  # 0-1
    PERCENT = "percent"  # 0-100


class AccuracyBand(str, Enum):
    """Display band for an accuracy value."""

    HIGH = "high"  # >= 0.9
    MEDIUM = "medium"  # >= 0.7
    LOW = "low"
