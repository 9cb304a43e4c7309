"""
Consensus aggregation.

Derives the card's inter-agent agreement percentage and overall
confidence. Both values always resolve to a number.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from src.models.card import AgentStake
from src.models.consultation import ConfidenceFactors
from src.utils.numbers import clamp, mean, round_half_up


DEFAULT_CONSENSUS = 0.75
DEFAULT_CONFIDENCE = 0.75


class ConsensusResult(BaseModel):
    """Agreement and confidence for one consultation."""

    model_config = ConfigDict(frozen=True)

    consensus_percentage: int = Field(..., ge=0, le=100)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


def consensus_percentage(factors: Optional[ConfidenceFactors]) -> int:
    """
    Agreement as an integer percentage.

    Uses inter-agent agreement, else overall confidence, else 0.75. A zero
    or missing figure falls through to the next one.
    """
    factors = factors or ConfidenceFactors()
    raw = factors.inter_agent_agreement or factors.overall_confidence or DEFAULT_CONSENSUS
    return int(round_half_up(clamp(raw) * 100))


def confidence_score(
    factors: Optional[ConfidenceFactors],
    stakes: Sequence[AgentStake],
) -> float:
    """
    Overall confidence (0-1).

    Uses the synthesis' overall confidence, else the mean per-agent
    confidence, else 0.75 when there are no agents.
    """
    factors = factors or ConfidenceFactors()
    if factors.overall_confidence is not None:
        return clamp(factors.overall_confidence)
    return clamp(mean([s.confidence for s in stakes], DEFAULT_CONFIDENCE))


def aggregate_consensus(
    factors: Optional[ConfidenceFactors],
    stakes: Sequence[AgentStake],
) -> ConsensusResult:
    """Compute both consensus figures."""
    return ConsensusResult(
        consensus_percentage=consensus_percentage(factors),
        confidence_score=confidence_score(factors, stakes),
    )
