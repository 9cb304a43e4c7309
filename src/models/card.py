"""
Data models for the Intelligence Card.

A card is a pure function of its inputs: it is built wholesale for a
request and never mutated afterwards, so every model here is frozen.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import CardTier, SpecialistType


class AgentStake(BaseModel):
    """One specialist's token stake on a consultation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    specialist: SpecialistType = Field(..., description="Specialist type")
    agent_name: str = Field(..., alias="agentName", description="Short display name")
    token_stake: float = Field(..., ge=0.0, alias="tokenStake")
    participated: bool = Field(default=True)
    color: str = Field(default="#64748b")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence the stake was derived from")


class PrimaryPrediction(BaseModel):
    """The headline prediction shown on the card."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    agent: str = Field(..., description="Full display name of the predicting agent")
    stake: float = Field(default=0.0, ge=0.0)
    timeline: Optional[str] = Field(default=None, description='e.g. "6 weeks"')


class TierDisplay(BaseModel):
    """Presentational configuration for a tier. Not used in classification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    percentage: str = Field(..., description="Share of the population, e.g. '5%'")
    border_color: str = Field(..., alias="borderColor")
    gradient_from: str = Field(..., alias="gradientFrom")
    gradient_to: str = Field(..., alias="gradientTo")


class IntelligenceCardData(BaseModel):
    """Complete Intelligence Card for one consultation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    case_id: str = Field(..., alias="caseId")
    timestamp: str = Field(..., description="ISO-8601 timestamp")

    # Agent participation
    agent_stakes: list[AgentStake] = Field(default_factory=list, alias="agentStakes")
    total_stake: float = Field(default=0.0, ge=0.0, alias="totalStake")
    participating_count: int = Field(default=0, ge=0, alias="participatingCount")

    # Consensus metrics
    consensus_percentage: int = Field(default=75, ge=0, le=100, alias="consensusPercentage")
    confidence_score: float = Field(default=0.75, ge=0.0, le=1.0, alias="confidenceScore")

    primary_prediction: PrimaryPrediction = Field(..., alias="primaryPrediction")

    # Verification status
    user_feedback_complete: bool = Field(default=False, alias="userFeedbackComplete")
    md_review_complete: bool = Field(default=False, alias="mdReviewComplete")
    outcome_validated: bool = Field(default=False, alias="outcomeValidated")
    md_verified: bool = Field(default=False, alias="mdVerified")

    evidence_grade: Optional[str] = Field(default=None, alias="evidenceGrade")
    tier: CardTier = Field(default=CardTier.STANDARD)

    @property
    def highest_stake(self) -> Optional[AgentStake]:
        return self.agent_stakes[0] if self.agent_stakes else None

    def to_payload(self) -> dict:
        """Serialize to the camelCase JSON shape consumed by the card renderer."""
        return self.model_dump(mode="json", by_alias=True)
