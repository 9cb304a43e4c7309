"""
Data models for token rewards and agent performance.

Rewards form an append-only ledger per agent; ``AgentPerformance`` is a
view recomputed from that ledger, never mutated on its own.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import AccuracyBand, Trend
from src.utils.clock import utc_now


class TokenReward(BaseModel):
    """Tokens paid to one agent for one resolved prediction."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(..., alias="agentId")
    reward: float = Field(..., ge=0.0, description="Token amount supplied by the accuracy scorer")
    accuracy: float = Field(..., ge=0.0, le=1.0)
    consultation_id: Optional[str] = Field(default=None, alias="consultationId")
    milestone_day: Optional[int] = Field(default=None, alias="milestoneDay")
    awarded_at: datetime = Field(default_factory=utc_now, alias="awardedAt")

    @property
    def resolution_key(self) -> tuple[Optional[str], Optional[int], str]:
        return (self.consultation_id, self.milestone_day, self.agent_id)


class ResolutionOutcome(BaseModel):
    """Result of resolving one follow-up against the agents' predictions."""

    model_config = ConfigDict(frozen=True)

    consultation_id: Optional[str] = None
    milestone_day: Optional[int] = None
    rewards: list[TokenReward] = Field(default_factory=list)
    total_reward: float = Field(default=0.0, ge=0.0)
    milestone_achieved: bool = False
    progress_status: str = "pending_validation"
    predictions_validated: list[str] = Field(default_factory=list)


class AgentPerformance(BaseModel):
    """Accuracy and earnings of one agent."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(..., alias="agentId")
    agent_name: str = Field(..., alias="agentName")
    accuracy_rate: float = Field(default=0.0, ge=0.0, le=1.0, alias="accuracyRate")
    tokens_earned: float = Field(default=0.0, alias="tokensEarned")
    total_predictions: int = Field(default=0, ge=0, alias="totalPredictions")
    last_7_days_accuracy: float = Field(default=0.0, ge=0.0, le=1.0, alias="last7DaysAccuracy")
    average_stake: float = Field(default=0.0, ge=0.0, alias="averageStake")
    participation_rate: float = Field(default=0.0, ge=0.0, alias="participationRate")
    trend: Trend = Trend.STABLE


class LeaderboardEntry(BaseModel):
    """One row of the agent leaderboard."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rank: int = Field(..., ge=1)
    agent_id: str = Field(..., alias="agentId")
    agent_name: str = Field(..., alias="agentName")
    accuracy_rate: float = Field(..., ge=0.0, le=1.0, alias="accuracyRate")
    tokens_earned: float = Field(default=0.0, alias="tokensEarned")
    total_predictions: int = Field(default=0, alias="totalPredictions")
    last_7_days_accuracy: float = Field(default=0.0, alias="last7DaysAccuracy")
    average_stake: float = Field(default=0.0, alias="averageStake")
    participation_rate: float = Field(default=0.0, alias="participationRate")
    trend: Trend = Trend.STABLE
    accuracy_band: AccuracyBand = Field(default=AccuracyBand.LOW, alias="accuracyBand")


class TokenShare(BaseModel):
    """An agent's share of all distributed tokens."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(..., alias="agentId")
    agent_name: str = Field(..., alias="agentName")
    tokens: float = 0.0
    percentage: float = Field(default=0.0, ge=0.0)


class Leaderboard(BaseModel):
    """Leaderboard view plus market-level figures."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entries: list[LeaderboardEntry] = Field(default_factory=list, alias="topPerformers")
    token_distribution: list[TokenShare] = Field(default_factory=list, alias="tokenDistribution")
    total_predictions: int = Field(default=0, alias="totalPredictions")
    average_accuracy: float = Field(default=0.0, alias="averageAccuracy")
    total_tokens_distributed: float = Field(default=0.0, alias="totalTokensDistributed")
    data_available: bool = Field(default=True, alias="backendAvailable")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
