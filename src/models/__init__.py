"""Data models for the intelligence engine."""

from src.models.card import AgentStake, IntelligenceCardData, PrimaryPrediction, TierDisplay
from src.models.consultation import (
    ConfidenceFactors,
    ConsultationRecord,
    MDReview,
    SpecialistResponse,
    SynthesizedRecommendations,
    UserFeedback,
    parse_consultation,
    parse_specialist_response,
)
from src.models.enums import (
    AccuracyBand,
    AccuracyUnit,
    CardTier,
    MilestoneState,
    MilestoneType,
    SpecialistType,
    Trend,
)
from src.models.funnel import EngagementMetrics, FunnelStage, ValidationFunnel
from src.models.milestone import (
    FollowUpRequest,
    MilestoneFeedback,
    MilestoneReport,
    ReminderPlan,
)
from src.models.rewards import (
    AgentPerformance,
    Leaderboard,
    LeaderboardEntry,
    ResolutionOutcome,
    TokenReward,
)

__all__ = [
    "AgentStake",
    "IntelligenceCardData",
    "PrimaryPrediction",
    "TierDisplay",
    "ConfidenceFactors",
    "ConsultationRecord",
    "MDReview",
    "SpecialistResponse",
    "SynthesizedRecommendations",
    "UserFeedback",
    "parse_consultation",
    "parse_specialist_response",
    "AccuracyBand",
    "AccuracyUnit",
    "CardTier",
    "MilestoneState",
    "MilestoneType",
    "SpecialistType",
    "Trend",
    "EngagementMetrics",
    "FunnelStage",
    "ValidationFunnel",
    "FollowUpRequest",
    "MilestoneFeedback",
    "MilestoneReport",
    "ReminderPlan",
    "AgentPerformance",
    "Leaderboard",
    "LeaderboardEntry",
    "ResolutionOutcome",
    "TokenReward",
]
