"""
Token rewards and agent performance.

Contains:
- Accuracy normalization and trend classification
- Resolution of follow-up outcomes into ledger rewards
- Agent performance views and the leaderboard
"""

from src.rewards.leaderboard import AgentLeaderboardAggregator, top_earner_share
from src.rewards.resolver import (
    TokenRewardResolver,
    accuracy_band,
    classify_trend,
    dedupe_rewards,
    normalize_accuracy,
)

__all__ = [
    "AgentLeaderboardAggregator",
    "top_earner_share",
    "TokenRewardResolver",
    "accuracy_band",
    "classify_trend",
    "dedupe_rewards",
    "normalize_accuracy",
]
