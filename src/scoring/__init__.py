"""
Intelligence Card scoring.

Contains:
- Stake calculation from specialist confidence
- Primary prediction extraction (strategy chain)
- Consensus aggregation
- Tier classification and distribution
- The card builder that composes them
"""

from src.scoring.card_builder import (
    IntelligenceCardBuilder,
    build_card,
    card_share_metadata,
    format_card_timestamp,
)
from src.scoring.consensus import ConsensusResult, aggregate_consensus
from src.scoring.prediction import (
    FunctionalReturnStrategy,
    LeadingSentenceStrategy,
    PainReductionStrategy,
    PredictionExtractor,
)
from src.scoring.stake import calculate_stake
from src.scoring.tiers import TierClassifier, classify_tier, tier_distribution

__all__ = [
    "IntelligenceCardBuilder",
    "build_card",
    "card_share_metadata",
    "format_card_timestamp",
    "ConsensusResult",
    "aggregate_consensus",
    "FunctionalReturnStrategy",
    "LeadingSentenceStrategy",
    "PainReductionStrategy",
    "PredictionExtractor",
    "calculate_stake",
    "TierClassifier",
    "classify_tier",
    "tier_distribution",
]
