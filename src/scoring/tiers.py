"""
Rarity tier classification.

Tiers form a strict ordering (standard < complete < verified < exceptional);
each tier's requirements are those of the tier below plus one more.
"""

import logging
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from src.models.card import IntelligenceCardData, TierDisplay
from src.models.enums import CardTier
from src.taxonomy.taxonomy import DEFAULT_TAXONOMY, Taxonomy
from src.utils.numbers import mean, round_half_up, safe_ratio


logger = logging.getLogger(__name__)


FULL_PANEL_SIZE = 5
COMPLETE_PANEL_SIZE = 4
HIGH_CONSENSUS = 90
COMPLETE_CONSENSUS = 80


def classify_tier(
    participating_count: int,
    consensus_percentage: float,
    md_verified: bool,
    outcome_validated: bool,
) -> CardTier:
    """
    Classify a consultation into a rarity tier. First matching rule wins.

    Args:
        participating_count: Number of specialists that staked
        consensus_percentage: Agreement, 0-100
        md_verified: Whether a physician approved the consultation
        outcome_validated: Whether follow-up validated the outcome

    Returns:
        The tier
    """
    full_panel_agrees = (
        participating_count >= FULL_PANEL_SIZE and consensus_percentage >= HIGH_CONSENSUS
    )

    if full_panel_agrees and md_verified and outcome_validated:
        return CardTier.EXCEPTIONAL
    if full_panel_agrees and md_verified:
        return CardTier.VERIFIED
    if participating_count >= COMPLETE_PANEL_SIZE and consensus_percentage >= COMPLETE_CONSENSUS:
        return CardTier.COMPLETE
    return CardTier.STANDARD


class TierClassifier:
    """Tier classification bound to a taxonomy for display lookups."""

    def __init__(self, taxonomy: Taxonomy = DEFAULT_TAXONOMY):
        self.taxonomy = taxonomy

    def classify(
        self,
        participating_count: int,
        consensus_percentage: float,
        md_verified: bool,
        outcome_validated: bool,
    ) -> CardTier:
        tier = classify_tier(
            participating_count, consensus_percentage, md_verified, outcome_validated
        )
        logger.debug(
            f"Tier {tier.value}: agents={participating_count}, "
            f"consensus={consensus_percentage}, md={md_verified}, outcome={outcome_validated}"
        )
        return tier

    def display(self, tier: CardTier) -> TierDisplay:
        """Presentation config (label, rarity band, colours) for a tier."""
        return self.taxonomy.tier_display(tier)


# =============================================================================
# TIER DISTRIBUTION
# =============================================================================

class TierStats(BaseModel):
    """Population figures for one tier."""

    model_config = ConfigDict(frozen=True)

    tier: CardTier
    count: int = 0
    percentage: float = Field(default=0.0, description="Share of all cards, one decimal")
    average_specialists: float = 0.0
    average_consensus: int = 0


class TierDistribution(BaseModel):
    """How cards spread across tiers, plus the upgrade pipeline."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    tiers: list[TierStats] = Field(default_factory=list)
    awaiting_md_review: int = Field(
        default=0, description="Complete cards an MD approval would upgrade"
    )
    awaiting_validation: int = Field(
        default=0, description="Verified cards still waiting on outcome validation"
    )

    def by_tier(self) -> dict[CardTier, TierStats]:
        return {stats.tier: stats for stats in self.tiers}


def tier_distribution(cards: Sequence[IntelligenceCardData]) -> TierDistribution:
    """
    Summarise a population of cards by tier, in canonical tier order.

    Args:
        cards: Built Intelligence Cards

    Returns:
        TierDistribution
    """
    total = len(cards)
    stats = []

    for tier in CardTier:
        members = [c for c in cards if c.tier == tier]
        stats.append(TierStats(
            tier=tier,
            count=len(members),
            percentage=round_half_up(safe_ratio(len(members), total) * 100, 1),
            average_specialists=round_half_up(
                mean([c.participating_count for c in members]), 1
            ),
            average_consensus=int(round_half_up(
                mean([c.consensus_percentage for c in members])
            )),
        ))

    return TierDistribution(
        total=total,
        tiers=stats,
        awaiting_md_review=sum(
            1 for c in cards if c.tier == CardTier.COMPLETE and not c.md_review_complete
        ),
        awaiting_validation=sum(
            1 for c in cards if c.tier == CardTier.VERIFIED and not c.outcome_validated
        ),
    )
