"""
Intelligence Card builder.

Composes stake calculation, prediction extraction, consensus aggregation
and tier classification into a complete card. Building is a pure function
of the consultation payload, and it never raises on malformed data: missing
or unusable input degrades to documented defaults.
"""

import hashlib
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Union

from src.models.card import AgentStake, IntelligenceCardData, PrimaryPrediction
from src.models.consultation import (
    ConsultationRecord,
    MDReview,
    UserFeedback,
    normalize_specialist_type,
    parse_consultation,
    parse_md_review,
    parse_user_feedback,
)
from src.models.enums import CardTier, SpecialistType
from src.scoring.consensus import aggregate_consensus
from src.scoring.prediction import NEUTRAL_PREDICTION_TEXT, PredictionExtractor
from src.scoring.stake import calculate_stake
from src.scoring.tiers import TierClassifier
from src.taxonomy.taxonomy import DEFAULT_TAXONOMY, Taxonomy
from src.utils.numbers import round_half_up
from src.utils.settings import Settings


logger = logging.getLogger(__name__)


FALLBACK_STAKE = 5.1
FALLBACK_CONFIDENCE = 0.75
FALLBACK_CONSENSUS = 75
SPECIALIST_LIST_CONFIDENCE = 0.8
CASE_ID_PREFIX = "OI-"
FALLBACK_CASE_ID = "OI-FALLBACK"
UNDATED_TIMESTAMP = "1970-01-01T00:00:00+00:00"


class IntelligenceCardBuilder:
    """
    Builds Intelligence Cards from consultation payloads.

    Lookup tables come from the injected taxonomy; the prediction
    extractor and tier classifier can be swapped for testing.
    """

    def __init__(
        self,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        extractor: Optional[PredictionExtractor] = None,
        classifier: Optional[TierClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the builder.

        Args:
            taxonomy: Specialist names/colours and tier display config
            extractor: Prediction extractor (defaults to the standard chain)
            classifier: Tier classifier
            clock: Time source for payloads without a creation time; when
                omitted such cards carry UNDATED_TIMESTAMP
        """
        self.taxonomy = taxonomy
        self.extractor = extractor or PredictionExtractor(taxonomy)
        self.classifier = classifier or TierClassifier(taxonomy)
        self.clock = clock

    def build(
        self,
        consultation: Union[ConsultationRecord, dict, None],
        user_feedback: Union[UserFeedback, dict, None] = None,
        md_review: Union[MDReview, dict, None] = None,
    ) -> IntelligenceCardData:
        """
        Build the card for one consultation.

        Args:
            consultation: Raw payload or an already-parsed record
            user_feedback: Optional patient feedback (presence marks feedback complete)
            md_review: Optional physician review

        Returns:
            IntelligenceCardData
        """
        record = (
            consultation
            if isinstance(consultation, ConsultationRecord)
            else parse_consultation(consultation)
        )
        if record is None:
            logger.warning("Missing consultation data, using fallback card")
            return self.fallback_card()

        feedback = (
            user_feedback
            if isinstance(user_feedback, UserFeedback) or user_feedback is None
            else parse_user_feedback(user_feedback)
        )
        review = (
            md_review
            if isinstance(md_review, MDReview) or md_review is None
            else parse_md_review(md_review)
        )

        if not record.responses and not record.participating_specialists:
            logger.warning(
                f"Consultation {record.consultation_id or '<no id>'} has no responses "
                f"or participating specialists; building card from defaults"
            )

        stakes = self.build_stakes(record)
        factors = record.synthesized_recommendations.confidence_factors
        consensus = aggregate_consensus(factors, stakes)

        highest = stakes[0] if stakes else None
        prediction = self.extractor.extract(record.responses, highest)

        user_feedback_complete = feedback is not None
        outcome_validated = bool(feedback and feedback.validated)
        md_review_complete = bool(review and review.approved)
        md_verified = md_review_complete

        tier = self.classifier.classify(
            participating_count=len(stakes),
            consensus_percentage=consensus.consensus_percentage,
            md_verified=md_verified,
            outcome_validated=outcome_validated,
        )

        card = IntelligenceCardData(
            case_id=self._case_id(record),
            timestamp=self._timestamp(record),
            agent_stakes=stakes,
            total_stake=round_half_up(sum(s.token_stake for s in stakes), 1),
            participating_count=len(stakes),
            consensus_percentage=consensus.consensus_percentage,
            confidence_score=consensus.confidence_score,
            primary_prediction=prediction,
            user_feedback_complete=user_feedback_complete,
            md_review_complete=md_review_complete,
            outcome_validated=outcome_validated,
            md_verified=md_verified,
            evidence_grade=record.synthesized_recommendations.resolved_evidence_grade,
            tier=tier,
        )

        logger.info(
            f"Built card {card.case_id}: tier={card.tier.value}, agents={card.participating_count}, "
            f"consensus={card.consensus_percentage}%, total_stake={card.total_stake}"
        )
        return card

    def build_stakes(self, record: ConsultationRecord) -> list[AgentStake]:
        """
        Derive sorted agent stakes from a consultation.

        Stakes come from responses; when there are none, they are
        synthesized from the participating-specialist names at 0.8
        confidence. Sorted by stake descending, ties broken by the
        canonical specialist order, then input order.
        """
        stakes = [
            self._stake(response.specialist, response.stake_confidence())
            for response in record.responses
        ]

        if not stakes and record.participating_specialists:
            logger.debug(
                f"No responses; synthesizing stakes for {len(record.participating_specialists)} "
                f"participating specialists"
            )
            stakes = [
                self._stake(normalize_specialist_type(name), SPECIALIST_LIST_CONFIDENCE)
                for name in record.participating_specialists
            ]

        return sorted(stakes, key=lambda s: (-s.token_stake, s.specialist.order))

    def fallback_card(self) -> IntelligenceCardData:
        """Fixed card returned when the consultation payload is missing."""
        triage = SpecialistType.TRIAGE
        stake = AgentStake(
            specialist=triage,
            agent_name=self.taxonomy.display_name(triage),
            token_stake=FALLBACK_STAKE,
            participated=True,
            color=self.taxonomy.color(triage),
            confidence=FALLBACK_CONFIDENCE,
        )
        return IntelligenceCardData(
            case_id=FALLBACK_CASE_ID,
            timestamp=self._now(),
            agent_stakes=[stake],
            total_stake=FALLBACK_STAKE,
            participating_count=1,
            consensus_percentage=FALLBACK_CONSENSUS,
            confidence_score=FALLBACK_CONFIDENCE,
            primary_prediction=PrimaryPrediction(
                text=NEUTRAL_PREDICTION_TEXT,
                agent=self.taxonomy.full_name(triage),
                stake=FALLBACK_STAKE,
            ),
            user_feedback_complete=False,
            md_review_complete=False,
            outcome_validated=False,
            md_verified=False,
            evidence_grade=None,
            tier=CardTier.STANDARD,
        )

    def _stake(self, specialist: SpecialistType, confidence: float) -> AgentStake:
        return AgentStake(
            specialist=specialist,
            agent_name=self.taxonomy.display_name(specialist),
            token_stake=calculate_stake(confidence),
            participated=True,
            color=self.taxonomy.color(specialist),
            confidence=confidence,
        )

    @staticmethod
    def _case_id(record: ConsultationRecord) -> str:
        if record.consultation_id:
            return record.consultation_id
        # Same payload, same id
        digest = hashlib.sha1(record.model_dump_json().encode("utf-8")).hexdigest()
        return f"{CASE_ID_PREFIX}{digest[:10].upper()}"

    def _timestamp(self, record: ConsultationRecord) -> str:
        if record.created_at is not None:
            return record.created_at.isoformat()
        return self._now()

    def _now(self) -> str:
        if self.clock is None:
            return UNDATED_TIMESTAMP
        return self.clock().isoformat()


def build_card(
    consultation: Union[ConsultationRecord, dict, None],
    user_feedback: Union[UserFeedback, dict, None] = None,
    md_review: Union[MDReview, dict, None] = None,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> IntelligenceCardData:
    """Build a card with a default builder."""
    return IntelligenceCardBuilder(taxonomy).build(consultation, user_feedback, md_review)


# =============================================================================
# SHARING
# =============================================================================

def format_card_timestamp(iso_timestamp: str) -> str:
    """
    Format a card timestamp for display, e.g. "Jan 5, 2026".

    Unparseable timestamps are returned unchanged.
    """
    try:
        moment = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return iso_timestamp
    return f"{moment:%b} {moment.day}, {moment.year}"


def card_share_metadata(
    card: IntelligenceCardData,
    image_url: Optional[str] = None,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    tracking_base_url: Optional[str] = None,
) -> dict[str, Any]:
    """
    Build the share metadata for a card (title, description, traits).

    Args:
        card: The card to describe
        image_url: Rendered card image, if any
        taxonomy: Source of tier labels and the collection name
        tracking_base_url: Base URL of the public tracking page (from settings when omitted)

    Returns:
        Metadata dict with name, description, image, attributes and properties
    """
    if tracking_base_url is None:
        tracking_base_url = Settings.from_env().tracking_base_url
    tier_display = taxonomy.tier_display(card.tier)

    description = (
        f"{card.participating_count}-specialist consultation with "
        f"{card.consensus_percentage}% consensus"
    )
    if card.md_verified:
        description += ", MD verified"
    if card.evidence_grade:
        description += f", Grade {card.evidence_grade} evidence"

    return {
        "name": f"OrthoIQ Intelligence Card #{card.case_id}",
        "description": description,
        "image": image_url or "",
        "attributes": [
            {"trait_type": "Tier", "value": tier_display.label},
            {"trait_type": "Tier Rarity", "value": tier_display.percentage},
            {"trait_type": "Specialists", "value": card.participating_count},
            {"trait_type": "Consensus", "value": f"{card.consensus_percentage}%"},
            {"trait_type": "Total Stake", "value": f"{card.total_stake} tokens"},
            {"trait_type": "MD Verified", "value": "Yes" if card.md_verified else "No"},
            {"trait_type": "Evidence Grade", "value": card.evidence_grade or "N/A"},
            {"trait_type": "Outcome Validated", "value": "Yes" if card.outcome_validated else "No"},
            {"trait_type": "Primary Predictor", "value": card.primary_prediction.agent},
        ],
        "properties": {
            "caseId": card.case_id,
            "timestamp": card.timestamp,
            "collection": taxonomy.collection_name,
            "category": "Medical AI",
            "trackingUrl": f"{tracking_base_url.rstrip('/')}/{card.case_id}",
        },
    }
