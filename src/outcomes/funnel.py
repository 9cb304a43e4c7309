"""
Outcome validation funnel.

Aggregates milestone completion across a population of consultations:
completion rates per milestone, the four funnel stages and dropoff
between milestones. Engagement metrics (return visits, premium tiers,
time to first validation) build on the same figures.

Every ratio with a zero denominator resolves to a defined number: 0 for
rates, 1 (complete dropoff) for milestone-to-milestone dropoff.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional

from src.models.enums import CardTier
from src.models.funnel import (
    EngagementMetrics,
    FunnelStage,
    MilestoneDropoff,
    ReturnVisitStats,
    ValidationFunnel,
)
from src.models.milestone import MilestoneFeedback
from src.outcomes.milestones import MILESTONE_DAYS, SECONDS_PER_DAY, merge_feedback
from src.utils.clock import as_utc
from src.utils.numbers import mean, round_half_up, safe_ratio


logger = logging.getLogger(__name__)


DEFAULT_DAYS_TO_FIRST_VALIDATION = 14.0

STAGE_NAMES = (
    "Initial Consultation",
    "Week 2 Validation",
    "Week 4 Validation",
    "Week 8 Validation",
)


def milestone_dropoff(
    total_consultations: int,
    week2: int,
    week4: int,
    week8: int,
) -> MilestoneDropoff:
    """
    Share of patients lost at each milestone.

    Week 2 is measured against all consultations; later weeks against the
    previous milestone, with an empty previous milestone counting as total
    dropoff.
    """
    return MilestoneDropoff(
        week2=1 - safe_ratio(week2, total_consultations),
        week4=1 - safe_ratio(week4, week2) if week2 > 0 else 1.0,
        week8=1 - safe_ratio(week8, week4) if week4 > 0 else 1.0,
    )


class OutcomeValidationFunnel:
    """Builds funnel and engagement figures for a consultation population."""

    def __init__(self, milestone_days: tuple[int, ...] = MILESTONE_DAYS):
        self.milestone_days = milestone_days

    def build(
        self,
        total_consultations: int,
        week2_validations: int = 0,
        week4_validations: int = 0,
        week8_validations: int = 0,
    ) -> ValidationFunnel:
        """
        Build the funnel from completed-milestone counts.

        Args:
            total_consultations: Size of the consultation population
            week2_validations: Consultations with day-14 feedback
            week4_validations: Consultations with day-28 feedback
            week8_validations: Consultations with day-56 feedback

        Returns:
            ValidationFunnel
        """
        total = max(0, total_consultations)
        counts = (week2_validations, week4_validations, week8_validations)
        rates = [safe_ratio(count, total) for count in counts]

        stages = [FunnelStage(stage=STAGE_NAMES[0], count=total, percentage=100.0)]
        for name, count, rate in zip(STAGE_NAMES[1:], counts, rates):
            stages.append(FunnelStage(
                stage=name,
                count=count,
                percentage=round_half_up(rate * 100, 1),
            ))

        return ValidationFunnel(
            total_consultations=total,
            week2_validations=week2_validations,
            week4_validations=week4_validations,
            week8_validations=week8_validations,
            week2_completion_rate=rates[0],
            week4_completion_rate=rates[1],
            week8_completion_rate=rates[2],
            dropoff=milestone_dropoff(total, *counts),
            stages=stages,
        )

    def from_feedback(
        self,
        total_consultations: int,
        feedback: Iterable[MilestoneFeedback],
    ) -> ValidationFunnel:
        """
        Build the funnel from raw milestone feedback.

        Duplicate submissions for the same (consultation, day) count once.
        """
        merged = merge_feedback(feedback)
        counts = {day: 0 for day in self.milestone_days}
        for _, day in merged:
            if day in counts:
                counts[day] += 1
            else:
                logger.debug(f"Skipping feedback for off-calendar day {day}")

        week2, week4, week8 = (counts[day] for day in self.milestone_days)
        return self.build(total_consultations, week2, week4, week8)

    def engagement(
        self,
        total_consultations: int,
        feedback: Iterable[MilestoneFeedback] = (),
        visit_counts: Optional[Mapping[str, int]] = None,
        card_tiers: Iterable[CardTier] = (),
        consultation_created_at: Optional[Mapping[str, datetime]] = None,
    ) -> EngagementMetrics:
        """
        Population engagement metrics.

        Args:
            total_consultations: Size of the consultation population
            feedback: All milestone feedback submitted for the population
            visit_counts: Tracking-page views per consultation id; only
                tracked consultations appear here
            card_tiers: Tier of every consultation's card
            consultation_created_at: Creation time per consultation id, used
                for days-to-first-validation

        Returns:
            EngagementMetrics
        """
        feedback = list(merge_feedback(feedback).values())
        funnel = self.from_feedback(total_consultations, feedback)

        validated_cases = len({fb.consultation_id for fb in feedback})
        tiers = list(card_tiers)
        verified = sum(1 for tier in tiers if tier == CardTier.VERIFIED)
        exceptional = sum(1 for tier in tiers if tier == CardTier.EXCEPTIONAL)

        metrics = EngagementMetrics(
            funnel=funnel,
            validated_cases=validated_cases,
            overall_validation_rate=safe_ratio(validated_cases, funnel.total_consultations),
            return_visits=self.return_visits(visit_counts or {}),
            verified_cards=verified,
            exceptional_cards=exceptional,
            premium_conversion_rate=safe_ratio(verified + exceptional, funnel.total_consultations),
            average_days_to_first_validation=self.days_to_first_validation(
                feedback, consultation_created_at or {}
            ),
        )

        logger.info(
            f"Engagement: {validated_cases}/{funnel.total_consultations} validated, "
            f"{verified + exceptional} premium cards"
        )
        return metrics

    @staticmethod
    def return_visits(visit_counts: Mapping[str, int]) -> ReturnVisitStats:
        """Revisit figures over the consultations that have tracking views."""
        tracked = [count for count in visit_counts.values() if count > 0]
        if not tracked:
            return ReturnVisitStats()

        multiple = sum(1 for count in tracked if count > 1)
        return ReturnVisitStats(
            average_visits_per_case=round_half_up(sum(tracked) / len(tracked), 1),
            cases_with_multiple_visits=multiple,
            percentage_returning=safe_ratio(multiple, len(tracked)),
        )

    def days_to_first_validation(
        self,
        feedback: Iterable[MilestoneFeedback],
        consultation_created_at: Mapping[str, datetime],
    ) -> float:
        """
        Mean whole days between consultation and its first-milestone feedback.

        Defaults to 14.0 when no first-milestone feedback can be timed.
        """
        first_day = self.milestone_days[0]
        elapsed = []
        for fb in feedback:
            created_at = consultation_created_at.get(fb.consultation_id)
            if fb.milestone_day != first_day or created_at is None:
                continue
            seconds = (as_utc(fb.created_at) - as_utc(created_at)).total_seconds()
            elapsed.append(int(seconds // SECONDS_PER_DAY))

        return round_half_up(mean(elapsed, DEFAULT_DAYS_TO_FIRST_VALIDATION), 1)
