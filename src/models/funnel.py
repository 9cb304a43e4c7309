"""
Data models for the outcome-validation funnel and engagement metrics.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.utils.numbers import round_half_up


class FunnelStage(BaseModel):
    """One stage of the validation funnel."""

    model_config = ConfigDict(frozen=True)

    stage: str
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0)


class MilestoneDropoff(BaseModel):
    """Share of patients lost at each milestone (0-1)."""

    model_config = ConfigDict(frozen=True)

    week2: float
    week4: float
    week8: float


class ValidationFunnel(BaseModel):
    """Milestone completion across a consultation population."""

    model_config = ConfigDict(frozen=True)

    total_consultations: int = Field(..., ge=0)
    week2_validations: int = Field(default=0, ge=0)
    week4_validations: int = Field(default=0, ge=0)
    week8_validations: int = Field(default=0, ge=0)
    week2_completion_rate: float = 0.0
    week4_completion_rate: float = 0.0
    week8_completion_rate: float = 0.0
    dropoff: MilestoneDropoff
    stages: list[FunnelStage]


class ReturnVisitStats(BaseModel):
    """Tracking-page revisit figures."""

    model_config = ConfigDict(frozen=True)

    average_visits_per_case: float = 0.0
    cases_with_multiple_visits: int = 0
    percentage_returning: float = 0.0


class EngagementMetrics(BaseModel):
    """Population-level engagement view built on top of the funnel."""

    model_config = ConfigDict(frozen=True)

    funnel: ValidationFunnel
    validated_cases: int = 0
    overall_validation_rate: float = 0.0
    return_visits: ReturnVisitStats = Field(default_factory=ReturnVisitStats)
    verified_cards: int = 0
    exceptional_cards: int = 0
    premium_conversion_rate: float = 0.0
    average_days_to_first_validation: float = 14.0

    def summary(self) -> dict[str, Any]:
        """
        Dashboard view: rates to two decimals, premium conversion as a
        percentage to one decimal, camelCase keys.
        """
        funnel = self.funnel

        def rate(value: float) -> float:
            return round_half_up(value, 2)

        return {
            "totalConsultations": funnel.total_consultations,
            "week2Validations": funnel.week2_validations,
            "week4Validations": funnel.week4_validations,
            "week8Validations": funnel.week8_validations,
            "overallValidationRate": rate(self.overall_validation_rate),
            "averageVisitsPerCase": self.return_visits.average_visits_per_case,
            "casesWithMultipleVisits": self.return_visits.cases_with_multiple_visits,
            "percentageReturning": rate(self.return_visits.percentage_returning),
            "week2CompletionRate": rate(funnel.week2_completion_rate),
            "week4CompletionRate": rate(funnel.week4_completion_rate),
            "week8CompletionRate": rate(funnel.week8_completion_rate),
            "averageDaysToFirstValidation": round_half_up(self.average_days_to_first_validation, 1),
            "dropoffAtMilestone": {
                "week2": rate(funnel.dropoff.week2),
                "week4": rate(funnel.dropoff.week4),
                "week8": rate(funnel.dropoff.week8),
            },
            "usersWithResearchAgentAccess": self.verified_cards,
            "usersWithWearableIntegration": self.exceptional_cards,
            "premiumConversionRate": round_half_up(self.premium_conversion_rate * 100, 1),
            "validationFunnel": [stage.model_dump() for stage in funnel.stages],
        }
