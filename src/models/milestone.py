"""
Data models for milestone follow-up and outcome validation.

Captures patient check-ins at fixed points after a consultation
(2, 4 and 8 weeks) and the per-consultation milestone status view.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import MilestoneState, MilestoneType
from src.utils.clock import utc_now


class ProgressData(BaseModel):
    """Patient-reported progress fields. All optional and free-form."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    pain_level: Optional[float] = Field(default=None, alias="painLevel", description="0-10")
    functional_score: Optional[float] = Field(default=None, alias="functionalScore")
    movement_quality: Optional[float] = Field(default=None, alias="movementQuality")
    adherence: Optional[float] = Field(default=None, description="0-1 share of plan followed")
    completed_interventions: list[str] = Field(default_factory=list, alias="completedInterventions")
    new_symptoms: list[str] = Field(default_factory=list, alias="newSymptoms")
    concern_flags: list[str] = Field(default_factory=list, alias="concernFlags")


class PatientReportedOutcome(BaseModel):
    """How the patient summarises their recovery so far."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    overall_progress: Optional[str] = Field(
        default=None,
        alias="overallProgress",
        description="improving, stable, worsening"
    )
    satisfaction_so_far: Optional[float] = Field(default=None, alias="satisfactionSoFar")
    difficulties_encountered: list[str] = Field(
        default_factory=list, alias="difficultiesEncountered"
    )


class MilestoneFeedback(BaseModel):
    """
    One milestone check-in.

    At most one authoritative record exists per (consultation, day);
    a later submission replaces an earlier one.
    """

    model_config = ConfigDict(populate_by_name=True)

    consultation_id: str = Field(..., alias="consultationId")
    milestone_day: int = Field(..., alias="milestoneDay")
    progress_data: ProgressData = Field(default_factory=ProgressData, alias="progressData")
    patient_reported_outcome: PatientReportedOutcome = Field(
        default_factory=PatientReportedOutcome, alias="patientReportedOutcome"
    )
    milestone_achieved: bool = Field(default=True, alias="milestoneAchieved")
    progress_status: Optional[str] = Field(
        default=None,
        alias="progressStatus",
        description="on_track, needs_attention, concerning, validated, ..."
    )
    token_reward: float = Field(default=0.0, ge=0.0, alias="tokenReward")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")

    @property
    def key(self) -> tuple[str, int]:
        return (self.consultation_id, self.milestone_day)


class MilestoneDefinition(BaseModel):
    """A fixed calendar entry."""

    model_config = ConfigDict(frozen=True)

    day: int
    type: MilestoneType
    label: str

    @property
    def week(self) -> int:
        return self.day // 7


class MilestoneStatus(BaseModel):
    """Status of one milestone day for one consultation."""

    model_config = ConfigDict(frozen=True)

    day: int
    type: MilestoneType
    label: str
    state: MilestoneState
    completed: bool
    due: bool
    data: Optional[dict[str, Any]] = None


class CurrentMilestone(BaseModel):
    """The next milestone the patient should complete."""

    model_config = ConfigDict(frozen=True)

    day: int
    type: MilestoneType
    status: MilestoneState = Field(..., description="due or upcoming")


class MilestoneReport(BaseModel):
    """Milestone status for one consultation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    milestones: list[MilestoneStatus]
    days_since: int = Field(..., ge=0, alias="daysSince")
    current_milestone: Optional[CurrentMilestone] = Field(default=None, alias="currentMilestone")
    completed_count: int = Field(..., ge=0, alias="completedCount")
    total_milestones: int = Field(..., alias="totalMilestones")

    @property
    def is_complete(self) -> bool:
        return self.current_milestone is None


class MilestoneReminder(BaseModel):
    """A check-in reminder ready for the notification collaborator."""

    model_config = ConfigDict(frozen=True)

    consultation_id: str
    milestone_day: int
    message: str


class ReminderPlan(BaseModel):
    """Pending, due and send-today milestones for one consultation."""

    model_config = ConfigDict(frozen=True)

    consultation_id: str
    days_since: int
    completed_days: list[int]
    pending_days: list[int]
    due_days: list[int]
    reminders: list[MilestoneReminder] = Field(default_factory=list)


class FollowUpData(BaseModel):
    """Follow-up figures sent to the prediction-resolution service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pain_level: float = Field(..., alias="painLevel")
    functional_improvement: float = Field(..., alias="functionalImprovement")
    returned_to_activity: bool = Field(..., alias="returnedToActivity")
    adherence_rate: float = Field(..., alias="adherenceRate", description="0-100")
    days_since_consultation: int = Field(..., alias="daysSinceConsultation")
    timestamp: str


class FollowUpRequest(BaseModel):
    """Resolution request for one milestone check-in."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    consultation_id: str = Field(..., alias="consultationId")
    follow_up_data: FollowUpData = Field(..., alias="followUpData")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
