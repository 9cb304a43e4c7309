"""
Outcome tracking after a consultation.

Contains:
- The fixed milestone calendar and per-consultation status
- Reminder planning for due check-ins
- The population validation funnel and engagement metrics
- Follow-up resolution request building
"""

from src.outcomes.followup import build_follow_up_request
from src.outcomes.funnel import OutcomeValidationFunnel, milestone_dropoff
from src.outcomes.milestones import (
    MILESTONE_CALENDAR,
    MILESTONE_DAYS,
    MilestoneScheduler,
    days_since,
    merge_feedback,
    milestone_type,
    parse_milestone_feedback,
)

__all__ = [
    "build_follow_up_request",
    "OutcomeValidationFunnel",
    "milestone_dropoff",
    "MILESTONE_CALENDAR",
    "MILESTONE_DAYS",
    "MilestoneScheduler",
    "days_since",
    "merge_feedback",
    "milestone_type",
    "parse_milestone_feedback",
]
