"""
Milestone scheduling.

Follow-up happens on a fixed calendar: 2, 4 and 8 weeks after the
consultation, each measuring a different outcome. A milestone day moves
from upcoming to due as time passes and to completed when feedback for
that day is submitted; completed is terminal.
"""

import logging
import math
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from pydantic import ValidationError

from src.models.enums import MilestoneState, MilestoneType
from src.models.milestone import (
    CurrentMilestone,
    MilestoneDefinition,
    MilestoneFeedback,
    MilestoneReminder,
    MilestoneReport,
    MilestoneStatus,
    ReminderPlan,
)
from src.utils.clock import as_utc, utc_now


logger = logging.getLogger(__name__)


MILESTONE_CALENDAR: tuple[MilestoneDefinition, ...] = (
    MilestoneDefinition(day=14, type=MilestoneType.PAIN, label="Week 2 - Pain"),
    MilestoneDefinition(day=28, type=MilestoneType.FUNCTIONAL, label="Week 4 - Functional"),
    MilestoneDefinition(day=56, type=MilestoneType.MOVEMENT, label="Week 8 - Movement"),
)

MILESTONE_DAYS: tuple[int, ...] = tuple(m.day for m in MILESTONE_CALENDAR)

SECONDS_PER_DAY = 86400

REMINDER_MESSAGE = (
    "Week {week} Check-in: How is your recovery progressing? "
    "Share your feedback to earn tokens and help improve OrthoIQ."
)


def days_since(created_at: datetime, now: datetime) -> int:
    """
    Whole days elapsed since the consultation (floored, never negative).

    Naive datetimes are taken as UTC.
    """
    elapsed = (as_utc(now) - as_utc(created_at)).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))


def milestone_definition(day: int) -> Optional[MilestoneDefinition]:
    for definition in MILESTONE_CALENDAR:
        if definition.day == day:
            return definition
    return None


def milestone_type(day: int) -> Optional[MilestoneType]:
    """Type measured at a milestone day, or None for days off the calendar."""
    definition = milestone_definition(day)
    return definition.type if definition else None


def parse_milestone_feedback(payload: Any) -> Optional[MilestoneFeedback]:
    """
    Validate a milestone feedback event.

    Returns None (and logs) for events that are malformed or name a day
    that is not on the calendar.
    """
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object milestone feedback")
        return None

    try:
        feedback = MilestoneFeedback.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed milestone feedback: {e.error_count()} errors")
        return None

    if feedback.milestone_day not in MILESTONE_DAYS:
        logger.warning(
            f"Ignoring feedback for {feedback.consultation_id}: day {feedback.milestone_day} "
            f"is not a milestone day"
        )
        return None

    return feedback


def merge_feedback(
    feedback: Iterable[MilestoneFeedback],
) -> dict[tuple[str, int], MilestoneFeedback]:
    """
    Collapse submissions to one authoritative record per (consultation, day).

    A later submission overwrites an earlier one; with equal timestamps,
    the one seen last wins.
    """
    merged: dict[tuple[str, int], MilestoneFeedback] = {}
    for item in feedback:
        existing = merged.get(item.key)
        if existing is None or as_utc(item.created_at) >= as_utc(existing.created_at):
            merged[item.key] = item
    return merged


class MilestoneScheduler:
    """Computes milestone state for consultations on the fixed calendar."""

    def __init__(
        self,
        calendar: Sequence[MilestoneDefinition] = MILESTONE_CALENDAR,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.calendar = tuple(sorted(calendar, key=lambda m: m.day))
        self.clock = clock

    @property
    def days(self) -> list[int]:
        return [m.day for m in self.calendar]

    def current_milestone(
        self,
        elapsed_days: int,
        completed_days: Iterable[int],
    ) -> Optional[CurrentMilestone]:
        """
        The lowest milestone day not yet completed, or None when all are done.
        """
        completed = set(completed_days)
        for definition in self.calendar:
            if definition.day not in completed:
                state = (
                    MilestoneState.DUE if elapsed_days >= definition.day else MilestoneState.UPCOMING
                )
                return CurrentMilestone(day=definition.day, type=definition.type, status=state)
        return None

    def status(
        self,
        created_at: datetime,
        feedback: Iterable[MilestoneFeedback] = (),
        completed_days: Iterable[int] = (),
        now: Optional[datetime] = None,
    ) -> MilestoneReport:
        """
        Milestone status for one consultation.

        Args:
            created_at: When the consultation happened
            feedback: Submitted milestone feedback for this consultation
            completed_days: Extra completed days (when only the days are known)
            now: Evaluation time (defaults to the scheduler clock)

        Returns:
            MilestoneReport
        """
        elapsed = days_since(created_at, now or self.clock())

        by_day = {fb.milestone_day: fb for fb in merge_feedback(feedback).values()}
        completed = set(by_day) | set(completed_days)
        off_calendar = completed - set(self.days)
        if off_calendar:
            logger.debug(f"Ignoring completed days off the calendar: {sorted(off_calendar)}")
        completed -= off_calendar

        rows = []
        for definition in self.calendar:
            is_completed = definition.day in completed
            is_due = not is_completed and elapsed >= definition.day

            if is_completed:
                state = MilestoneState.COMPLETED
            elif is_due:
                state = MilestoneState.DUE
            else:
                state = MilestoneState.UPCOMING

            submitted = by_day.get(definition.day)
            rows.append(MilestoneStatus(
                day=definition.day,
                type=definition.type,
                label=definition.label,
                state=state,
                completed=is_completed,
                due=is_due,
                data=submitted.model_dump(mode="json", by_alias=True) if submitted else None,
            ))

        return MilestoneReport(
            milestones=rows,
            days_since=elapsed,
            current_milestone=self.current_milestone(elapsed, completed),
            completed_count=len(completed),
            total_milestones=len(self.calendar),
        )

    def reminder_plan(
        self,
        consultation_id: str,
        created_at: datetime,
        feedback: Iterable[MilestoneFeedback] = (),
        now: Optional[datetime] = None,
    ) -> ReminderPlan:
        """
        Work out which check-in reminders a consultation needs.

        A reminder is produced only on the day a milestone's window opens
        (``day <= days_since < day + 1``), so a daily job sends each
        reminder once.

        Returns:
            ReminderPlan with pending, due and send-today milestones
        """
        report = self.status(created_at, feedback, now=now)

        completed_days = [row.day for row in report.milestones if row.completed]
        pending_days = [row.day for row in report.milestones if not row.completed]
        due_days = [row.day for row in report.milestones if row.due]

        reminders = [
            MilestoneReminder(
                consultation_id=consultation_id,
                milestone_day=definition.day,
                message=REMINDER_MESSAGE.format(week=definition.week),
            )
            for definition in self.calendar
            if definition.day in due_days and report.days_since < definition.day + 1
        ]

        if reminders:
            logger.info(
                f"{len(reminders)} milestone reminder(s) for {consultation_id} "
                f"at day {report.days_since}"
            )

        return ReminderPlan(
            consultation_id=consultation_id,
            days_since=report.days_since,
            completed_days=completed_days,
            pending_days=pending_days,
            due_days=due_days,
            reminders=reminders,
        )
