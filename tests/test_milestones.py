"""
Tests for milestone scheduling, feedback merging and reminders.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.models.enums import MilestoneState, MilestoneType
from src.models.milestone import MilestoneFeedback
from src.outcomes.milestones import (
    MILESTONE_DAYS,
    MilestoneScheduler,
    days_since,
    merge_feedback,
    milestone_type,
    parse_milestone_feedback,
)
from src.utils.clock import utc_now


@pytest.fixture
def scheduler(fixed_clock):
    """Create a scheduler with a fixed clock."""
    return MilestoneScheduler(clock=fixed_clock)


def _created(now, days, hours=0):
    return now - timedelta(days=days, hours=hours)


class TestCalendar:
    """Tests for the fixed milestone calendar."""

    def test_fixed_days(self):
        """Test the calendar is exactly 14, 28 and 56."""
        assert MILESTONE_DAYS == (14, 28, 56)

    @pytest.mark.parametrize(
        "day,expected",
        [
            (14, MilestoneType.PAIN),
            (28, MilestoneType.FUNCTIONAL),
            (56, MilestoneType.MOVEMENT),
            (30, None),
        ],
    )
    def test_milestone_type(self, day, expected):
        """Test each day maps to what it measures."""
        assert milestone_type(day) == expected


class TestDaysSince:
    """Tests for days_since."""

    def test_floors_partial_days(self, fixed_now):
        """Test partial days are floored."""
        assert days_since(_created(fixed_now, 13, hours=23), fixed_now) == 13
        assert days_since(_created(fixed_now, 14), fixed_now) == 14

    def test_never_negative(self, fixed_now):
        """Test a future creation time gives zero."""
        assert days_since(fixed_now + timedelta(days=2), fixed_now) == 0

    def test_naive_datetimes_are_utc(self, fixed_now):
        """Test naive and aware datetimes can be mixed."""
        naive = datetime(2026, 2, 1, 12, 0)
        assert days_since(naive, fixed_now) == 28


class TestMilestoneStatus:
    """Tests for MilestoneScheduler.status."""

    def test_new_consultation(self, scheduler, fixed_now):
        """Test everything is upcoming on day 0."""
        report = scheduler.status(fixed_now)

        assert report.days_since == 0
        assert [m.state for m in report.milestones] == [MilestoneState.UPCOMING] * 3
        assert report.current_milestone.day == 14
        assert report.current_milestone.status == MilestoneState.UPCOMING
        assert report.completed_count == 0
        assert report.total_milestones == 3

    def test_due_after_day_passes(self, scheduler, fixed_now):
        """Test day 14 is due from day 14 on."""
        report = scheduler.status(_created(fixed_now, 15))
        rows = {m.day: m for m in report.milestones}

        assert rows[14].due is True
        assert rows[14].state == MilestoneState.DUE
        assert rows[28].due is False
        assert rows[28].state == MilestoneState.UPCOMING
        assert report.current_milestone.day == 14
        assert report.current_milestone.type == MilestoneType.PAIN
        assert report.current_milestone.status == MilestoneState.DUE

    def test_completed_is_never_due(self, scheduler, fixed_now, make_feedback):
        """Test submitted feedback completes the day and attaches its data."""
        feedback = [make_feedback(milestone_day=14, progress_data={"painLevel": 3})]

        report = scheduler.status(_created(fixed_now, 30), feedback)
        rows = {m.day: m for m in report.milestones}

        assert rows[14].completed is True
        assert rows[14].due is False
        assert rows[14].data["progressData"]["painLevel"] == 3
        assert rows[28].state == MilestoneState.DUE
        assert report.current_milestone.day == 28
        assert report.completed_count == 1

    def test_current_is_lowest_incomplete(self, scheduler, fixed_now):
        """Test a skipped earlier milestone stays current."""
        report = scheduler.status(_created(fixed_now, 60), completed_days=[28, 56])

        assert report.current_milestone.day == 14
        assert report.current_milestone.status == MilestoneState.DUE

    def test_all_completed_is_terminal(self, scheduler, fixed_now):
        """Test no current milestone once every day is completed."""
        report = scheduler.status(_created(fixed_now, 60), completed_days=[14, 28, 56])

        assert report.current_milestone is None
        assert report.is_complete is True
        assert report.completed_count == 3

    def test_off_calendar_days_ignored(self, scheduler, fixed_now):
        """Test completed days outside the calendar are not counted."""
        report = scheduler.status(_created(fixed_now, 20), completed_days=[7, 14])

        assert report.completed_count == 1

    def test_explicit_now_overrides_clock(self, scheduler, fixed_now):
        """Test a given evaluation time is used instead of the clock."""
        created = _created(fixed_now, 10)

        report = scheduler.status(created, now=fixed_now + timedelta(days=30))

        assert report.days_since == 40


class TestMergeFeedback:
    """Tests for feedback merging."""

    def test_latest_submission_wins(self, fixed_now, make_feedback):
        """Test duplicate submissions overwrite rather than accumulate."""
        early = make_feedback(created_at=fixed_now - timedelta(hours=2), progress_data={"painLevel": 6})
        late = make_feedback(created_at=fixed_now, progress_data={"painLevel": 4})

        merged = merge_feedback([late, early])

        assert len(merged) == 1
        assert merged[("case-001", 14)].progress_data.pain_level == 4

    def test_defaulted_timestamp_is_utc(self):
        """Test feedback without createdAt is stamped in aware UTC."""
        feedback = MilestoneFeedback(consultation_id="case-001", milestone_day=14)

        assert feedback.created_at.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("zone", ["America/Los_Angeles", "Asia/Tokyo"])
    def test_resubmission_wins_in_any_local_timezone(self, local_timezone, zone):
        """Test a resubmission with a defaulted timestamp replaces the earlier one."""
        local_timezone(zone)
        earlier = MilestoneFeedback(
            consultation_id="case-001",
            milestone_day=14,
            created_at=utc_now() - timedelta(minutes=5),
            progress_data={"painLevel": 6},
        )
        resubmitted = MilestoneFeedback(
            consultation_id="case-001",
            milestone_day=14,
            progress_data={"painLevel": 4},
        )

        merged = merge_feedback([resubmitted, earlier])

        assert merged[("case-001", 14)].progress_data.pain_level == 4

    def test_distinct_days_kept(self, make_feedback):
        """Test different days and consultations are separate records."""
        merged = merge_feedback([
            make_feedback(milestone_day=14),
            make_feedback(milestone_day=28),
            make_feedback(consultation_id="case-002", milestone_day=14),
        ])

        assert len(merged) == 3

    def test_duplicates_count_once_in_status(self, scheduler, fixed_now, make_feedback):
        """Test duplicates do not inflate the completed count."""
        feedback = [make_feedback(), make_feedback()]

        report = scheduler.status(_created(fixed_now, 20), feedback)

        assert report.completed_count == 1


class TestParseMilestoneFeedback:
    """Tests for parse_milestone_feedback."""

    def test_valid_event(self):
        """Test a camelCase event parses."""
        feedback = parse_milestone_feedback({
            "consultationId": "case-001",
            "milestoneDay": 28,
            "progressData": {"functionalScore": 70, "adherence": 0.9},
            "patientReportedOutcome": {"overallProgress": "improving"},
        })

        assert feedback.milestone_day == 28
        assert feedback.progress_data.functional_score == 70
        assert feedback.patient_reported_outcome.overall_progress == "improving"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "text",
            {"milestoneDay": 14},
            {"consultationId": "case-001", "milestoneDay": 30},
            {"consultationId": "case-001", "milestoneDay": "soon"},
        ],
    )
    def test_invalid_events(self, payload):
        """Test malformed or off-calendar events are rejected."""
        assert parse_milestone_feedback(payload) is None


class TestReminderPlan:
    """Tests for MilestoneScheduler.reminder_plan."""

    def test_reminder_on_window_day(self, scheduler, fixed_now):
        """Test a reminder is produced on the day the window opens."""
        plan = scheduler.reminder_plan("case-001", _created(fixed_now, 14, hours=3))

        assert plan.days_since == 14
        assert plan.due_days == [14]
        assert len(plan.reminders) == 1
        assert plan.reminders[0].milestone_day == 14
        assert plan.reminders[0].message.startswith("Week 2 Check-in:")

    def test_no_repeat_after_window_day(self, scheduler, fixed_now):
        """Test the reminder is not repeated on later days."""
        plan = scheduler.reminder_plan("case-001", _created(fixed_now, 16))

        assert plan.due_days == [14]
        assert plan.reminders == []

    def test_no_reminder_for_completed_day(self, scheduler, fixed_now, make_feedback):
        """Test completed milestones need no reminder."""
        plan = scheduler.reminder_plan(
            "case-001", _created(fixed_now, 28), [make_feedback(milestone_day=28)]
        )

        assert plan.completed_days == [28]
        assert plan.pending_days == [14, 56]
        assert plan.reminders == []

    def test_week_eight_message(self, scheduler, fixed_now, make_feedback):
        """Test the message names the milestone week."""
        feedback = [make_feedback(milestone_day=14), make_feedback(milestone_day=28)]

        plan = scheduler.reminder_plan("case-001", _created(fixed_now, 56), feedback)

        assert [r.milestone_day for r in plan.reminders] == [56]
        assert plan.reminders[0].message.startswith("Week 8 Check-in:")
