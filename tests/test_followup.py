"""
Tests for follow-up resolution request building.
"""

import pytest

from src.outcomes.followup import build_follow_up_request


class TestBuildFollowUpRequest:
    """Tests for build_follow_up_request."""

    def test_reported_values(self, make_feedback, fixed_now):
        """Test reported figures are carried into the request."""
        feedback = make_feedback(
            milestone_day=28,
            progress_data={"painLevel": 2, "functionalScore": 85, "adherence": 0.9},
            patient_reported_outcome={"overallProgress": "improving"},
        )

        data = build_follow_up_request(feedback, timestamp=fixed_now).follow_up_data

        assert data.pain_level == 2
        assert data.functional_improvement == 85
        assert data.returned_to_activity is True
        assert data.adherence_rate == pytest.approx(90.0)
        assert data.days_since_consultation == 28
        assert data.timestamp == fixed_now.isoformat()

    def test_defaults_for_missing_values(self, make_feedback, fixed_now):
        """Test neutral defaults when the patient left fields blank."""
        data = build_follow_up_request(make_feedback(), timestamp=fixed_now).follow_up_data

        assert data.pain_level == 5.0
        assert data.functional_improvement == 50.0
        assert data.returned_to_activity is False
        assert data.adherence_rate == 80.0
        assert data.days_since_consultation == 14

    def test_zero_pain_is_kept(self, make_feedback, fixed_now):
        """Test a reported zero is a value, not a missing figure."""
        feedback = make_feedback(progress_data={"painLevel": 0, "adherence": 0})

        data = build_follow_up_request(feedback, timestamp=fixed_now).follow_up_data

        assert data.pain_level == 0
        assert data.adherence_rate == 0

    def test_only_improving_counts_as_returned(self, make_feedback, fixed_now):
        """Test stable progress is not a return to activity."""
        feedback = make_feedback(patient_reported_outcome={"overallProgress": "stable"})

        data = build_follow_up_request(feedback, timestamp=fixed_now).follow_up_data

        assert data.returned_to_activity is False

    def test_payload_shape(self, make_feedback, fixed_now):
        """Test the camelCase request body."""
        payload = build_follow_up_request(make_feedback(), timestamp=fixed_now).to_payload()

        assert payload["consultationId"] == "case-001"
        assert set(payload["followUpData"]) == {
            "painLevel",
            "functionalImprovement",
            "returnedToActivity",
            "adherenceRate",
            "daysSinceConsultation",
            "timestamp",
        }
