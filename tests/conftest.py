"""
Pytest configuration and shared fixtures for the test suite.
"""

import time
from datetime import datetime, timedelta, timezone

import pytest

from src.models.milestone import MilestoneFeedback
from src.models.rewards import TokenReward
from src.taxonomy.taxonomy import Taxonomy


FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Time
# ============================================================================

@pytest.fixture
def fixed_now():
    """A fixed evaluation time."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """A clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def local_timezone(monkeypatch):
    """Switch the process-local timezone, restoring it afterwards."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def _set(name: str):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield _set
    monkeypatch.undo()
    time.tzset()


# ============================================================================
# Taxonomy
# ============================================================================

@pytest.fixture
def taxonomy():
    """The built-in taxonomy."""
    return Taxonomy()


# ============================================================================
# Consultation Payloads
# ============================================================================

@pytest.fixture
def full_panel_payload():
    """A five-specialist consultation with high agreement."""
    return {
        "consultationId": "case-001",
        "createdAt": "2026-01-05T09:30:00Z",
        "responses": [
            {
                "specialistType": "triage",
                "confidence": 0.9,
                "response": "Likely patellofemoral pain syndrome. Conservative care is appropriate.",
            },
            {
                "response": {
                    "specialistType": "painWhisperer",
                    "confidence": 0.95,
                    "response": "Expect 30-50% pain reduction within 6 weeks with consistent therapy.",
                },
            },
            {
                "specialistType": "movementDetective",
                "confidence": 0.8,
                "response": "Hip abductor weakness is driving knee valgus during squats.",
            },
            {
                "specialistType": "strengthSage",
                "confidence": 0.7,
                "response": "Progressive loading should restore quadriceps strength.",
            },
            {
                "specialistType": "mindMender",
                "confidence": 0.6,
                "assessment": "Fear of movement is moderate and should ease with graded exposure.",
            },
        ],
        "synthesizedRecommendations": {
            "confidenceFactors": {
                "interAgentAgreement": 0.92,
                "overallConfidence": 0.85,
            },
            "prescriptionData": {"evidenceBase": {"evidenceGrade": "B"}},
        },
    }


@pytest.fixture
def specialist_list_payload():
    """A consultation that only names its participating specialists."""
    return {
        "consultationId": "case-002",
        "createdAt": "2026-01-06T10:00:00Z",
        "participatingSpecialists": [
            "triage",
            "painWhisperer",
            "movementDetective",
            "strengthSage",
        ],
    }


# ============================================================================
# Milestones and Rewards
# ============================================================================

@pytest.fixture
def make_feedback():
    """Factory for milestone feedback records."""
    def _create(
        consultation_id: str = "case-001",
        milestone_day: int = 14,
        created_at: datetime = FIXED_NOW,
        **fields,
    ):
        return MilestoneFeedback(
            consultation_id=consultation_id,
            milestone_day=milestone_day,
            created_at=created_at,
            **fields,
        )
    return _create


@pytest.fixture
def make_reward():
    """Factory for ledger rewards, dated relative to FIXED_NOW."""
    def _create(
        agent_id: str = "painWhisperer",
        reward: float = 10.0,
        accuracy: float = 0.8,
        days_ago: float = 0,
        consultation_id: str = "case-001",
        milestone_day: int = 14,
    ):
        return TokenReward(
            agent_id=agent_id,
            reward=reward,
            accuracy=accuracy,
            consultation_id=consultation_id,
            milestone_day=milestone_day,
            awarded_at=FIXED_NOW - timedelta(days=days_ago),
        )
    return _create
