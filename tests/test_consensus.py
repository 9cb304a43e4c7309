"""
Tests for consensus aggregation.
"""

import pytest

from src.models.card import AgentStake
from src.models.consultation import ConfidenceFactors
from src.models.enums import SpecialistType
from src.scoring.consensus import aggregate_consensus, confidence_score, consensus_percentage


def _stakes(*confidences):
    return [
        AgentStake(
            specialist=SpecialistType.TRIAGE,
            agent_name="Triage",
            token_stake=0.0,
            confidence=c,
        )
        for c in confidences
    ]


class TestConsensusPercentage:
    """Tests for consensus_percentage."""

    def test_prefers_inter_agent_agreement(self):
        """Test agreement wins over overall confidence."""
        factors = ConfidenceFactors(inter_agent_agreement=0.92, overall_confidence=0.6)
        assert consensus_percentage(factors) == 92

    def test_falls_back_to_overall_confidence(self):
        """Test overall confidence is used when agreement is missing."""
        assert consensus_percentage(ConfidenceFactors(overall_confidence=0.8)) == 80

    @pytest.mark.parametrize("factors", [None, ConfidenceFactors()])
    def test_defaults_to_75(self, factors):
        """Test the 0.75 default when no figures are present."""
        assert consensus_percentage(factors) == 75

    @pytest.mark.parametrize(
        "agreement,overall,expected",
        [
            (0.0, 0.8, 80),
            (0.0, None, 75),
            (0.0, 0.0, 75),
            (None, 0.0, 75),
        ],
    )
    def test_zero_figures_fall_through(self, agreement, overall, expected):
        """Test a zero figure is treated like a missing one."""
        factors = ConfidenceFactors(inter_agent_agreement=agreement, overall_confidence=overall)
        assert consensus_percentage(factors) == expected

    def test_clamped_to_percentage_range(self):
        """Test out-of-range agreement stays within 0-100."""
        assert consensus_percentage(ConfidenceFactors(inter_agent_agreement=1.4)) == 100
        assert consensus_percentage(ConfidenceFactors(inter_agent_agreement=-0.2)) == 0

    def test_huge_agreement_is_full_consensus(self):
        """Test a finite but huge figure still maps to 100."""
        assert consensus_percentage(ConfidenceFactors(inter_agent_agreement=1e307)) == 100


class TestConfidenceScore:
    """Tests for confidence_score."""

    def test_uses_overall_confidence(self):
        """Test overall confidence wins over agent confidences."""
        factors = ConfidenceFactors(overall_confidence=0.85)
        assert confidence_score(factors, _stakes(0.1, 0.2)) == 0.85

    def test_mean_of_agent_confidences(self):
        """Test the mean of per-agent confidences."""
        assert confidence_score(None, _stakes(0.6, 0.8)) == pytest.approx(0.7)

    def test_default_without_agents(self):
        """Test 0.75 when there are no agents."""
        assert confidence_score(None, []) == 0.75


class TestAggregateConsensus:
    """Tests for aggregate_consensus."""

    def test_both_values_always_defined(self):
        """Test no figures and no agents still gives numbers."""
        result = aggregate_consensus(None, [])

        assert result.consensus_percentage == 75
        assert result.confidence_score == 0.75
