"""
Tests for stake calculation.
"""

import pytest

from src.scoring.stake import BASE_STAKE, calculate_stake


class TestCalculateStake:
    """Tests for calculate_stake."""

    @pytest.mark.parametrize(
        "confidence,expected",
        [
            (1.0, 10.0),
            (0.95, 8.6),
            (0.9, 7.3),
            (0.8, 5.1),
            (0.75, 4.2),
            (0.5, 1.3),
            (0.0, 0.0),
        ],
    )
    def test_cubic_stake_rounded_to_one_decimal(self, confidence, expected):
        """Test stake = round(10 * c^3, 1)."""
        assert calculate_stake(confidence) == expected

    def test_half_rounds_up(self):
        """Test 1.25 rounds to 1.3, not banker's 1.2."""
        assert calculate_stake(0.5) == 1.3

    def test_out_of_range_is_clamped(self):
        """Test confidence outside [0, 1] is clamped, not rejected."""
        assert calculate_stake(1.5) == BASE_STAKE
        assert calculate_stake(-0.3) == 0.0

    @pytest.mark.parametrize("confidence", [None, "high", float("nan")])
    def test_non_numeric_stakes_nothing(self, confidence):
        """Test unusable confidence gives a zero stake."""
        assert calculate_stake(confidence) == 0.0

    def test_numeric_string_accepted(self):
        """Test numeric strings from JSON payloads are accepted."""
        assert calculate_stake("0.8") == 5.1

    def test_monotonic_and_non_negative(self):
        """Test stake never decreases as confidence rises."""
        stakes = [calculate_stake(i / 100) for i in range(0, 101)]

        assert all(s >= 0 for s in stakes)
        assert stakes == sorted(stakes)

    def test_custom_base_stake(self):
        """Test a different base scales the stake."""
        assert calculate_stake(1.0, base_stake=20.0) == 20.0
