"""
Unit tests for the ELO rating updater.

Tests the core ELO calculation logic to ensure:
- Favorites winning gain less than underdogs winning
- Sum of rating changes is zero (zero-sum)
- Rounding is half-up on the delta
- K-factor is taken from the caller
"""

from decimal import Decimal

import pytest

from tourney.engine.rating import RatingUpdater, expected_score
from tourney.errors import ValidationError


class TestRatingUpdater:
    """Tests for RatingUpdater class."""

    @pytest.fixture
    def updater(self):
        """Create an updater instance for tests."""
        return RatingUpdater()

    def test_equal_ratings(self, updater):
        """Equal ratings at K=32 move exactly 16 points."""
        assert updater.apply(1000, 1000, k_factor=32) == (1016, 984)

    def test_favorite_wins(self, updater):
        """
        Test that when the favorite wins, they gain fewer points.

        1200 beating 1000: E ≈ 0.7597, 32 × 0.2403 ≈ 7.69 → 8.
        """
        change = updater.compute(1200, 1000, k_factor=32)
        assert change.delta == 8
        assert not change.was_upset

    def test_underdog_wins(self, updater):
        """Beating a side rated 400 higher is worth 29, the reverse only 3."""
        upset = updater.compute(1000, 1400, k_factor=32)
        expected = updater.compute(1400, 1000, k_factor=32)
        assert upset.delta == 29
        assert expected.delta == 3
        assert upset.was_upset

    @pytest.mark.parametrize(
        "winner, loser",
        [(1000, 1000), (1500, 1200), (1200, 1500), (2400, 800), (800, 2400)],
    )
    def test_zero_sum(self, updater, winner, loser):
        """
        Test that rating changes are zero-sum.

        Whatever the winner gains, the loser loses.
        """
        new_winner, new_loser = updater.apply(winner, loser, k_factor=32)
        assert new_winner - winner == loser - new_loser
        assert new_winner >= winner

    def test_scenario_home_win_moves_ratings_equally(self, updater):
        """Home wins 3-1: home rating goes up by exactly what away loses."""
        home, away = 1100, 1050
        change = updater.compute(home, away, k_factor=32, winner_entry_id=1, loser_entry_id=2)
        assert change.winner_after == home + change.delta
        assert change.loser_after == away - change.delta
        assert change.delta > 0

    def test_k_factor_scales_delta(self, updater):
        assert updater.compute(1000, 1000, k_factor=20).delta == 10
        assert updater.compute(1000, 1000, k_factor=0).delta == 0

    def test_negative_k_factor_rejected(self, updater):
        with pytest.raises(ValidationError):
            updater.apply(1000, 1000, k_factor=-1)

    def test_reverse_restores_ratings(self, updater):
        change = updater.compute(1234, 1301, k_factor=32)
        restored = updater.reverse(change.winner_after, change.loser_after, change.delta)
        assert restored == (1234, 1301)

    def test_change_carries_entry_ids(self, updater):
        change = updater.compute(1000, 1000, 32, winner_entry_id=7, loser_entry_id=9)
        assert (change.winner_entry_id, change.loser_entry_id) == (7, 9)
        assert change.expected_winner == Decimal("0.5000")
        assert change.k_factor == 32


def test_expected_score_symmetry():
    a = expected_score(1600, 1400)
    b = expected_score(1400, 1600)
    assert abs((a + b) - Decimal(1)) < Decimal("1e-20")
    assert a > Decimal("0.75")
