"""
ELO rating updates for completed bracket matches.

Implements the standard ELO formula with integer ratings:
  Expected score: E = 1 / (1 + 10^((R_loser - R_winner) / 400))
  Delta:          delta = round(K * (1 - E))
  Winner gains delta, loser loses delta.

The update is zero-sum by construction: the same rounded delta is added to
one side and subtracted from the other. K is always passed in by the caller
(see ``settings.elo_k_factor``); this module holds no mutable configuration.

Bye matches are never rated.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from tourney.errors import ValidationError

# Rating difference at which the stronger side is expected to win 10:1.
ELO_SPREAD = 400


@dataclass(frozen=True)
class RatingChange:
    """
    Result of a rating calculation for one completed match.

    Holds everything needed to persist the update and to reverse it later.
    """
    winner_entry_id: Optional[int]
    loser_entry_id: Optional[int]
    winner_before: int
    loser_before: int
    delta: int
    expected_winner: Decimal
    k_factor: int

    @property
    def winner_after(self) -> int:
        return self.winner_before + self.delta

    @property
    def loser_after(self) -> int:
        return self.loser_before - self.delta

    @property
    def was_upset(self) -> bool:
        """Whether the lower-rated side won."""
        return self.winner_before < self.loser_before

    def __repr__(self) -> str:
        return (
            f"<RatingChange(winner {self.winner_before} -> {self.winner_after}, "
            f"loser {self.loser_before} -> {self.loser_after}, delta={self.delta})>"
        )


def expected_score(rating: int, opponent_rating: int) -> Decimal:
    """
    Probability that a side rated ``rating`` beats ``opponent_rating``.

    Example:
        >>> expected_score(1000, 1000)
        Decimal('0.5')
    """
    exponent = Decimal(opponent_rating - rating) / Decimal(ELO_SPREAD)
    return Decimal("1") / (Decimal("1") + Decimal("10") ** exponent)


class RatingUpdater:
    """
    Computes rating changes for completed matches.

    Usage:
        updater = RatingUpdater()
        new_winner, new_loser = updater.apply(1000, 1000, k_factor=32)
        # (1016, 984)

        change = updater.compute(1200, 1000, k_factor=32,
                                 winner_entry_id=1, loser_entry_id=2)
        print(change.delta)  # 8
    """

    def apply(self, winner_rating: int, loser_rating: int, k_factor: int) -> tuple[int, int]:
        """
        Return (new_winner_rating, new_loser_rating).

        Raises:
            ValidationError: If k_factor is negative
        """
        change = self.compute(winner_rating, loser_rating, k_factor)
        return change.winner_after, change.loser_after

    def compute(
        self,
        winner_rating: int,
        loser_rating: int,
        k_factor: int,
        winner_entry_id: Optional[int] = None,
        loser_entry_id: Optional[int] = None,
    ) -> RatingChange:
        """
        Calculate the full rating change for a completed match.

        An underdog win moves ratings further than a favourite win: beating
        a side rated 400 higher at K=32 is worth 29 points, beating a side
        rated 400 lower is worth 3.
        """
        if k_factor < 0:
            raise ValidationError(f"k_factor must not be negative, got {k_factor}")

        winner_rating = int(winner_rating)
        loser_rating = int(loser_rating)

        expected = expected_score(winner_rating, loser_rating)
        delta = (Decimal(k_factor) * (Decimal("1") - expected)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )

        return RatingChange(
            winner_entry_id=winner_entry_id,
            loser_entry_id=loser_entry_id,
            winner_before=winner_rating,
            loser_before=loser_rating,
            delta=int(delta),
            expected_winner=expected.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
            k_factor=k_factor,
        )

    def reverse(self, winner_rating: int, loser_rating: int, delta: int) -> tuple[int, int]:
        """
        Undo a previously applied delta against the current ratings.

        Returns:
            (restored_winner_rating, restored_loser_rating)
        """
        return int(winner_rating) - delta, int(loser_rating) + delta
