"""
Prediction scoring.

Scoring rules for a completed, non-bye match:
- Exact final score (home and away both right) → exact points (10), correct
- Otherwise, predicted winner is the actual winner → winner points (3), correct
- Otherwise → 0 points, incorrect

Scoring is a pure function of the prediction and the final result, so
running it again produces the same values. Callers overwrite the stored
points with the result; nothing accumulates.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from tourney.engine.types import Match, Prediction
from tourney.errors import InvalidScore, MatchNotCompleted, MatchNotReady, ValidationError
from tourney.statuses import MatchStatus

EXACT_SCORE_POINTS = 10
CORRECT_WINNER_POINTS = 3


@dataclass(frozen=True)
class ScoredPrediction:
    """Score awarded to one prediction."""
    prediction_id: Optional[int]
    predictor_id: int
    match_id: Optional[int]
    points: int
    is_correct: bool
    exact: bool

    def apply(self, prediction: Prediction) -> Prediction:
        """Return a copy of ``prediction`` carrying this score."""
        return replace(prediction, points=self.points, is_correct=self.is_correct)


class PredictionScorer:
    """
    Scores predictions against a completed match.

    Usage:
        scorer = PredictionScorer()
        scored = scorer.score(predictions, match)
    """

    def __init__(
        self,
        exact_points: int = EXACT_SCORE_POINTS,
        winner_points: int = CORRECT_WINNER_POINTS,
    ):
        self.exact_points = exact_points
        self.winner_points = winner_points

    def score(self, predictions: Iterable[Prediction], match: Match) -> list[ScoredPrediction]:
        """
        Score every prediction for ``match``.

        Returns an empty list for bye matches, which have nothing to predict.

        Raises:
            MatchNotCompleted: The match has no final result yet
            ValidationError: A prediction belongs to a different match
        """
        if not match.is_completed:
            raise MatchNotCompleted(
                f"Cannot score predictions for match r{match.round}#{match.position} before it completes"
            )
        if match.is_bye:
            return []

        scored = []
        for prediction in predictions:
            if match.id is not None and prediction.match_id != match.id:
                raise ValidationError(
                    f"Prediction {prediction.id} is for match {prediction.match_id}, not {match.id}"
                )
            scored.append(self.score_one(prediction, match))
        return scored

    def score_one(self, prediction: Prediction, match: Match) -> ScoredPrediction:
        exact = (
            prediction.predicted_home_score is not None
            and prediction.predicted_away_score is not None
            and prediction.predicted_home_score == match.home_score
            and prediction.predicted_away_score == match.away_score
        )
        if exact:
            points, correct = self.exact_points, True
        elif (
            match.winner_entry_id is not None
            and prediction.predicted_winner_entry_id == match.winner_entry_id
        ):
            points, correct = self.winner_points, True
        else:
            points, correct = 0, False

        return ScoredPrediction(
            prediction_id=prediction.id,
            predictor_id=prediction.predictor_id,
            match_id=prediction.match_id,
            points=points,
            is_correct=correct,
            exact=exact,
        )


def make_prediction(
    match: Match,
    predictor_id: int,
    home_score: int,
    away_score: int,
) -> Prediction:
    """
    Build a score prediction for an upcoming match.

    The predicted winner is derived from the predicted score; a predicted
    draw leaves it empty, so only an exact draw result could score.

    Raises:
        MatchNotReady: The match isn't open for predictions or a side is unknown
        InvalidScore: Negative score
    """
    if match.status != MatchStatus.PENDING or not match.has_both_entries:
        raise MatchNotReady(
            f"Match r{match.round}#{match.position} is not open for predictions"
        )
    if home_score < 0 or away_score < 0:
        raise InvalidScore("Predicted scores must not be negative")

    if home_score > away_score:
        winner = match.home_entry_id
    elif away_score > home_score:
        winner = match.away_entry_id
    else:
        winner = None

    return Prediction(
        match_id=match.id,
        predictor_id=predictor_id,
        predicted_home_score=home_score,
        predicted_away_score=away_score,
        predicted_winner_entry_id=winner,
    )


def clear_scores(predictions: Iterable[Prediction]) -> list[Prediction]:
    """Unscored copies, used when a match result is reset."""
    return [replace(p, points=None, is_correct=None) for p in predictions]
