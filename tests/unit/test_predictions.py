"""Unit tests for prediction scoring."""

import pytest

from tourney.engine.predictions import PredictionScorer, clear_scores, make_prediction
from tourney.engine.types import Match, Prediction
from tourney.errors import InvalidScore, MatchNotCompleted, MatchNotReady, ValidationError
from tourney.statuses import MatchStatus


@pytest.fixture
def final_match():
    """Completed match: home entry 1 beat away entry 2, 3-1."""
    return Match(
        round=1, position=0, id=5,
        home_entry_id=1, away_entry_id=2,
        home_score=3, away_score=1, winner_entry_id=1,
        status=MatchStatus.COMPLETED,
    )


@pytest.fixture
def scorer():
    return PredictionScorer()


class TestPredictionScorer:
    """Tests for PredictionScorer.score."""

    def test_exact_score(self, scorer, final_match):
        """Scenario: 3-1 predicted for a 3-1 result → 10 points."""
        prediction = Prediction(match_id=5, predictor_id=1, predicted_home_score=3,
                                predicted_away_score=1, predicted_winner_entry_id=1, id=1)
        [scored] = scorer.score([prediction], final_match)
        assert scored.points == 10
        assert scored.is_correct
        assert scored.exact

    def test_wrong_winner(self, scorer, final_match):
        """Scenario: away predicted to win a 3-1 home win → 0 points."""
        prediction = Prediction(match_id=5, predictor_id=2, predicted_winner_entry_id=2, id=2)
        [scored] = scorer.score([prediction], final_match)
        assert scored.points == 0
        assert not scored.is_correct

    def test_correct_winner_only(self, scorer, final_match):
        prediction = Prediction(match_id=5, predictor_id=3, predicted_home_score=2,
                                predicted_away_score=0, predicted_winner_entry_id=1, id=3)
        [scored] = scorer.score([prediction], final_match)
        assert scored.points == 3
        assert scored.is_correct
        assert not scored.exact

    def test_exact_score_without_winner_ref(self, scorer, final_match):
        prediction = Prediction(match_id=5, predictor_id=4, predicted_home_score=3,
                                predicted_away_score=1, id=4)
        [scored] = scorer.score([prediction], final_match)
        assert scored.points == 10

    def test_empty_prediction_scores_zero(self, scorer, final_match):
        [scored] = scorer.score([Prediction(match_id=5, predictor_id=5, id=5)], final_match)
        assert scored.points == 0
        assert not scored.is_correct

    def test_idempotent(self, scorer, final_match):
        predictions = [
            Prediction(match_id=5, predictor_id=i, predicted_home_score=h,
                       predicted_away_score=a, predicted_winner_entry_id=w, id=i)
            for i, (h, a, w) in enumerate([(3, 1, 1), (1, 0, 1), (0, 2, 2)], start=1)
        ]
        first = scorer.score(predictions, final_match)
        second = scorer.score(predictions, final_match)
        assert first == second
        assert [s.points for s in first] == [10, 3, 0]

    def test_apply_overwrites_previous_score(self, scorer, final_match):
        prediction = Prediction(match_id=5, predictor_id=1, predicted_winner_entry_id=1,
                                id=1, points=10, is_correct=True)
        [scored] = scorer.score([prediction], final_match)
        updated = scored.apply(prediction)
        assert (updated.points, updated.is_correct) == (3, True)
        assert prediction.points == 10

    def test_custom_point_values(self, final_match):
        scorer = PredictionScorer(exact_points=5, winner_points=1)
        prediction = Prediction(match_id=5, predictor_id=1, predicted_winner_entry_id=1, id=1)
        assert scorer.score([prediction], final_match)[0].points == 1

    def test_bye_scores_nothing(self, scorer):
        bye = Match(round=1, position=0, id=6, home_entry_id=1, winner_entry_id=1,
                    status=MatchStatus.COMPLETED, is_bye=True)
        prediction = Prediction(match_id=6, predictor_id=1, predicted_winner_entry_id=1)
        assert scorer.score([prediction], bye) == []

    def test_not_completed(self, scorer):
        pending = Match(round=1, position=0, id=7, home_entry_id=1, away_entry_id=2)
        with pytest.raises(MatchNotCompleted):
            scorer.score([], pending)

    def test_prediction_for_other_match(self, scorer, final_match):
        with pytest.raises(ValidationError):
            scorer.score([Prediction(match_id=99, predictor_id=1)], final_match)


class TestMakePrediction:
    """Tests for building predictions on upcoming matches."""

    @pytest.fixture
    def upcoming(self):
        return Match(round=2, position=0, id=8, home_entry_id=3, away_entry_id=4)

    def test_winner_derived_from_score(self, upcoming):
        assert make_prediction(upcoming, 1, 2, 0).predicted_winner_entry_id == 3
        assert make_prediction(upcoming, 1, 1, 3).predicted_winner_entry_id == 4

    def test_predicted_draw_has_no_winner(self, upcoming):
        prediction = make_prediction(upcoming, 1, 1, 1)
        assert prediction.predicted_winner_entry_id is None
        assert prediction.match_id == 8

    def test_only_pending_matches(self, upcoming):
        upcoming.status = MatchStatus.IN_PROGRESS
        with pytest.raises(MatchNotReady):
            make_prediction(upcoming, 1, 2, 0)

    def test_both_entries_required(self):
        waiting = Match(round=2, position=1, id=9, home_entry_id=3)
        with pytest.raises(MatchNotReady):
            make_prediction(waiting, 1, 2, 0)

    def test_negative_score(self, upcoming):
        with pytest.raises(InvalidScore):
            make_prediction(upcoming, 1, -1, 0)


def test_clear_scores():
    predictions = [Prediction(match_id=1, predictor_id=1, points=10, is_correct=True)]
    [cleared] = clear_scores(predictions)
    assert cleared.points is None and cleared.is_correct is None
    assert predictions[0].points == 10
