"""
Completion pipeline.

One match completion drives three engine components in a fixed order:

    MatchProgressionEngine.record_result   (winner, propagation, event)
    RatingUpdater.compute
    PredictionScorer.score

Byes never come through here: they are completed by
``MatchProgressionEngine.resolve_byes`` at build time and are never rated
or scored.

``reset_match`` is the mirror image for an admin reset: for every match in
the cascade, deepest first, the rating delta is reversed before the
structural reset, and predictions on the reset matches lose their scores.

Ratings are passed in as a mapping of entry id → current rating. Nothing
here writes to storage; the returned reports carry what the caller has to
persist.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from tourney.engine.predictions import PredictionScorer, ScoredPrediction, clear_scores
from tourney.engine.progression import MatchProgressionEngine, ResetPlan
from tourney.engine.rating import RatingChange, RatingUpdater
from tourney.engine.types import Match, MatchCompletedEvent, Prediction
from tourney.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Tunable values for the rating and scoring steps."""
    k_factor: int = 32
    exact_points: int = 10
    winner_points: int = 3

    @classmethod
    def from_settings(cls, settings=None) -> "EngineConfig":
        if settings is None:
            from tourney.config import get_settings
            settings = get_settings()
        return cls(
            k_factor=settings.elo_k_factor,
            exact_points=settings.prediction_exact_points,
            winner_points=settings.prediction_winner_points,
        )


@dataclass
class CompletionReport:
    match: Match
    propagated: Optional[Match]
    event: MatchCompletedEvent
    rating_change: Optional[RatingChange] = None
    scored_predictions: list[ScoredPrediction] = field(default_factory=list)

    @property
    def new_ratings(self) -> dict[int, int]:
        """entry id → rating after this match (empty for byes)."""
        change = self.rating_change
        if change is None:
            return {}
        return {
            change.winner_entry_id: change.winner_after,
            change.loser_entry_id: change.loser_after,
        }


@dataclass
class ResetReport:
    plan: ResetPlan
    reset_matches: list[Match]
    ratings: dict[int, int]
    cleared_predictions: list[Prediction]


def _rating_for(ratings: Mapping[int, int], entry_id: int) -> int:
    try:
        return ratings[entry_id]
    except KeyError:
        raise NotFoundError(f"No rating for entry {entry_id}") from None


def complete_match(
    match: Match,
    home_score: int,
    away_score: int,
    matches: list[Match],
    ratings: Mapping[int, int],
    predictions: Iterable[Prediction] = (),
    config: Optional[EngineConfig] = None,
    winner_entry_id: Optional[int] = None,
) -> CompletionReport:
    """
    Record a result and compute its rating change and prediction scores.

    Ratings are looked up before anything is mutated, so a missing rating
    leaves the match untouched.

    Raises:
        NotFoundError: A side has no rating in ``ratings``
        Anything ``MatchProgressionEngine.record_result`` raises
    """
    config = config or EngineConfig()
    engine = MatchProgressionEngine()

    home_rating = away_rating = None
    if match.has_both_entries and not match.is_completed:
        home_rating = _rating_for(ratings, match.home_entry_id)
        away_rating = _rating_for(ratings, match.away_entry_id)

    outcome = engine.record_result(
        match, home_score, away_score, matches, winner_entry_id=winner_entry_id
    )

    winner = match.winner_entry_id
    loser = match.loser_entry_id
    winner_rating, loser_rating = (
        (home_rating, away_rating) if winner == match.home_entry_id else (away_rating, home_rating)
    )
    change = RatingUpdater().compute(
        winner_rating, loser_rating, config.k_factor,
        winner_entry_id=winner, loser_entry_id=loser,
    )
    match.rating_delta = change.delta

    scorer = PredictionScorer(config.exact_points, config.winner_points)
    scored = scorer.score(predictions, match)

    logger.debug(
        "Pipeline r%d#%d: delta %d, %d predictions scored",
        match.round, match.position, change.delta, len(scored),
    )

    return CompletionReport(
        match=match,
        propagated=outcome.propagated,
        event=MatchCompletedEvent.from_match(match, is_final=outcome.is_final),
        rating_change=change,
        scored_predictions=scored,
    )


def reset_match(
    match: Match,
    matches: list[Match],
    ratings: Mapping[int, int],
    predictions: Iterable[Prediction] = (),
) -> ResetReport:
    """
    Reset ``match`` and every completed match downstream of it.

    Returns:
        ResetReport with restored ratings (entry id → rating, including
        untouched entries) and the affected predictions with scores cleared
    """
    engine = MatchProgressionEngine()
    updater = RatingUpdater()
    plan = engine.plan_reset(match, matches)
    restored = dict(ratings)

    reset = []
    for step in plan.steps:
        if step.reverses_rating:
            winner_rating, loser_rating = updater.reverse(
                _rating_for(restored, step.winner_entry_id),
                _rating_for(restored, step.loser_entry_id),
                step.rating_delta,
            )
            restored[step.winner_entry_id] = winner_rating
            restored[step.loser_entry_id] = loser_rating
        reset.append(engine.apply_reset_step(step, matches))

    affected = set(plan.completed_match_ids)
    cleared = clear_scores(p for p in predictions if p.match_id in affected)

    logger.info(
        "Reset r%d#%d: %d matches cleared, %d ratings restored, %d predictions unscored",
        match.round, match.position, len(reset),
        sum(1 for s in plan.steps if s.reverses_rating), len(cleared),
    )
    return ResetReport(plan=plan, reset_matches=reset, ratings=restored, cleared_predictions=cleared)
