"""
Results service: submits match results, live scores, resets and predictions.

Result submission runs the engine on plain copies of the tournament's
matches, then writes the outcome back with guarded updates so that two
concurrent submissions can't both win:

- Completion is a compare-and-set on status: ``UPDATE matches ... WHERE
  id = :id AND status != 'COMPLETED'``. Zero rows updated means another
  submission got there first (AlreadyCompleted); nothing else is written.
- The next-round slot is written with ``... WHERE <side> IS NULL``. If it
  was already filled by a different entry the submission fails with
  SlotConflict.
- Competitor ratings are read ``FOR UPDATE`` (ordered by id) before the
  delta is computed.
- Submissions, live scores and resets take the tournament's "results"
  advisory lock and read the match rows ``FOR UPDATE``. A reset writes each
  match back only if the row still holds the state the reset was planned
  from; otherwise it fails with BracketChanged.

Everything happens inside the caller's transaction; ``get_session()`` rolls
it all back if any step raises.

Usage:
    from tourney.services.results_service import submit_result

    with get_session() as session:
        report = submit_result(session, match_id=7, home_score=2, away_score=1)
        print(report.event.to_dict())
"""

import logging
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from tourney.db.locks import lock_tournament
from tourney.db.models import Competitor, Entry, Match, Prediction
from tourney.engine.pipeline import (
    CompletionReport,
    EngineConfig,
    ResetReport,
    complete_match,
    reset_match as reset_engine_match,
)
from tourney.engine.predictions import make_prediction
from tourney.engine.progression import MatchProgressionEngine
from tourney.engine.types import MatchCompletedEvent
from tourney.errors import (
    AlreadyCompleted,
    BracketChanged,
    InvariantViolation,
    SlotConflict,
    TourneyError,
)
from tourney.services.lookups import get_match, get_tournament, load_match_rows, to_engine_matches
from tourney.statuses import MatchStatus, TournamentStatus

logger = logging.getLogger(__name__)

Notifier = Callable[[MatchCompletedEvent], None]


def _require_in_progress(session: Session, tournament_id: int):
    tournament = get_tournament(session, tournament_id)
    if tournament.status != TournamentStatus.IN_PROGRESS.value:
        raise InvariantViolation(
            f"Tournament {tournament_id} is {tournament.status}, results are not accepted",
            code="TOURNAMENT_NOT_IN_PROGRESS",
        )
    return tournament


def _lock_ratings(session: Session, entry_ids: list[int]) -> dict[int, Competitor]:
    """Lock the competitors behind ``entry_ids`` and map entry id → competitor."""
    rows = (
        session.query(Entry.id, Competitor)
        .join(Competitor, Competitor.id == Entry.competitor_id)
        .filter(Entry.id.in_(entry_ids))
        .order_by(Competitor.id)
        .with_for_update(of=Competitor)
        .all()
    )
    return {entry_id: competitor for entry_id, competitor in rows}


def submit_result(
    session: Session,
    match_id: int,
    home_score: int,
    away_score: int,
    winner_entry_id: Optional[int] = None,
    config: Optional[EngineConfig] = None,
    notify: Optional[Notifier] = None,
) -> CompletionReport:
    """
    Complete a match, propagate the winner, update ratings and score predictions.

    Args:
        session: Open session; the caller commits
        match_id: Match being completed
        home_score: Home side score
        away_score: Away side score
        winner_entry_id: Explicit winner (required for a drawn score)
        config: Rating/scoring values, defaults to settings
        notify: Called with the MatchCompletedEvent once everything is
            written and flushed

    Returns:
        CompletionReport from the engine

    Raises:
        NotFoundError, ValidationError, InvariantViolation subclasses
    """
    config = config or EngineConfig.from_settings()
    try:
        row = get_match(session, match_id)
        lock_tournament(session, row.tournament_id, "results")
        tournament = _require_in_progress(session, row.tournament_id)

        engine_matches, rows_by_id = to_engine_matches(
            load_match_rows(session, tournament.id, lock=True)
        )
        match = next(m for m in engine_matches if m.id == match_id)

        entry_ids = [e for e in (match.home_entry_id, match.away_entry_id) if e is not None]
        competitors = _lock_ratings(session, entry_ids)
        ratings = {entry_id: c.rating for entry_id, c in competitors.items()}

        prediction_rows = session.query(Prediction).filter(Prediction.match_id == match_id).all()
        report = complete_match(
            match,
            home_score,
            away_score,
            engine_matches,
            ratings,
            [p.to_engine() for p in prediction_rows],
            config=config,
            winner_entry_id=winner_entry_id,
        )

        _write_completion(session, match)
        if report.propagated is not None:
            _write_slot(session, report.propagated, match.position, match.winner_entry_id)
    except TourneyError as e:
        logger.warning("Result rejected for match %s: %s", match_id, e)
        raise

    for entry_id, rating in report.new_ratings.items():
        competitors[entry_id].rating = rating

    scored_by_id = {s.prediction_id: s for s in report.scored_predictions}
    for prediction in prediction_rows:
        scored = scored_by_id[prediction.id]
        prediction.points = scored.points
        prediction.is_correct = scored.is_correct

    if report.event.is_final:
        tournament.status = TournamentStatus.COMPLETED.value
        logger.info("Tournament %s completed, winner entry %s", tournament.id, match.winner_entry_id)

    session.flush()
    for match_row in rows_by_id.values():
        session.expire(match_row)

    change = report.rating_change
    logger.info(
        "Match %s r%d#%d completed %d-%d, winner %s (rating delta %d, %d predictions scored)",
        match_id, match.round, match.position, home_score, away_score,
        match.winner_entry_id, change.delta, len(report.scored_predictions),
    )

    if notify is not None:
        notify(report.event)
    return report


def _write_completion(session: Session, match) -> None:
    result = session.execute(
        update(Match)
        .where(Match.id == match.id, Match.status != MatchStatus.COMPLETED.value)
        .values(
            home_score=match.home_score,
            away_score=match.away_score,
            winner_entry_id=match.winner_entry_id,
            status=MatchStatus.COMPLETED.value,
            rating_delta=match.rating_delta,
            completed_at=match.completed_at,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise AlreadyCompleted(f"Match {match.id} was completed by another submission")


def _write_slot(session: Session, target, feeder_position: int, winner_entry_id: int) -> None:
    column = Match.home_entry_id if feeder_position % 2 == 0 else Match.away_entry_id
    result = session.execute(
        update(Match)
        .where(Match.id == target.id, column.is_(None))
        .values({column: winner_entry_id})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        return

    current = session.query(column).filter(Match.id == target.id).scalar()
    if current != winner_entry_id:
        raise SlotConflict(
            f"Match {target.id} {column.key} already holds entry {current}, not {winner_entry_id}"
        )


def _matches_column(column, value):
    return column.is_(None) if value is None else column == value


def _write_reset(session: Session, planned: Match, match) -> None:
    """Write a reset match back only if the row still holds the state it was planned from."""
    result = session.execute(
        update(Match)
        .where(
            Match.id == planned.id,
            Match.status == planned.status,
            _matches_column(Match.home_entry_id, planned.home_entry_id),
            _matches_column(Match.away_entry_id, planned.away_entry_id),
            _matches_column(Match.winner_entry_id, planned.winner_entry_id),
        )
        .values(
            home_entry_id=match.home_entry_id,
            away_entry_id=match.away_entry_id,
            home_score=match.home_score,
            away_score=match.away_score,
            winner_entry_id=match.winner_entry_id,
            status=MatchStatus(match.status).value,
            rating_delta=match.rating_delta,
            completed_at=match.completed_at,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise BracketChanged(
            f"Match {planned.id} r{planned.round}#{planned.position} changed while the reset was planned"
        )


def update_live_score(session: Session, match_id: int, home_score: int, away_score: int) -> Match:
    """
    Store an in-progress score; moves the match to IN_PROGRESS.

    Raises:
        AlreadyCompleted: The match finished meanwhile
    """
    try:
        row = get_match(session, match_id)
        lock_tournament(session, row.tournament_id, "results")
        _require_in_progress(session, row.tournament_id)
        match = MatchProgressionEngine().update_live_score(row.to_engine(), home_score, away_score)

        result = session.execute(
            update(Match)
            .where(Match.id == match_id, Match.status != MatchStatus.COMPLETED.value)
            .values(
                home_score=match.home_score,
                away_score=match.away_score,
                status=MatchStatus.IN_PROGRESS.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AlreadyCompleted(f"Match {match_id} completed before the live score arrived")
    except TourneyError as e:
        logger.warning("Live score rejected for match %s: %s", match_id, e)
        raise

    session.expire(row)
    logger.debug("Live score match %s: %d-%d", match_id, home_score, away_score)
    return row


def reset_match(session: Session, match_id: int) -> ResetReport:
    """
    Admin reset of a match and every completed match downstream of it.

    Ratings are restored, the reset winners are pulled out of later rounds,
    and predictions on the reset matches lose their points. A COMPLETED
    tournament whose final is reset goes back to IN_PROGRESS.
    """
    try:
        row = get_match(session, match_id)
        lock_tournament(session, row.tournament_id, "results")
        tournament = get_tournament(session, row.tournament_id, lock=True)

        engine_matches, rows_by_id = to_engine_matches(
            load_match_rows(session, tournament.id, lock=True)
        )
        match = next(m for m in engine_matches if m.id == match_id)

        entry_ids = sorted(
            {e for m in engine_matches for e in (m.home_entry_id, m.away_entry_id) if e is not None}
        )
        competitors = _lock_ratings(session, entry_ids)
        ratings = {entry_id: c.rating for entry_id, c in competitors.items()}

        match_ids = [m.id for m in engine_matches]
        prediction_rows = (
            session.query(Prediction).filter(Prediction.match_id.in_(match_ids)).all()
        )
        report = reset_engine_match(
            match, engine_matches, ratings, [p.to_engine() for p in prediction_rows]
        )

        changed = [m for m in engine_matches if m != rows_by_id[m.id].to_engine()]
        for engine_match in sorted(changed, key=lambda m: m.round, reverse=True):
            _write_reset(session, rows_by_id[engine_match.id], engine_match)
    except TourneyError as e:
        logger.warning("Reset rejected for match %s: %s", match_id, e)
        raise

    for match_row in rows_by_id.values():
        session.expire(match_row)

    for entry_id, rating in report.ratings.items():
        competitor = competitors[entry_id]
        if competitor.rating != rating:
            competitor.rating = rating

    cleared_ids = {p.id for p in report.cleared_predictions}
    for prediction in prediction_rows:
        if prediction.id in cleared_ids:
            prediction.points = None
            prediction.is_correct = None

    if report.plan.reopens_final and tournament.status == TournamentStatus.COMPLETED.value:
        tournament.status = TournamentStatus.IN_PROGRESS.value
        logger.info("Tournament %s reopened by reset of match %s", tournament.id, match_id)

    session.flush()
    logger.info("Reset match %s: %d matches cleared", match_id, len(report.reset_matches))
    return report


def submit_prediction(
    session: Session,
    match_id: int,
    predictor_id: int,
    home_score: int,
    away_score: int,
) -> Prediction:
    """
    Create or replace a user's prediction for a pending match.

    The predicted winner is derived from the predicted score.
    """
    try:
        row = get_match(session, match_id)
        engine_prediction = make_prediction(row.to_engine(), predictor_id, home_score, away_score)
    except TourneyError as e:
        logger.warning("Prediction rejected for match %s by %s: %s", match_id, predictor_id, e)
        raise

    prediction = (
        session.query(Prediction)
        .filter(Prediction.match_id == match_id, Prediction.predictor_id == predictor_id)
        .one_or_none()
    )
    if prediction is None:
        prediction = Prediction(match_id=match_id, predictor_id=predictor_id)
        session.add(prediction)

    prediction.predicted_home_score = engine_prediction.predicted_home_score
    prediction.predicted_away_score = engine_prediction.predicted_away_score
    prediction.predicted_winner_entry_id = engine_prediction.predicted_winner_entry_id
    session.flush()

    logger.info("Prediction %s: match %s %d-%d by %s",
                prediction.id, match_id, home_score, away_score, predictor_id)
    return prediction
