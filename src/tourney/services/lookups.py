"""Row lookups shared by the services."""

from sqlalchemy.orm import Session

from tourney.db.models import Match, Tournament
from tourney.engine import types as engine_types
from tourney.errors import NotFoundError


def get_tournament(session: Session, tournament_id: int, lock: bool = False) -> Tournament:
    """Load a tournament row, optionally locked for update."""
    query = session.query(Tournament).filter(Tournament.id == tournament_id)
    if lock:
        query = query.with_for_update()
    tournament = query.one_or_none()
    if tournament is None:
        raise NotFoundError(f"Tournament {tournament_id} not found")
    return tournament


def get_match(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    return match


def load_match_rows(session: Session, tournament_id: int, lock: bool = False) -> list[Match]:
    """All match rows of a tournament ordered by (round, position), optionally locked."""
    query = (
        session.query(Match)
        .filter(Match.tournament_id == tournament_id)
        .order_by(Match.round, Match.position)
    )
    if lock:
        query = query.with_for_update()
    return query.all()


def to_engine_matches(rows: list[Match]) -> tuple[list[engine_types.Match], dict[int, Match]]:
    """Engine copies of match rows plus a map from match id back to the row."""
    return [row.to_engine() for row in rows], {row.id: row for row in rows}
