"""
Registration service: entries, qualifier bookkeeping and seed order.

Registration rules:
- The tournament must be in REGISTRATION status
- A competitor can only register once per tournament
- Solo tournaments (``team_size`` unset or 1) take solo competitors, team
  tournaments take teams
- With ``require_rank`` set, the competitor must have a rank
- Without a qualifier, at most ``max_teams`` entries can register. With a
  qualifier the cap is applied when qualifiers are promoted instead.
- The competitor's rating at registration time is snapshotted on the entry
  and used to order STANDARD seeding (rating desc, then registration time)

Usage:
    from tourney.services.registration import register_entry

    with get_session() as session:
        entry = register_entry(session, tournament_id=1, competitor_id=42)
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from tourney.db.models import Competitor, Entry, Tournament
from tourney.engine import types as engine_types
from tourney.engine.qualifier import record_qualifier_result
from tourney.errors import (
    AlreadyRegistered,
    InvalidTeamSize,
    InvariantViolation,
    NotFoundError,
    RankRequired,
    RegistrationClosed,
    TournamentFull,
    TourneyError,
)
from tourney.services.lookups import get_tournament
from tourney.statuses import TournamentStatus

logger = logging.getLogger(__name__)


def register_entry(
    session: Session,
    tournament_id: int,
    competitor_id: int,
    registered_at: Optional[datetime] = None,
) -> Entry:
    """
    Register a competitor for a tournament.

    Raises:
        NotFoundError: Unknown tournament or competitor
        RegistrationClosed: Tournament is not accepting registrations
        AlreadyRegistered: Competitor already has an entry
        InvalidTeamSize: Team entered in a solo tournament or vice versa
        RankRequired: Tournament requires a rank and the competitor has none
        TournamentFull: ``max_teams`` entries already registered
    """
    try:
        tournament = get_tournament(session, tournament_id, lock=True)
        competitor = session.get(Competitor, competitor_id)
        if competitor is None:
            raise NotFoundError(f"Competitor {competitor_id} not found")

        if tournament.status != TournamentStatus.REGISTRATION.value:
            raise RegistrationClosed(
                f"Tournament {tournament_id} is {tournament.status}, not accepting registrations"
            )

        existing = (
            session.query(Entry)
            .filter(Entry.tournament_id == tournament_id, Entry.competitor_id == competitor_id)
            .one_or_none()
        )
        if existing is not None:
            raise AlreadyRegistered(
                f"Competitor {competitor_id} is already registered for tournament {tournament_id}"
            )

        _check_eligibility(tournament, competitor)

        if not tournament.has_qualifier:
            count = session.query(Entry).filter(Entry.tournament_id == tournament_id).count()
            if count >= tournament.max_teams:
                raise TournamentFull(
                    f"Tournament {tournament_id} is full ({count}/{tournament.max_teams})"
                )
    except TourneyError as e:
        logger.warning("Registration rejected (tournament=%s, competitor=%s): %s",
                       tournament_id, competitor_id, e)
        raise

    entry = Entry(
        tournament_id=tournament_id,
        competitor_id=competitor_id,
        registered_at=registered_at or datetime.utcnow(),
        seed_rating=competitor.rating,
    )
    session.add(entry)
    session.flush()

    logger.info("Registered competitor %s for tournament %s (entry %s, rating %s)",
                competitor_id, tournament_id, entry.id, competitor.rating)
    return entry


def _check_eligibility(tournament: Tournament, competitor: Competitor) -> None:
    """Solo tournaments take solo players, team tournaments take teams; rank if required."""
    expected_kind = "solo" if tournament.to_engine().is_solo else "team"
    if competitor.kind != expected_kind:
        raise InvalidTeamSize(
            f"Tournament {tournament.id} is for {expected_kind} entries "
            f"(team size {tournament.team_size or 1}), competitor {competitor.id} is {competitor.kind}"
        )
    if tournament.require_rank and not competitor.rank:
        raise RankRequired(
            f"Tournament {tournament.id} requires a rank, competitor {competitor.id} has none"
        )


def withdraw_entry(session: Session, tournament_id: int, competitor_id: int) -> None:
    """Remove a registration while the tournament is still in REGISTRATION."""
    tournament = get_tournament(session, tournament_id)
    if tournament.status != TournamentStatus.REGISTRATION.value:
        logger.warning("Withdrawal rejected: tournament %s is %s", tournament_id, tournament.status)
        raise RegistrationClosed(f"Tournament {tournament_id} is {tournament.status}")

    deleted = (
        session.query(Entry)
        .filter(Entry.tournament_id == tournament_id, Entry.competitor_id == competitor_id)
        .delete(synchronize_session="fetch")
    )
    if not deleted:
        raise NotFoundError(
            f"Competitor {competitor_id} is not registered for tournament {tournament_id}"
        )
    logger.info("Withdrew competitor %s from tournament %s", competitor_id, tournament_id)


def seeding_order(entries: list[Entry]) -> list[engine_types.Entry]:
    """
    Engine entries in preferred seed order.

    Highest rating at registration first, then earliest registration, then
    lowest entry id.
    """
    def key(entry: Entry):
        rating = entry.seed_rating if entry.seed_rating is not None else 0
        return (-rating, entry.registered_at, entry.id)

    return [entry.to_engine() for entry in sorted(entries, key=key)]


def record_qualifier_match(session: Session, entry_id: int, points: int) -> Entry:
    """
    Add the points one entry earned in a qualifier match.

    Raises:
        NotFoundError: Unknown entry
        InvariantViolation: Tournament has no qualifier or is not in REGISTRATION
    """
    entry = session.get(Entry, entry_id)
    if entry is None:
        raise NotFoundError(f"Entry {entry_id} not found")

    tournament = get_tournament(session, entry.tournament_id)
    if not tournament.has_qualifier:
        raise InvariantViolation(
            f"Tournament {tournament.id} has no qualifier stage", code="NO_QUALIFIER"
        )
    if tournament.status != TournamentStatus.REGISTRATION.value:
        raise InvariantViolation(
            f"Tournament {tournament.id} is {tournament.status}; qualifier is closed",
            code="QUALIFIER_CLOSED",
        )

    updated = record_qualifier_result(entry.to_engine(), points)
    entry.qualifier_points = updated.qualifier_points
    entry.matches_played = updated.matches_played
    logger.info("Qualifier result for entry %s: +%d points (%d total, %d played)",
                entry_id, points, entry.qualifier_points, entry.matches_played)
    return entry
