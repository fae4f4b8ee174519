"""
Bracket service: generates, wipes and lists a tournament's bracket.

Bracket generation is all-or-nothing inside the caller's transaction:

1. Take the per-tournament advisory lock (PostgreSQL only)
2. Re-check that no matches exist for the tournament
3. Run the qualifier cut, seed and build with the engine
4. Write seeds/slots back to the entries and insert every match
5. Move the tournament to IN_PROGRESS

Reverting a started tournament to REGISTRATION deletes its matches (and
their predictions) and clears entry seeds. Ratings already applied by
completed matches are kept.

Usage:
    from tourney.services.bracket_service import generate_bracket

    with get_session() as session:
        matches = generate_bracket(session, tournament_id=1)
"""

import logging
import random
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from tourney.config import settings
from tourney.db.locks import lock_tournament
from tourney.db.models import Entry, Match, Prediction
from tourney.engine.bracket import BracketBuilder
from tourney.errors import InvalidStatusTransition, InvariantViolation, TourneyError
from tourney.services.lookups import get_tournament, load_match_rows
from tourney.services.registration import seeding_order
from tourney.statuses import (
    TournamentStatus,
    can_transition,
    normalize_status_filter,
    requires_bracket_wipe,
)

logger = logging.getLogger(__name__)

# Statuses from which a bracket can be generated
BUILDABLE_STATUSES = (TournamentStatus.REGISTRATION.value, TournamentStatus.IN_PROGRESS.value)


def _default_rng() -> Optional[random.Random]:
    if settings.seeding_random_seed is None:
        return None
    return random.Random(settings.seeding_random_seed)


def generate_bracket(
    session: Session,
    tournament_id: int,
    rng: Optional[random.Random] = None,
    builder: Optional[BracketBuilder] = None,
) -> list[Match]:
    """
    Build and store the bracket for a tournament.

    Returns:
        Inserted match rows ordered by (round, position)

    Raises:
        NotFoundError: Unknown tournament
        InvariantViolation: Tournament status doesn't allow a build
        BracketAlreadyExists: Matches already exist
        QualifierNotFinished / InvalidEntryCount / ConflictingSeeds: from the engine
    """
    builder = builder or BracketBuilder()
    try:
        lock_tournament(session, tournament_id, "bracket")
        tournament = get_tournament(session, tournament_id, lock=True)
        if tournament.status not in BUILDABLE_STATUSES:
            raise InvariantViolation(
                f"Cannot build a bracket for tournament {tournament_id} in status {tournament.status}",
                code="TOURNAMENT_NOT_BUILDABLE",
            )

        existing = load_match_rows(session, tournament_id)
        entry_rows = session.query(Entry).filter(Entry.tournament_id == tournament_id).all()

        seeded, matches = builder.build_from_registrations(
            tournament.to_engine(),
            seeding_order(entry_rows),
            existing_matches=existing,
            rng=rng or _default_rng(),
        )
    except TourneyError as e:
        logger.warning("Bracket generation rejected for tournament %s: %s", tournament_id, e)
        raise

    placement = {entry.id: entry for entry in seeded}
    for row in entry_rows:
        engine_entry = placement.get(row.id)
        row.seed = engine_entry.seed if engine_entry else None
        row.slot = engine_entry.slot if engine_entry else None

    rows = [Match.from_engine(match) for match in matches]
    session.add_all(rows)

    if tournament.status == TournamentStatus.REGISTRATION.value:
        tournament.status = TournamentStatus.IN_PROGRESS.value
    session.flush()

    logger.info(
        "Generated bracket for tournament %s: %d of %d entries placed, %d matches",
        tournament_id, len(seeded), len(entry_rows), len(rows),
    )
    return rows


def delete_bracket(session: Session, tournament_id: int) -> int:
    """
    Delete every match (and prediction) of a tournament and clear seeds.

    Returns:
        Number of matches deleted
    """
    session.flush()
    lock_tournament(session, tournament_id, "bracket")
    match_ids = [
        match_id
        for (match_id,) in session.query(Match.id).filter(Match.tournament_id == tournament_id)
    ]
    if match_ids:
        session.query(Prediction).filter(Prediction.match_id.in_(match_ids)).delete(
            synchronize_session=False
        )
    deleted = (
        session.query(Match)
        .filter(Match.tournament_id == tournament_id)
        .delete(synchronize_session=False)
    )
    session.query(Entry).filter(Entry.tournament_id == tournament_id).update(
        {Entry.seed: None, Entry.slot: None}, synchronize_session=False
    )
    session.expire_all()

    logger.info("Deleted bracket for tournament %s (%d matches)", tournament_id, deleted)
    return deleted


def change_tournament_status(
    session: Session,
    tournament_id: int,
    target: TournamentStatus | str,
) -> TournamentStatus:
    """
    Move a tournament through its lifecycle.

    Reverting an IN_PROGRESS or COMPLETED tournament to REGISTRATION wipes
    the bracket.

    Raises:
        InvalidStatusTransition: The move isn't allowed from the current status
    """
    target = TournamentStatus(target)
    tournament = get_tournament(session, tournament_id, lock=True)
    current = TournamentStatus(tournament.status)

    if current == target:
        return current
    if not can_transition(current, target):
        logger.warning("Rejected status change for tournament %s: %s → %s",
                       tournament_id, current.value, target.value)
        raise InvalidStatusTransition(
            f"Tournament {tournament_id} cannot move from {current.value} to {target.value}"
        )

    if requires_bracket_wipe(current, target):
        delete_bracket(session, tournament_id)
        tournament = get_tournament(session, tournament_id)

    tournament.status = target.value
    session.flush()
    logger.info("Tournament %s: %s → %s", tournament_id, current.value, target.value)
    return target


def list_matches(
    session: Session,
    tournament_id: int,
    statuses: Optional[Iterable[str]] = None,
    default_group: str = "all",
) -> list[Match]:
    """
    Matches of a tournament filtered by status, ordered by (round, position).

    ``statuses`` are normalised: unknown values are ignored, and an empty or
    missing filter falls back to ``default_group``.
    """
    wanted = [s.value for s in normalize_status_filter(statuses, default_group=default_group)]
    return (
        session.query(Match)
        .filter(Match.tournament_id == tournament_id, Match.status.in_(wanted))
        .order_by(Match.round, Match.position)
        .all()
    )
