"""
Qualifier stage that gates entry into the main bracket.

Entries play ``qualifier_matches`` matches (Swiss or round-robin pairing),
accumulating ``qualifier_points``. Once every entry has played its quota,
entries with at least ``qualifier_min_points`` are promoted, best first,
up to the tournament's ``max_teams``.

Ordering among equal points: earlier registration first, then lower entry
id. Promotion keeps that order so the STANDARD seeder turns the best
qualifier into seed 1.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from tourney.engine.types import Entry, Tournament
from tourney.errors import InvalidEntryCount, ValidationError
from tourney.statuses import QualifierFormat

logger = logging.getLogger(__name__)

Pairing = tuple[int, Optional[int]]  # (entry_id, opponent_id or None for a bye)


def _standings_key(entry: Entry) -> tuple:
    registered = entry.registered_at or datetime.max
    return (-entry.qualifier_points, entry.registered_at is None, registered, entry.id)


def is_qualifier_finished(tournament: Tournament, entries: Iterable[Entry]) -> bool:
    """Every entry has played its qualifier quota (always true without a qualifier)."""
    if not tournament.has_qualifier:
        return True
    return all(e.matches_played >= tournament.qualifier_matches for e in entries)


def record_qualifier_result(entry: Entry, points: int) -> Entry:
    """Add the points earned in one qualifier match and count the match."""
    if points < 0:
        raise ValidationError(f"Qualifier points must not be negative, got {points}")
    entry.qualifier_points += points
    entry.matches_played += 1
    return entry


def qualifier_standings(entries: Iterable[Entry]) -> list[Entry]:
    """Entries ordered by points desc, then registration time, then id."""
    return sorted(entries, key=_standings_key)


def promote_qualified(tournament: Tournament, entries: Iterable[Entry]) -> list[Entry]:
    """
    Select the entries that advance to the main bracket.

    Returns:
        Qualified entries in standings order, at most ``max_teams``

    Raises:
        InvalidEntryCount: Fewer than 2 entries qualify
    """
    standings = qualifier_standings(entries)
    qualified = [e for e in standings if e.qualifier_points >= tournament.qualifier_min_points]
    promoted = qualified[: tournament.max_teams]

    if len(qualified) > len(promoted):
        logger.info(
            "Qualifier cut: %d entries reached %d points, %d promoted (max_teams)",
            len(qualified), tournament.qualifier_min_points, len(promoted),
        )
    if len(promoted) < 2:
        raise InvalidEntryCount(
            f"Only {len(promoted)} entries reached {tournament.qualifier_min_points} qualifier points"
        )
    return promoted


def round_robin_rounds(entries: list[Entry]) -> list[list[Pairing]]:
    """
    Full round-robin schedule using the circle method.

    With an odd number of entries one entry sits out each round (paired
    with None).

    Example (4 entries a, b, c, d):
        [[(a, d), (b, c)], [(a, c), (d, b)], [(a, b), (c, d)]]
    """
    ids: list[Optional[int]] = [e.id for e in entries]
    if len(ids) % 2:
        ids.append(None)

    count = len(ids)
    rounds = []
    for _ in range(count - 1):
        pairings = []
        for i in range(count // 2):
            home, away = ids[i], ids[count - 1 - i]
            if home is None:
                home, away = away, None
            pairings.append((home, away))
        rounds.append(pairings)
        # keep the first entry fixed, rotate the rest clockwise
        ids = [ids[0], ids[-1]] + ids[1:-1]
    return rounds


def swiss_pairings(
    entries: list[Entry],
    played_pairs: Optional[set[frozenset[int]]] = None,
    had_bye: Optional[set[int]] = None,
) -> list[Pairing]:
    """
    Pair entries for the next Swiss round.

    Entries are taken in standings order and each is paired with the next
    highest entry it hasn't met yet. If every remaining opponent is a
    rematch, the closest one is used. With an odd count, the lowest-ranked
    entry without a previous bye sits out.
    """
    played_pairs = played_pairs or set()
    had_bye = had_bye or set()
    pool = qualifier_standings(entries)

    pairings: list[Pairing] = []
    if len(pool) % 2:
        bye_entry = next((e for e in reversed(pool) if e.id not in had_bye), pool[-1])
        pool.remove(bye_entry)
        pairings.append((bye_entry.id, None))

    while pool:
        first = pool.pop(0)
        opponent = next(
            (e for e in pool if frozenset((first.id, e.id)) not in played_pairs),
            pool[0],
        )
        pool.remove(opponent)
        pairings.append((first.id, opponent.id))

    # bye listed last, real matches in standings order
    pairings.sort(key=lambda p: p[1] is None)
    return pairings


def qualifier_pairings(
    tournament: Tournament,
    entries: list[Entry],
    round_no: int,
    played_pairs: Optional[set[frozenset[int]]] = None,
    had_bye: Optional[set[int]] = None,
) -> list[Pairing]:
    """
    Pairings for qualifier round ``round_no`` (1-based).

    Round-robin cycles through the circle schedule; Swiss pairs on the
    current standings.
    """
    if round_no < 1:
        raise ValidationError(f"Qualifier round must be >= 1, got {round_no}")
    if len(entries) < 2:
        raise InvalidEntryCount(f"Need at least 2 entries for a qualifier round, got {len(entries)}")

    if tournament.qualifier_format == QualifierFormat.ROUND_ROBIN:
        schedule = round_robin_rounds(sorted(entries, key=lambda e: e.id))
        return schedule[(round_no - 1) % len(schedule)]
    return swiss_pairings(entries, played_pairs, had_bye)
