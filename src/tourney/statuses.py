"""Shared status vocabularies and transition rules.

This module is the single source of truth for tournament and match statuses
and for the tournament lifecycle transitions the services enforce.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class TournamentStatus(str, Enum):
    DRAFT = "DRAFT"
    REGISTRATION = "REGISTRATION"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MatchStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class SeedingMethod(str, Enum):
    STANDARD = "STANDARD"
    SEQUENTIAL = "SEQUENTIAL"
    RANDOM = "RANDOM"


class QualifierFormat(str, Enum):
    SWISS = "SWISS"
    ROUND_ROBIN = "ROUND_ROBIN"


# Allowed tournament lifecycle moves. Reverting to REGISTRATION wipes the bracket.
TOURNAMENT_TRANSITIONS: dict[TournamentStatus, tuple[TournamentStatus, ...]] = {
    TournamentStatus.DRAFT: (TournamentStatus.REGISTRATION, TournamentStatus.CANCELLED),
    TournamentStatus.REGISTRATION: (
        TournamentStatus.DRAFT,
        TournamentStatus.IN_PROGRESS,
        TournamentStatus.CANCELLED,
    ),
    TournamentStatus.IN_PROGRESS: (
        TournamentStatus.REGISTRATION,
        TournamentStatus.COMPLETED,
        TournamentStatus.CANCELLED,
    ),
    TournamentStatus.COMPLETED: (TournamentStatus.IN_PROGRESS, TournamentStatus.REGISTRATION),
    TournamentStatus.CANCELLED: (TournamentStatus.DRAFT,),
}

# Match status groups.
MATCH_STATUS_GROUPS: dict[str, tuple[MatchStatus, ...]] = {
    # Matches still awaiting a result.
    "open": (MatchStatus.PENDING, MatchStatus.IN_PROGRESS),
    # Matches that can receive predictions.
    "predictable": (MatchStatus.PENDING,),
    "terminal": (MatchStatus.COMPLETED,),
    "all": tuple(MatchStatus),
}


def get_status_group(group_name: str) -> tuple[MatchStatus, ...]:
    """Return a named match status group, raising KeyError for unknown names."""
    return MATCH_STATUS_GROUPS[group_name]


def can_transition(current: TournamentStatus | str, target: TournamentStatus | str) -> bool:
    """Whether a tournament may move from ``current`` to ``target``."""
    current = TournamentStatus(current)
    target = TournamentStatus(target)
    return target in TOURNAMENT_TRANSITIONS[current]


def requires_bracket_wipe(current: TournamentStatus | str, target: TournamentStatus | str) -> bool:
    """Reverting a started tournament to registration discards its matches."""
    return (
        TournamentStatus(target) == TournamentStatus.REGISTRATION
        and TournamentStatus(current) in (TournamentStatus.IN_PROGRESS, TournamentStatus.COMPLETED)
    )


def normalize_status_filter(
    raw_statuses: Iterable[str] | None,
    *,
    default_group: str = "open",
) -> list[MatchStatus]:
    """Normalize requested match statuses against known values.

    - If no statuses are provided, returns the statuses from ``default_group``.
    - Unknown statuses are ignored.
    - Order is preserved and duplicates are removed.
    """
    if raw_statuses is None:
        return list(get_status_group(default_group))

    known = {s.value: s for s in MatchStatus}
    seen: set[MatchStatus] = set()
    normalized: list[MatchStatus] = []

    for raw in raw_statuses:
        status = known.get(raw.strip().upper())
        if status is None or status in seen:
            continue
        seen.add(status)
        normalized.append(status)

    if normalized:
        return normalized

    return list(get_status_group(default_group))
