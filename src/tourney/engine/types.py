"""
Plain-data domain types used by the engine.

The engine never touches the database. Services load ORM rows, convert them
into these dataclasses, run the engine, and write the results back. Entries
and matches reference each other by id; a match with a null entry id on one
side is either a bye (round 1) or waiting for a feeder match to complete.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from tourney.draw import AWAY, HOME
from tourney.statuses import (
    MatchStatus,
    QualifierFormat,
    SeedingMethod,
    TournamentStatus,
)

MatchKey = tuple[int, int]  # (round, position)


@dataclass
class Tournament:
    """Tournament configuration relevant to bracket construction."""
    id: Optional[int] = None
    name: str = ""
    max_teams: int = 16
    team_size: Optional[int] = None  # None = solo
    seeding_method: SeedingMethod = SeedingMethod.STANDARD
    has_qualifier: bool = False
    qualifier_matches: int = 0
    qualifier_min_points: int = 0
    qualifier_format: QualifierFormat = QualifierFormat.SWISS
    require_rank: bool = False
    status: TournamentStatus = TournamentStatus.DRAFT

    @property
    def is_solo(self) -> bool:
        return self.team_size is None or self.team_size <= 1


@dataclass
class Entry:
    """A registered team or solo player in one tournament."""
    id: int
    competitor_id: Optional[int] = None
    registered_at: Optional[datetime] = None
    seed: Optional[int] = None
    slot: Optional[int] = None
    qualifier_points: int = 0
    matches_played: int = 0


@dataclass
class Match:
    """
    One node of the elimination tree.

    Created once at build time and updated in place as results arrive.
    ``rating_delta`` records the delta applied on completion so an admin
    reset can reverse it exactly.
    """
    round: int
    position: int
    id: Optional[int] = None
    tournament_id: Optional[int] = None
    home_entry_id: Optional[int] = None
    away_entry_id: Optional[int] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    winner_entry_id: Optional[int] = None
    status: MatchStatus = MatchStatus.PENDING
    is_bye: bool = False
    rating_delta: Optional[int] = None
    completed_at: Optional[datetime] = None

    @property
    def key(self) -> MatchKey:
        return (self.round, self.position)

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def has_both_entries(self) -> bool:
        return self.home_entry_id is not None and self.away_entry_id is not None

    @property
    def loser_entry_id(self) -> Optional[int]:
        if self.winner_entry_id is None or self.is_bye:
            return None
        if self.winner_entry_id == self.home_entry_id:
            return self.away_entry_id
        return self.home_entry_id

    def get_side(self, side: str) -> Optional[int]:
        return self.home_entry_id if side == HOME else self.away_entry_id

    def set_side(self, side: str, entry_id: Optional[int]) -> None:
        if side == HOME:
            self.home_entry_id = entry_id
        else:
            self.away_entry_id = entry_id

    def clear_result(self) -> None:
        self.home_score = None
        self.away_score = None
        self.winner_entry_id = None
        self.status = MatchStatus.PENDING
        self.rating_delta = None
        self.completed_at = None

    def __repr__(self) -> str:
        return (
            f"<Match(r{self.round}#{self.position} "
            f"{self.home_entry_id} vs {self.away_entry_id}, "
            f"status={self.status.value}, winner={self.winner_entry_id})>"
        )


@dataclass
class Prediction:
    """A user's guess for one match; points are filled in once it completes."""
    match_id: Optional[int]
    predictor_id: int
    predicted_home_score: Optional[int] = None
    predicted_away_score: Optional[int] = None
    predicted_winner_entry_id: Optional[int] = None
    id: Optional[int] = None
    points: Optional[int] = None
    is_correct: Optional[bool] = None


@dataclass(frozen=True)
class MatchCompletedEvent:
    """Payload handed to the notification dispatcher after a completion."""
    match_id: Optional[int]
    tournament_id: Optional[int]
    round: int
    position: int
    home_entry_id: Optional[int]
    away_entry_id: Optional[int]
    home_score: Optional[int]
    away_score: Optional[int]
    winner_entry_id: Optional[int]
    loser_entry_id: Optional[int]
    is_final: bool = False
    is_bye: bool = False
    rating_delta: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_match(cls, match: Match, *, is_final: bool) -> "MatchCompletedEvent":
        return cls(
            match_id=match.id,
            tournament_id=match.tournament_id,
            round=match.round,
            position=match.position,
            home_entry_id=match.home_entry_id,
            away_entry_id=match.away_entry_id,
            home_score=match.home_score,
            away_score=match.away_score,
            winner_entry_id=match.winner_entry_id,
            loser_entry_id=match.loser_entry_id,
            is_final=is_final,
            is_bye=match.is_bye,
            rating_delta=match.rating_delta,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "tournament_id": self.tournament_id,
            "round": self.round,
            "position": self.position,
            "home_entry_id": self.home_entry_id,
            "away_entry_id": self.away_entry_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winner_entry_id": self.winner_entry_id,
            "loser_entry_id": self.loser_entry_id,
            "is_final": self.is_final,
            "is_bye": self.is_bye,
            "rating_delta": self.rating_delta,
            **self.extra,
        }


def index_matches(matches: list[Match]) -> dict[MatchKey, Match]:
    """Map (round, position) → Match for one tournament's match set."""
    return {m.key: m for m in matches}
