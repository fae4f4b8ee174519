"""
SQLAlchemy ORM models for Tourney.

Key design decisions:
- Ratings live on competitors (a team or a solo player), not on entries, so
  they carry over between tournaments
- An entry is one competitor's registration in one tournament
- Matches are created once when the bracket is built and updated in place;
  (tournament, round, position) is unique
- Statuses are stored as plain strings holding the values from
  ``tourney.statuses``

Tables:
- competitors: Teams and solo players with their ELO rating
- tournaments: Tournament configuration and lifecycle status
- entries: Registrations, seeds and qualifier counters
- matches: The elimination tree
- predictions: User score predictions and awarded points

The ``to_engine`` / ``apply_engine`` helpers convert between these rows and
the plain dataclasses in ``tourney.engine.types``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tourney.config import get_settings
from tourney.engine import types as engine_types
from tourney.statuses import (
    MatchStatus,
    QualifierFormat,
    SeedingMethod,
    TournamentStatus,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _default_rating() -> int:
    return get_settings().default_rating


# =============================================================================
# Competitors
# =============================================================================

class Competitor(Base):
    """
    A team or a solo player that can enter tournaments.

    ``rating`` is the integer ELO rating, changed only by completed
    (non-bye) bracket matches. New competitors start at
    ``settings.default_rating``. ``rank`` is the in-game rank some
    tournaments require at registration.
    """
    __tablename__ = "competitors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False, default="team")  # 'team', 'solo'
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=_default_rating)
    rank: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # None = unranked

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    entries: Mapped[list["Entry"]] = relationship(back_populates="competitor")

    __table_args__ = (
        CheckConstraint("kind IN ('team', 'solo')", name="ck_competitors_kind"),
    )

    def __repr__(self) -> str:
        return f"<Competitor(id={self.id}, name='{self.name}', rating={self.rating})>"


# =============================================================================
# Tournaments
# =============================================================================

class Tournament(Base):
    """
    Tournament configuration and lifecycle.

    Status lifecycle (see ``tourney.statuses.TOURNAMENT_TRANSITIONS``):
    DRAFT → REGISTRATION → IN_PROGRESS → COMPLETED, with CANCELLED reachable
    from the early states. Moving an IN_PROGRESS or COMPLETED tournament
    back to REGISTRATION deletes its matches.
    """
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    max_teams: Mapped[int] = mapped_column(Integer, nullable=False, default=16)
    team_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # None = solo
    seeding_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SeedingMethod.STANDARD.value
    )
    require_rank: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Qualifier stage
    has_qualifier: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    qualifier_matches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qualifier_min_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qualifier_format: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QualifierFormat.SWISS.value
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TournamentStatus.DRAFT.value
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    entries: Mapped[list["Entry"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    matches: Mapped[list["Match"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("max_teams >= 2", name="ck_tournaments_max_teams"),
        Index("idx_tournaments_status", "status"),
    )

    def to_engine(self) -> engine_types.Tournament:
        return engine_types.Tournament(
            id=self.id,
            name=self.name,
            max_teams=self.max_teams,
            team_size=self.team_size,
            seeding_method=SeedingMethod(self.seeding_method),
            has_qualifier=self.has_qualifier,
            qualifier_matches=self.qualifier_matches,
            qualifier_min_points=self.qualifier_min_points,
            qualifier_format=QualifierFormat(self.qualifier_format),
            require_rank=self.require_rank,
            status=TournamentStatus(self.status),
        )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', status={self.status})>"


class Entry(Base):
    """
    One competitor's registration in a tournament.

    ``seed`` and ``slot`` are set once when the bracket is generated and
    cleared if the bracket is wiped. Qualifier counters only change during
    the qualifier stage.
    """
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    competitor_id: Mapped[int] = mapped_column(ForeignKey("competitors.id"), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    # Rating snapshot at registration, used to order STANDARD seeding
    seed_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    slot: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    qualifier_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    matches_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tournament: Mapped["Tournament"] = relationship(back_populates="entries")
    competitor: Mapped["Competitor"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("tournament_id", "competitor_id", name="uq_entry_tournament_competitor"),
        Index("idx_entries_tournament", "tournament_id"),
    )

    def to_engine(self) -> engine_types.Entry:
        return engine_types.Entry(
            id=self.id,
            competitor_id=self.competitor_id,
            registered_at=self.registered_at,
            seed=self.seed,
            slot=self.slot,
            qualifier_points=self.qualifier_points,
            matches_played=self.matches_played,
        )

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, tournament={self.tournament_id}, seed={self.seed})>"


# =============================================================================
# Matches
# =============================================================================

class Match(Base):
    """
    One node of a tournament's elimination tree.

    Rounds are 1-indexed, positions 0-indexed within a round. The winner of
    (r, p) moves into (r+1, p // 2): home side for even p, away for odd p.

    Status lifecycle: PENDING → IN_PROGRESS (optional) → COMPLETED.
    ``rating_delta`` holds the delta applied on completion so an admin
    reset can reverse it.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )

    round: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Null = bye (round 1) or waiting for a feeder match
    home_entry_id: Mapped[Optional[int]] = mapped_column(ForeignKey("entries.id"), nullable=True)
    away_entry_id: Mapped[Optional[int]] = mapped_column(ForeignKey("entries.id"), nullable=True)

    home_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    winner_entry_id: Mapped[Optional[int]] = mapped_column(ForeignKey("entries.id"), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MatchStatus.PENDING.value
    )
    is_bye: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rating_delta: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    tournament: Mapped["Tournament"] = relationship(back_populates="matches")
    predictions: Mapped[list["Prediction"]] = relationship(
        back_populates="match", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("tournament_id", "round", "position", name="uq_match_tournament_round_position"),
        CheckConstraint("round >= 1", name="ck_matches_round"),
        CheckConstraint("position >= 0", name="ck_matches_position"),
        Index("idx_matches_tournament_status", "tournament_id", "status"),
    )

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED.value

    def to_engine(self) -> engine_types.Match:
        return engine_types.Match(
            round=self.round,
            position=self.position,
            id=self.id,
            tournament_id=self.tournament_id,
            home_entry_id=self.home_entry_id,
            away_entry_id=self.away_entry_id,
            home_score=self.home_score,
            away_score=self.away_score,
            winner_entry_id=self.winner_entry_id,
            status=MatchStatus(self.status),
            is_bye=self.is_bye,
            rating_delta=self.rating_delta,
            completed_at=self.completed_at,
        )

    def apply_engine(self, match: engine_types.Match) -> None:
        """Copy mutable fields from an engine match back onto this row."""
        self.home_entry_id = match.home_entry_id
        self.away_entry_id = match.away_entry_id
        self.home_score = match.home_score
        self.away_score = match.away_score
        self.winner_entry_id = match.winner_entry_id
        self.status = MatchStatus(match.status).value
        self.is_bye = match.is_bye
        self.rating_delta = match.rating_delta
        self.completed_at = match.completed_at

    @classmethod
    def from_engine(cls, match: engine_types.Match) -> "Match":
        row = cls(tournament_id=match.tournament_id, round=match.round, position=match.position)
        row.apply_engine(match)
        return row

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, r{self.round}#{self.position}, "
            f"{self.home_entry_id} vs {self.away_entry_id}, status={self.status})>"
        )


# =============================================================================
# Predictions
# =============================================================================

class Prediction(Base):
    """
    A user's score prediction for one match.

    ``points`` and ``is_correct`` stay null until the match completes and
    are overwritten (never added to) whenever the match is scored.
    """
    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    predictor_id: Mapped[int] = mapped_column(Integer, nullable=False)

    predicted_home_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    predicted_away_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    predicted_winner_entry_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("entries.id"), nullable=True
    )

    points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_correct: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    match: Mapped["Match"] = relationship(back_populates="predictions")

    __table_args__ = (
        UniqueConstraint("match_id", "predictor_id", name="uq_prediction_match_predictor"),
    )

    def to_engine(self) -> engine_types.Prediction:
        return engine_types.Prediction(
            match_id=self.match_id,
            predictor_id=self.predictor_id,
            predicted_home_score=self.predicted_home_score,
            predicted_away_score=self.predicted_away_score,
            predicted_winner_entry_id=self.predicted_winner_entry_id,
            id=self.id,
            points=self.points,
            is_correct=self.is_correct,
        )

    def __repr__(self) -> str:
        return f"<Prediction(id={self.id}, match={self.match_id}, points={self.points})>"
