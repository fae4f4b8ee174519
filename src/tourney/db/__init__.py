"""
Database module for Tourney.

Provides SQLAlchemy ORM models and session management.

Usage:
    from tourney.db import get_session, Tournament, Match

    with get_session() as session:
        matches = session.query(Match).filter_by(tournament_id=1).all()
"""

from tourney.db.models import (
    Base,
    Competitor,
    Entry,
    Match,
    Prediction,
    Tournament,
)
from tourney.db.session import SessionLocal, get_db, get_engine, get_session

__all__ = [
    # Base
    "Base",
    # Models
    "Competitor",
    "Entry",
    "Match",
    "Prediction",
    "Tournament",
    # Session
    "get_session",
    "get_db",
    "get_engine",
    "SessionLocal",
]
