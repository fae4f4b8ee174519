"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tourney.db.models import Base, Competitor, Tournament
from tourney.engine.types import Entry
from tourney.statuses import TournamentStatus


@pytest.fixture(scope="session")
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features (advisory locks are skipped on SQLite).
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
    )
    return engine


@pytest.fixture(scope="session")
def tables(test_engine):
    """
    Create all tables for testing.

    This fixture runs once per test session.
    """
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def db_session(test_engine, tables):
    """
    Create a database session for a test.

    Each test gets its own session with automatic rollback,
    ensuring tests don't affect each other.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    Session = sessionmaker(bind=connection)
    session = Session()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def make_entries():
    """Factory for engine entries with ids 1..n registered a minute apart."""
    def _make(n: int, start: int = 1) -> list[Entry]:
        base = datetime(2026, 1, 1, 12, 0)
        return [
            Entry(id=i, competitor_id=100 + i, registered_at=base + timedelta(minutes=i))
            for i in range(start, start + n)
        ]
    return _make


@pytest.fixture
def make_tournament(db_session):
    """Factory for tournament rows, open for registration by default."""
    def _make(**kwargs) -> Tournament:
        kwargs.setdefault("name", "Spring Cup")
        kwargs.setdefault("max_teams", 8)
        kwargs.setdefault("status", TournamentStatus.REGISTRATION.value)
        tournament = Tournament(**kwargs)
        db_session.add(tournament)
        db_session.flush()
        return tournament
    return _make


@pytest.fixture
def make_competitors(db_session):
    """Factory for competitor rows with descending ratings (solo by default, like tournaments)."""
    def _make(n: int, top_rating: int = 1500, step: int = 50, **kwargs) -> list[Competitor]:
        kwargs.setdefault("kind", "solo")
        competitors = [
            Competitor(name=f"Team {i + 1}", rating=top_rating - i * step, **kwargs)
            for i in range(n)
        ]
        db_session.add_all(competitors)
        db_session.flush()
        return competitors
    return _make
