"""
Database session management for Tourney.

Provides the SQLAlchemy engine and session factory with connection pooling
configured from config.py. The engine is created on first use, so importing
this module never opens a connection.

Usage:
    # As a context manager (recommended for scripts)
    from tourney.db import get_session

    with get_session() as session:
        tournament = session.get(Tournament, 1)
        # Commits automatically on exit, rolls back on exception

    # As a request-scoped dependency
    from tourney.db import get_db
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tourney.config import settings


def get_engine() -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    The engine is configured with:
    - Connection pool sized from settings (ignored by SQLite)
    - Echo mode only when LOG_LEVEL=DEBUG
    - Pre-ping to verify connections before use (handles stale connections)
    """
    kwargs = {
        "pool_pre_ping": True,
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return create_engine(settings.database_url, **kwargs)


# Singleton engine, created lazily
_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - bound to the engine when a session is opened
SessionLocal = sessionmaker(
    autoflush=False,  # Don't auto-flush before queries (more control)
    expire_on_commit=False,
)


def new_session() -> Session:
    """Open a session bound to the shared engine."""
    return SessionLocal(bind=_get_engine())


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    This is the recommended way to use sessions in scripts.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = new_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session generator for web frameworks.

    The caller owns the transaction; the session is always closed.
    """
    db = new_session()
    try:
        yield db
    finally:
        db.close()
