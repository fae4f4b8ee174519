"""Database advisory lock helpers for per-tournament serialisation."""

from __future__ import annotations

import hashlib
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def advisory_lock_key(name: str) -> int:
    """Return a deterministic signed 64-bit lock key from a lock name."""
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=True)


def tournament_lock_key(tournament_id: int, scope: str = "bracket") -> int:
    """Lock key for one tournament and operation scope."""
    return advisory_lock_key(f"tourney:{scope}:{tournament_id}")


def lock_tournament(session: Session, tournament_id: int, scope: str = "bracket") -> bool:
    """
    Take a transaction-scoped advisory lock for a tournament.

    The lock is released automatically when the session's transaction
    commits or rolls back. Other dialects have no advisory locks; there the
    call is a no-op and the caller relies on its own precondition checks.

    Returns:
        True if a lock was taken, False on non-PostgreSQL databases.
    """
    if session.get_bind().dialect.name != "postgresql":
        return False

    key = tournament_lock_key(tournament_id, scope)
    session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
    logger.debug("Acquired %s lock for tournament %s (key=%d)", scope, tournament_id, key)
    return True
