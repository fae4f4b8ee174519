"""
Tourney - Tournament Bracket & Match Progression Engine

Turns registered entries into a single-elimination bracket (optionally
preceded by a qualifier stage), advances winners round by round, updates
ELO ratings on completion, and scores user predictions.

Main components:
- engine: Pure bracket logic (seeding, building, progression, ratings, predictions)
- db: SQLAlchemy models and session management
- services: Database-backed registration, bracket and results operations
- config: Settings loaded from environment / .env
"""

__version__ = "1.0.0"
