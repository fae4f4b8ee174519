"""
Tourney services: database-backed tournament operations.

Each service takes an open SQLAlchemy session, loads the rows it needs,
runs the pure engine on plain copies and writes the outcome back. None of
them commit; use ``get_session()`` to commit or roll back as a unit.

Usage:
    from tourney.services import register_entry, generate_bracket, submit_result
"""

from tourney.services.bracket_service import (
    change_tournament_status,
    delete_bracket,
    generate_bracket,
    list_matches,
)
from tourney.services.registration import (
    record_qualifier_match,
    register_entry,
    seeding_order,
    withdraw_entry,
)
from tourney.services.results_service import (
    reset_match,
    submit_prediction,
    submit_result,
    update_live_score,
)

__all__ = [
    # Registration
    "register_entry",
    "withdraw_entry",
    "record_qualifier_match",
    "seeding_order",
    # Bracket
    "generate_bracket",
    "delete_bracket",
    "change_tournament_status",
    "list_matches",
    # Results
    "submit_result",
    "update_live_score",
    "reset_match",
    "submit_prediction",
]
