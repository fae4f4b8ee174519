"""
Error taxonomy for the bracket engine and its services.

Three families, each carrying a stable ``code`` the admin UI can switch on:

- ValidationError: the input has the wrong shape (negative scores, fewer
  than two entries, a winner that isn't in the match).
- InvariantViolation: the input is well-formed but conflicts with the
  current state of the bracket (match already completed, draw in an
  elimination match, bracket already built).
- NotFoundError: a referenced tournament, entry or match doesn't exist.

None of these are retried automatically. They indicate a caller bug or a
genuine business-rule conflict and must surface to whoever submitted the
operation.
"""

from typing import Optional


class TourneyError(Exception):
    """Base class for all engine and service errors."""

    code = "TOURNEY_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


# =============================================================================
# Validation errors (bad input shape)
# =============================================================================

class ValidationError(TourneyError, ValueError):
    code = "VALIDATION_ERROR"


class InvalidEntryCount(ValidationError):
    code = "INVALID_ENTRY_COUNT"


class InvalidScore(ValidationError):
    code = "INVALID_SCORE"


class InvalidWinner(ValidationError):
    code = "INVALID_WINNER"


class RegistrationClosed(ValidationError):
    code = "REGISTRATION_CLOSED"


class TournamentFull(ValidationError):
    code = "TOURNAMENT_FULL"


class AlreadyRegistered(ValidationError):
    code = "ALREADY_REGISTERED"


class RankRequired(ValidationError):
    code = "RANK_REQUIRED"


class InvalidTeamSize(ValidationError):
    """Raised when a team enters a solo tournament or a solo player a team one."""

    code = "INVALID_TEAM_SIZE"


# =============================================================================
# Invariant violations (business-rule conflicts)
# =============================================================================

class InvariantViolation(TourneyError):
    code = "INVARIANT_VIOLATION"


class AlreadyCompleted(InvariantViolation):
    code = "ALREADY_COMPLETED"


class DrawNotSupported(InvariantViolation):
    code = "DRAW_NOT_SUPPORTED"


class BracketAlreadyExists(InvariantViolation):
    code = "BRACKET_ALREADY_EXISTS"


class ConflictingSeeds(InvariantViolation):
    code = "CONFLICTING_SEEDS"


class MatchNotReady(InvariantViolation):
    """Raised when a match is played before both of its entries are known."""

    code = "MATCH_NOT_READY"


class MatchNotCompleted(InvariantViolation):
    code = "MATCH_NOT_COMPLETED"


class SlotConflict(InvariantViolation):
    """Raised when a next-round slot is already held by a different entry."""

    code = "SLOT_CONFLICT"


class BracketChanged(InvariantViolation):
    """Raised when a match row no longer matches the state a reset was planned from."""

    code = "BRACKET_CHANGED"


class QualifierNotFinished(InvariantViolation):
    code = "QUALIFIER_NOT_FINISHED"


class InvalidStatusTransition(InvariantViolation):
    code = "INVALID_STATUS_TRANSITION"


# =============================================================================
# Lookups
# =============================================================================

class NotFoundError(TourneyError, LookupError):
    code = "NOT_FOUND"
