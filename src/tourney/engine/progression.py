"""
Match progression: records results and moves winners through the bracket.

Match lifecycle:
    PENDING → IN_PROGRESS (optional, first live score) → COMPLETED (terminal)

A completed match is never reopened implicitly. The only way back is an
explicit reset, modelled as a compensating transaction (``plan_reset`` /
``apply_reset_step``): for every match in the affected chain, deepest
downstream first, the rating delta is reversed, then the winner is removed
from the next-round slot, then the result is cleared.

Propagation only ever writes into round r+1 from round r:

    Round r, position p  →  Round r+1, position p // 2, home if p even, away if odd

A next-round match is only playable once both feeders have completed, so
results and propagation never race inside one tournament's match set. The
persistence layer still has to serialise writes per match (see
``tourney.services.results_service``).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from tourney.draw import get_next_position, get_next_side
from tourney.engine.types import Match, MatchCompletedEvent, MatchKey, index_matches
from tourney.errors import (
    AlreadyCompleted,
    DrawNotSupported,
    InvalidScore,
    InvalidWinner,
    InvariantViolation,
    MatchNotReady,
    SlotConflict,
)
from tourney.statuses import MatchStatus

logger = logging.getLogger(__name__)


@dataclass
class ResultOutcome:
    """What a single completion changed."""
    match: Match
    propagated: Optional[Match]
    propagated_side: Optional[str]
    event: MatchCompletedEvent

    @property
    def is_final(self) -> bool:
        return self.event.is_final


@dataclass(frozen=True)
class ResetStep:
    """
    One match's share of a reset.

    Executed in order: reverse ``rating_delta`` between winner and loser,
    remove the winner from ``parent_key``/``parent_side``, clear the result.
    """
    match_key: MatchKey
    match_id: Optional[int]
    was_completed: bool
    winner_entry_id: Optional[int]
    loser_entry_id: Optional[int]
    rating_delta: Optional[int]
    parent_key: Optional[MatchKey] = None
    parent_match_id: Optional[int] = None
    parent_side: Optional[str] = None

    @property
    def reverses_rating(self) -> bool:
        return bool(self.rating_delta) and self.loser_entry_id is not None


@dataclass
class ResetPlan:
    """Ordered compensating steps for resetting one match and its cascade."""
    target_key: MatchKey
    steps: list[ResetStep] = field(default_factory=list)

    @property
    def reset_match_ids(self) -> list[int]:
        return [s.match_id for s in self.steps if s.match_id is not None]

    @property
    def completed_match_ids(self) -> list[int]:
        return [s.match_id for s in self.steps if s.was_completed and s.match_id is not None]

    @property
    def reopens_final(self) -> bool:
        """Whether a completed match with no next round is part of the cascade."""
        return any(s.was_completed and s.parent_key is None for s in self.steps)


def _validate_score(value: object, side: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScore(f"{side} score must be an integer, got {value!r}")
    if value < 0:
        raise InvalidScore(f"{side} score must not be negative, got {value}")
    return value


class MatchProgressionEngine:
    """
    Records match results and propagates winners.

    All methods operate on in-memory Match objects for one tournament and
    mutate them in place. ``matches`` is always the full match set, used to
    locate next-round targets.

    Usage:
        engine = MatchProgressionEngine()
        outcome = engine.record_result(match, 3, 1, matches)
        outcome.propagated  # the round+1 match now holding the winner
    """

    def record_result(
        self,
        match: Match,
        home_score: int,
        away_score: int,
        matches: list[Match],
        winner_entry_id: Optional[int] = None,
        completed_at: Optional[datetime] = None,
    ) -> ResultOutcome:
        """
        Complete a match and propagate its winner.

        Args:
            match: The match being completed
            home_score: Home side score (non-negative integer)
            away_score: Away side score (non-negative integer)
            matches: Full match set of the tournament
            winner_entry_id: Explicit winner override (e.g. decided by a
                series result); trusted over the score comparison
            completed_at: Completion timestamp, defaults to now (UTC)

        Returns:
            ResultOutcome with the completed match and the next-round match
            that received the winner (None for the final)

        Raises:
            AlreadyCompleted: The match is already COMPLETED
            MatchNotReady: One of the sides is still undetermined
            InvalidScore: Negative or non-integer score
            InvalidWinner: Override is not one of the two entries
            DrawNotSupported: Equal scores without an override
            SlotConflict: The next-round slot holds a different entry
        """
        if match.is_completed:
            raise AlreadyCompleted(f"Match r{match.round}#{match.position} is already completed")
        if not match.has_both_entries:
            raise MatchNotReady(
                f"Match r{match.round}#{match.position} does not have both entries yet"
            )

        home_score = _validate_score(home_score, "Home")
        away_score = _validate_score(away_score, "Away")

        winner = self.determine_winner(match, home_score, away_score, winner_entry_id)
        target, side = self._next_slot(match, winner, index_matches(matches))

        match.home_score = home_score
        match.away_score = away_score
        match.winner_entry_id = winner
        match.status = MatchStatus.COMPLETED
        match.completed_at = completed_at or datetime.now(timezone.utc)
        if target is not None:
            target.set_side(side, winner)

        logger.debug(
            "Completed r%d#%d %s-%s, winner %s%s",
            match.round, match.position, home_score, away_score, winner,
            f" → r{target.round}#{target.position} {side}" if target else " (final)",
        )

        return ResultOutcome(
            match=match,
            propagated=target,
            propagated_side=side,
            event=MatchCompletedEvent.from_match(match, is_final=target is None),
        )

    def determine_winner(
        self,
        match: Match,
        home_score: int,
        away_score: int,
        winner_entry_id: Optional[int] = None,
    ) -> int:
        """Explicit override first, otherwise the strictly higher score."""
        if winner_entry_id is not None:
            if winner_entry_id not in (match.home_entry_id, match.away_entry_id):
                raise InvalidWinner(
                    f"Entry {winner_entry_id} is not playing in match r{match.round}#{match.position}"
                )
            return winner_entry_id

        if home_score > away_score:
            return match.home_entry_id
        if away_score > home_score:
            return match.away_entry_id
        raise DrawNotSupported(
            f"Draw {home_score}-{away_score} in an elimination match needs an explicit winner"
        )

    def update_live_score(self, match: Match, home_score: int, away_score: int) -> Match:
        """
        Record a score for a match that is still being played.

        Moves the match to IN_PROGRESS. No winner is set and nothing is
        propagated.
        """
        if match.is_completed:
            raise AlreadyCompleted(f"Match r{match.round}#{match.position} is already completed")
        if not match.has_both_entries:
            raise MatchNotReady(
                f"Match r{match.round}#{match.position} does not have both entries yet"
            )

        match.home_score = _validate_score(home_score, "Home")
        match.away_score = _validate_score(away_score, "Away")
        match.status = MatchStatus.IN_PROGRESS
        return match

    def resolve_byes(self, matches: list[Match]) -> list[ResultOutcome]:
        """
        Auto-complete first-round matches where one side is a bye.

        The present entry is declared winner with no score and moved into
        round 2. Bye matches are flagged so ratings and predictions skip them.
        """
        index = index_matches(matches)
        outcomes = []
        for match in sorted(matches, key=lambda m: m.key):
            if match.round != 1 or match.is_completed:
                continue
            present = [e for e in (match.home_entry_id, match.away_entry_id) if e is not None]
            if len(present) != 1:
                continue

            target, side = self._next_slot(match, present[0], index)
            match.winner_entry_id = present[0]
            match.is_bye = True
            match.status = MatchStatus.COMPLETED
            if target is not None:
                target.set_side(side, present[0])
            outcomes.append(
                ResultOutcome(
                    match=match,
                    propagated=target,
                    propagated_side=side,
                    event=MatchCompletedEvent.from_match(match, is_final=target is None),
                )
            )

        if outcomes:
            logger.debug("Resolved %d bye matches", len(outcomes))
        return outcomes

    # -------------------------------------------------------------------------
    # Reset (compensating transaction)
    # -------------------------------------------------------------------------

    def plan_reset(self, match: Match, matches: list[Match]) -> ResetPlan:
        """
        Plan the reset of ``match`` and every completed match downstream of it.

        Walks forward from the match while each next-round match holds the
        current match's winner and is itself completed. The steps are
        returned deepest first so downstream ratings are reversed before
        the entries that earned them are pulled back.

        Raises:
            InvariantViolation: ``match`` is a bye
        """
        if match.is_bye:
            raise InvariantViolation(
                f"Bye match r{match.round}#{match.position} cannot be reset", code="BYE_RESET"
            )

        index = index_matches(matches)
        chain: list[tuple[Match, Optional[Match], Optional[str]]] = []
        current = match
        while True:
            parent, side = None, None
            if current.is_completed:
                candidate = index.get((current.round + 1, get_next_position(current.position)))
                candidate_side = get_next_side(current.position)
                if candidate is not None and candidate.get_side(candidate_side) == current.winner_entry_id:
                    parent, side = candidate, candidate_side

            chain.append((current, parent, side))
            if parent is None or not parent.is_completed:
                break
            current = parent

        plan = ResetPlan(target_key=match.key)
        for node, parent, side in reversed(chain):
            plan.steps.append(
                ResetStep(
                    match_key=node.key,
                    match_id=node.id,
                    was_completed=node.is_completed,
                    winner_entry_id=node.winner_entry_id,
                    loser_entry_id=node.loser_entry_id,
                    rating_delta=node.rating_delta,
                    parent_key=parent.key if parent else None,
                    parent_match_id=parent.id if parent else None,
                    parent_side=side,
                )
            )
        return plan

    def apply_reset_step(self, step: ResetStep, matches: list[Match]) -> Match:
        """
        Apply the structural part of one reset step.

        Rating reversal is the caller's (it owns the ratings); it must run
        before this for the same step.
        """
        index = index_matches(matches)
        match = index[step.match_key]

        if step.parent_key is not None:
            parent = index[step.parent_key]
            if parent.get_side(step.parent_side) == step.winner_entry_id:
                parent.set_side(step.parent_side, None)
            if not parent.is_completed:
                parent.home_score = None
                parent.away_score = None
                parent.status = MatchStatus.PENDING

        match.clear_result()
        logger.debug("Reset r%d#%d", match.round, match.position)
        return match

    def apply_reset(self, plan: ResetPlan, matches: list[Match]) -> list[Match]:
        """Apply every structural step of a plan, in order."""
        return [self.apply_reset_step(step, matches) for step in plan.steps]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _next_slot(
        self,
        match: Match,
        winner_entry_id: int,
        index: dict[MatchKey, Match],
    ) -> tuple[Optional[Match], Optional[str]]:
        """
        Locate the next-round slot the winner moves into.

        Returns (None, None) for the final. Checked before anything is
        mutated so a conflict leaves the match untouched.
        """
        target = index.get((match.round + 1, get_next_position(match.position)))
        if target is None:
            return None, None

        side = get_next_side(match.position)
        current = target.get_side(side)
        if current is not None and current != winner_entry_id:
            raise SlotConflict(
                f"Slot {side} of r{target.round}#{target.position} already holds entry {current}"
            )
        return target, side
