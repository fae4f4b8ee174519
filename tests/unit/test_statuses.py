"""Unit tests for status vocabularies and transitions."""

import pytest

from tourney.statuses import (
    MatchStatus,
    TournamentStatus,
    can_transition,
    get_status_group,
    normalize_status_filter,
    requires_bracket_wipe,
)


def test_tournament_lifecycle_transitions():
    assert can_transition(TournamentStatus.DRAFT, TournamentStatus.REGISTRATION)
    assert can_transition("REGISTRATION", "IN_PROGRESS")
    assert can_transition(TournamentStatus.IN_PROGRESS, TournamentStatus.COMPLETED)
    assert not can_transition(TournamentStatus.DRAFT, TournamentStatus.COMPLETED)
    assert not can_transition(TournamentStatus.CANCELLED, TournamentStatus.IN_PROGRESS)


def test_unknown_status_raises():
    with pytest.raises(ValueError):
        can_transition("ARCHIVED", "DRAFT")


def test_bracket_wipe_only_when_reverting_started_tournament():
    assert requires_bracket_wipe(TournamentStatus.IN_PROGRESS, TournamentStatus.REGISTRATION)
    assert requires_bracket_wipe(TournamentStatus.COMPLETED, TournamentStatus.REGISTRATION)
    assert not requires_bracket_wipe(TournamentStatus.DRAFT, TournamentStatus.REGISTRATION)
    assert not requires_bracket_wipe(TournamentStatus.IN_PROGRESS, TournamentStatus.COMPLETED)


def test_status_groups():
    assert get_status_group("open") == (MatchStatus.PENDING, MatchStatus.IN_PROGRESS)
    assert get_status_group("predictable") == (MatchStatus.PENDING,)
    with pytest.raises(KeyError):
        get_status_group("nope")


def test_normalize_status_filter():
    assert normalize_status_filter(None) == [MatchStatus.PENDING, MatchStatus.IN_PROGRESS]
    assert normalize_status_filter([" completed", "PENDING", "COMPLETED", "bogus"]) == [
        MatchStatus.COMPLETED,
        MatchStatus.PENDING,
    ]
    assert normalize_status_filter(["bogus"], default_group="terminal") == [MatchStatus.COMPLETED]
