"""
Unit tests for bracket construction.

Tests the builder to ensure:
- Every N >= 2 gives a complete tree of next_pow2(N) - 1 matches
- Byes are resolved at build time and carried into round 2
- Existing brackets are never overwritten
- The qualifier cut runs before seeding
"""

import random
from dataclasses import replace

import pytest

from tourney.draw import next_pow2
from tourney.engine.bracket import BracketBuilder
from tourney.engine.seeding import EntrySeeder
from tourney.engine.types import Match, Tournament, index_matches
from tourney.errors import (
    BracketAlreadyExists,
    InvalidEntryCount,
    QualifierNotFinished,
    ValidationError,
)
from tourney.statuses import MatchStatus, QualifierFormat, SeedingMethod


@pytest.fixture
def builder():
    return BracketBuilder()


@pytest.fixture
def tournament():
    return Tournament(id=1, name="Spring Cup", max_teams=64)


def _build(builder, tournament, entries, method=SeedingMethod.STANDARD):
    seeded = EntrySeeder(rng=random.Random(3)).seed(entries, method)
    return builder.build(tournament, seeded)


class TestTreeShape:
    """Tests for the size and layout of the match tree."""

    @pytest.mark.parametrize("method", list(SeedingMethod))
    @pytest.mark.parametrize("n", range(2, 34))
    def test_complete_tree_for_every_entry_count(self, builder, tournament, make_entries, n, method):
        matches = _build(builder, tournament, make_entries(n), method)
        size = next_pow2(n)

        assert len(matches) == size - 1
        assert sum(1 for m in matches if m.is_bye) == size - n
        assert builder.validate(matches) == []
        assert [m.key for m in matches] == sorted(m.key for m in matches)

        round_one = [m for m in matches if m.round == 1]
        placed = [e for m in round_one for e in (m.home_entry_id, m.away_entry_id) if e is not None]
        assert sorted(placed) == list(range(1, n + 1))

    def test_eight_entries_standard_first_round(self, builder, tournament, make_entries):
        matches = _build(builder, tournament, make_entries(8))
        round_one = [(m.home_entry_id, m.away_entry_id) for m in matches if m.round == 1]
        assert round_one == [(1, 8), (4, 5), (2, 7), (3, 6)]
        assert all(m.home_entry_id is None and m.away_entry_id is None
                   for m in matches if m.round > 1)
        assert all(m.status == MatchStatus.PENDING for m in matches)

    def test_two_entries_is_a_single_final(self, builder, tournament, make_entries):
        matches = _build(builder, tournament, make_entries(2))
        assert len(matches) == 1
        assert (matches[0].round, matches[0].position) == (1, 0)
        assert matches[0].tournament_id == 1


class TestByes:
    """Tests for bye resolution at build time."""

    def test_five_entries_three_byes_resolved(self, builder, tournament, make_entries):
        matches = _build(builder, tournament, make_entries(5))
        index = index_matches(matches)

        byes = [m for m in matches if m.is_bye]
        assert [m.key for m in byes] == [(1, 0), (1, 2), (1, 3)]
        for bye in byes:
            assert bye.status == MatchStatus.COMPLETED
            assert bye.home_score is None and bye.away_score is None
            assert bye.rating_delta is None

        assert index[(1, 1)].status == MatchStatus.PENDING
        assert (index[(2, 0)].home_entry_id, index[(2, 0)].away_entry_id) == (1, None)
        assert (index[(2, 1)].home_entry_id, index[(2, 1)].away_entry_id) == (2, 3)
        assert index[(2, 1)].status == MatchStatus.PENDING

    def test_bye_winner_is_the_present_entry(self, builder, tournament, make_entries):
        matches = _build(builder, tournament, make_entries(3), SeedingMethod.SEQUENTIAL)
        bye = index_matches(matches)[(1, 1)]
        assert bye.is_bye
        assert bye.winner_entry_id == 3
        assert bye.loser_entry_id is None


class TestBuildFailures:
    """Tests for rejected builds."""

    def test_refuses_existing_bracket(self, builder, tournament, make_entries):
        seeded = EntrySeeder().seed(make_entries(4), SeedingMethod.STANDARD)
        with pytest.raises(BracketAlreadyExists):
            builder.build(tournament, seeded, existing_matches=[Match(round=1, position=0)])

    def test_refuses_single_entry(self, builder, tournament, make_entries):
        entries = [replace(make_entries(1)[0], seed=1, slot=0)]
        with pytest.raises(InvalidEntryCount):
            builder.build(tournament, entries)

    def test_unseeded_entries_rejected(self, builder, tournament, make_entries):
        with pytest.raises(ValidationError):
            builder.build(tournament, make_entries(4))

    def test_duplicate_slot_rejected(self, builder, tournament, make_entries):
        entries = [replace(e, slot=0) for e in make_entries(2)]
        with pytest.raises(ValidationError):
            builder.build(tournament, entries)

    def test_empty_first_round_match_rejected(self, builder, tournament, make_entries):
        entries = [replace(e, slot=i) for i, e in enumerate(make_entries(5))]
        with pytest.raises(ValidationError):
            builder.build(tournament, entries)


class TestBuildFromRegistrations:
    """Tests for the qualifier-aware build."""

    def test_without_qualifier_uses_all_entries(self, builder, make_entries):
        tournament = Tournament(id=2, seeding_method=SeedingMethod.SEQUENTIAL)
        seeded, matches = builder.build_from_registrations(tournament, make_entries(6))
        assert len(seeded) == 6
        assert len(matches) == 7

    def test_qualifier_must_be_finished(self, builder, make_entries):
        tournament = Tournament(id=3, has_qualifier=True, qualifier_matches=2)
        entries = [replace(e, matches_played=2) for e in make_entries(4)]
        entries[0] = replace(entries[0], matches_played=1)
        with pytest.raises(QualifierNotFinished):
            builder.build_from_registrations(tournament, entries)

    def test_qualifier_cut_and_standings_seed_order(self, builder, make_entries):
        tournament = Tournament(
            id=4,
            max_teams=4,
            has_qualifier=True,
            qualifier_matches=3,
            qualifier_min_points=3,
            qualifier_format=QualifierFormat.ROUND_ROBIN,
        )
        points = {1: 0, 2: 9, 3: 6, 4: 3, 5: 6, 6: 3}
        entries = [
            replace(e, matches_played=3, qualifier_points=points[e.id]) for e in make_entries(6)
        ]
        seeded, matches = builder.build_from_registrations(tournament, entries)

        seed_by_id = {e.id: e.seed for e in seeded}
        # 3 and 5 tie on 6 points; 3 registered first. 4 beats 6 the same way.
        assert seed_by_id == {2: 1, 3: 2, 5: 3, 4: 4}
        assert len(matches) == 3


def test_validate_reports_missing_matches(builder, tournament, make_entries):
    matches = _build(builder, tournament, make_entries(8))
    broken = [m for m in matches if m.key != (2, 1)]
    warnings = builder.validate(broken)
    assert warnings == ["Round 2: missing positions [1]"]
    assert builder.validate([]) == ["Bracket has no matches"]
