"""
Unit tests for entry seeding.

Tests the seeding methods to ensure:
- STANDARD keeps top seeds apart (1v8, 4v5, 2v7, 3v6 for 8 entries)
- SEQUENTIAL follows registration order with byes at the tail
- RANDOM is reproducible with a seeded RNG
- Invalid input is rejected
"""

import random
from dataclasses import replace
from datetime import datetime

import pytest

from tourney.engine.seeding import EntrySeeder, sequential_slots, standard_slots
from tourney.errors import ConflictingSeeds, InvalidEntryCount, ValidationError
from tourney.statuses import SeedingMethod


def _pairs(seeded):
    """First-round pairs of seeds, reading slots (2p, 2p+1)."""
    by_slot = {e.slot: e.seed for e in seeded}
    size = 1
    while size < len(seeded):
        size *= 2
    return [(by_slot.get(2 * p), by_slot.get(2 * p + 1)) for p in range(size // 2)]


class TestStandardSeeding:
    """Tests for STANDARD seeding."""

    @pytest.fixture
    def seeder(self):
        return EntrySeeder()

    def test_eight_entries_standard_pairings(self, seeder, make_entries):
        """Seeds 1..8 meet as (1,8), (4,5), (2,7), (3,6)."""
        seeded = seeder.seed(make_entries(8), SeedingMethod.STANDARD)
        assert _pairs(seeded) == [(1, 8), (4, 5), (2, 7), (3, 6)]

    def test_seed_follows_input_order(self, seeder, make_entries):
        entries = list(reversed(make_entries(4)))
        seeded = seeder.seed(entries, SeedingMethod.STANDARD)
        seed_by_id = {e.id: e.seed for e in seeded}
        assert seed_by_id == {4: 1, 3: 2, 2: 3, 1: 4}

    def test_five_entries_get_three_byes(self, seeder, make_entries):
        seeded = seeder.seed(make_entries(5), SeedingMethod.STANDARD)
        assert _pairs(seeded) == [(1, None), (4, 5), (2, None), (3, None)]

    def test_preassigned_seeds_are_kept(self, seeder, make_entries):
        entries = make_entries(4)
        entries[3] = replace(entries[3], seed=1)
        seeded = seeder.seed(entries, SeedingMethod.STANDARD)
        seed_by_id = {e.id: e.seed for e in seeded}
        assert seed_by_id == {4: 1, 1: 2, 2: 3, 3: 4}

    def test_returns_copies_ordered_by_slot(self, seeder, make_entries):
        entries = make_entries(6)
        seeded = seeder.seed(entries, SeedingMethod.STANDARD)
        assert [e.slot for e in seeded] == sorted(e.slot for e in seeded)
        assert all(e.seed is None and e.slot is None for e in entries)

    def test_method_accepts_string(self, seeder, make_entries):
        seeded = seeder.seed(make_entries(2), "STANDARD")
        assert [(e.seed, e.slot) for e in seeded] == [(1, 0), (2, 1)]


class TestSequentialSeeding:
    """Tests for SEQUENTIAL seeding."""

    def test_orders_by_registration_time(self, make_entries):
        entries = make_entries(4)
        entries[0] = replace(entries[0], registered_at=datetime(2026, 2, 1))
        seeded = EntrySeeder().seed(entries, SeedingMethod.SEQUENTIAL)
        assert [e.id for e in seeded] == [2, 3, 4, 1]
        assert [e.seed for e in seeded] == [1, 2, 3, 4]

    def test_byes_at_tail_without_double_bye(self, make_entries):
        seeded = EntrySeeder().seed(make_entries(5), SeedingMethod.SEQUENTIAL)
        assert _pairs(seeded) == [(1, 2), (3, None), (4, None), (5, None)]

    @pytest.mark.parametrize("n", range(2, 34))
    def test_no_empty_first_round_match(self, n):
        size = 1
        while size < n:
            size *= 2
        slots = set(sequential_slots(n, size).values())
        assert len(slots) == n
        for position in range(size // 2):
            assert {2 * position, 2 * position + 1} & slots


class TestRandomSeeding:
    """Tests for RANDOM seeding."""

    def test_reproducible_with_seeded_rng(self, make_entries):
        first = EntrySeeder().seed(make_entries(8), SeedingMethod.RANDOM, rng=random.Random(42))
        second = EntrySeeder().seed(make_entries(8), SeedingMethod.RANDOM, rng=random.Random(42))
        assert [e.id for e in first] == [e.id for e in second]

    def test_constructor_rng_is_used(self, make_entries):
        seeder = EntrySeeder(rng=random.Random(7))
        expected = make_entries(8)
        random.Random(7).shuffle(expected)
        seeded = seeder.seed(make_entries(8), SeedingMethod.RANDOM)
        assert [e.id for e in seeded] == [e.id for e in expected]

    def test_is_a_permutation(self, make_entries):
        seeded = EntrySeeder().seed(make_entries(7), SeedingMethod.RANDOM)
        assert sorted(e.id for e in seeded) == list(range(1, 8))
        assert sorted(e.seed for e in seeded) == list(range(1, 8))


class TestSeedingFailures:
    """Tests for rejected input."""

    def test_fewer_than_two_entries(self, make_entries):
        with pytest.raises(InvalidEntryCount):
            EntrySeeder().seed(make_entries(1), SeedingMethod.STANDARD)
        with pytest.raises(InvalidEntryCount):
            EntrySeeder().seed([], SeedingMethod.RANDOM)

    def test_conflicting_seeds(self, make_entries):
        entries = [replace(e, seed=1) for e in make_entries(2)]
        with pytest.raises(ConflictingSeeds) as exc_info:
            EntrySeeder().seed(entries, SeedingMethod.SEQUENTIAL)
        assert exc_info.value.code == "CONFLICTING_SEEDS"

    def test_seed_out_of_range(self, make_entries):
        entries = make_entries(3)
        entries[0] = replace(entries[0], seed=9)
        with pytest.raises(ValidationError):
            EntrySeeder().seed(entries, SeedingMethod.STANDARD)


def test_slot_maps():
    assert standard_slots(4) == {1: 0, 4: 1, 2: 2, 3: 3}
    assert sequential_slots(5, 8) == {1: 0, 2: 1, 3: 2, 4: 4, 5: 6}
    assert sequential_slots(4, 4) == {1: 0, 2: 1, 3: 2, 4: 3}
