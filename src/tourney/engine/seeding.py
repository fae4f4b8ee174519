"""
Entry seeding.

Orders registered entries into bracket slots. Every method assigns a
1-based ``seed`` and a 0-based ``slot`` in a bracket of ``next_pow2(N)``
slots; slots left empty are byes.

Methods:
- STANDARD: seeds follow the order the caller passes (rating desc, then
  registration time). Slots follow the standard bracket order so seed 1
  meets seed N and top seeds are kept apart until late rounds.
- SEQUENTIAL: seeds strictly by registration time, slots filled in order.
- RANDOM: a uniform shuffle, then placed like SEQUENTIAL.

For SEQUENTIAL and RANDOM the byes sit at the tail of the bracket, one per
trailing match, so no first-round match is ever empty on both sides.
"""

import logging
import random
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from tourney.draw import next_pow2, standard_bracket_order
from tourney.engine.types import Entry
from tourney.errors import ConflictingSeeds, InvalidEntryCount, ValidationError
from tourney.statuses import SeedingMethod

logger = logging.getLogger(__name__)


def _registration_key(entry: Entry) -> tuple:
    registered = entry.registered_at or datetime.min
    return (entry.registered_at is None, registered, entry.id)


def _check_conflicting_seeds(entries: list[Entry]) -> None:
    counts = Counter(e.seed for e in entries if e.seed is not None)
    duplicates = sorted(seed for seed, count in counts.items() if count > 1)
    if duplicates:
        raise ConflictingSeeds(f"Seeds assigned to more than one entry: {duplicates}")


def standard_slots(bracket_size: int) -> dict[int, int]:
    """Map seed → slot for the standard bracket order."""
    return {seed: slot for slot, seed in enumerate(standard_bracket_order(bracket_size))}


def sequential_slots(entry_count: int, bracket_size: int) -> dict[int, int]:
    """
    Map seed → slot filling slots in order with byes at the tail.

    With M first-round matches and b byes, the first 2·(M−b) seeds fill
    full matches in order and each remaining seed takes the home slot of
    one of the trailing b matches.

    Example (5 entries, 8 slots): 1→0, 2→1, 3→2, 4→4, 5→6
    """
    half = bracket_size // 2
    byes = bracket_size - entry_count
    full_slots = 2 * (half - byes)

    slots = {}
    for seed in range(1, entry_count + 1):
        if seed <= full_slots:
            slots[seed] = seed - 1
        else:
            slots[seed] = full_slots + 2 * (seed - full_slots - 1)
    return slots


class EntrySeeder:
    """
    Assigns seeds and bracket slots to entries.

    Usage:
        seeder = EntrySeeder()
        seeded = seeder.seed(entries, SeedingMethod.STANDARD)
        # seeded is ordered by slot; seeded[0].seed == 1

    The RNG for RANDOM seeding is per call: pass ``rng`` (or a seeded
    ``random.Random`` to the constructor) to make a shuffle reproducible.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng

    def seed(
        self,
        entries: Iterable[Entry],
        method: SeedingMethod | str,
        rng: Optional[random.Random] = None,
    ) -> list[Entry]:
        """
        Seed entries and place them into bracket slots.

        Args:
            entries: Registered entries. For STANDARD, in preferred seed order.
            method: Seeding method
            rng: Optional RNG for RANDOM seeding

        Returns:
            New Entry objects with ``seed`` and ``slot`` set, ordered by slot

        Raises:
            InvalidEntryCount: Fewer than 2 entries
            ConflictingSeeds: Two entries already carry the same seed
            ValidationError: A pre-assigned seed is outside 1..N
        """
        entries = list(entries)
        if len(entries) < 2:
            raise InvalidEntryCount(f"Need at least 2 entries to seed a bracket, got {len(entries)}")
        _check_conflicting_seeds(entries)

        method = SeedingMethod(method)
        if method == SeedingMethod.STANDARD:
            ordered = self._standard_order(entries)
        elif method == SeedingMethod.SEQUENTIAL:
            ordered = sorted(entries, key=_registration_key)
        else:
            ordered = list(entries)
            (rng or self._rng or random.Random()).shuffle(ordered)

        bracket_size = next_pow2(len(ordered))
        if method == SeedingMethod.STANDARD:
            slot_for_seed = standard_slots(bracket_size)
        else:
            slot_for_seed = sequential_slots(len(ordered), bracket_size)

        seeded = [
            replace(entry, seed=seed, slot=slot_for_seed[seed])
            for seed, entry in enumerate(ordered, start=1)
        ]
        seeded.sort(key=lambda e: e.slot)

        logger.debug(
            "Seeded %d entries (%s) into %d slots, %d byes",
            len(seeded), method.value, bracket_size, bracket_size - len(seeded),
        )
        return seeded

    def _standard_order(self, entries: list[Entry]) -> list[Entry]:
        """
        Order entries by final seed number.

        Entries that already carry a seed keep it. Unseeded entries take the
        free seed numbers in the order they were passed.
        """
        count = len(entries)
        preseeded = {}
        for entry in entries:
            if entry.seed is None:
                continue
            if not 1 <= entry.seed <= count:
                raise ValidationError(
                    f"Entry {entry.id} has seed {entry.seed}, expected 1-{count}"
                )
            preseeded[entry.seed] = entry

        unseeded = iter(e for e in entries if e.seed is None)
        return [
            preseeded[seed] if seed in preseeded else next(unseeded)
            for seed in range(1, count + 1)
        ]
