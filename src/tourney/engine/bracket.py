"""
Bracket construction.

Turns seeded entries into the full single-elimination match tree:

    N entries → bracket_size = next_pow2(N) slots → rounds = log2(bracket_size)
    Round 1:  bracket_size / 2 matches, filled from slots (2p, 2p+1)
    Round r:  bracket_size / 2^r matches, both sides empty until feeders finish

Total matches is always bracket_size - 1. Round-1 matches with a single
entry are byes; they are completed at build time and their entry moved into
round 2, so the returned tree is ready for play.
"""

import logging
import random
from typing import Iterable, Optional, Sequence

from tourney.draw import matches_in_round, next_pow2, total_rounds, validate_round_positions
from tourney.engine.progression import MatchProgressionEngine
from tourney.engine.qualifier import is_qualifier_finished, promote_qualified
from tourney.engine.seeding import EntrySeeder
from tourney.engine.types import Entry, Match, Tournament
from tourney.errors import (
    BracketAlreadyExists,
    InvalidEntryCount,
    QualifierNotFinished,
    ValidationError,
)

logger = logging.getLogger(__name__)


class BracketBuilder:
    """
    Builds the elimination tree for one tournament.

    Usage:
        builder = BracketBuilder()
        seeded = EntrySeeder().seed(entries, SeedingMethod.STANDARD)
        matches = builder.build(tournament, seeded)

    Refuses to build over an existing bracket. Deleting the old matches is
    the caller's job (see ``bracket_service.delete_bracket``).
    """

    def __init__(
        self,
        seeder: Optional[EntrySeeder] = None,
        progression: Optional[MatchProgressionEngine] = None,
    ):
        self.seeder = seeder or EntrySeeder()
        self.progression = progression or MatchProgressionEngine()

    def build(
        self,
        tournament: Tournament,
        seeded_entries: Sequence[Entry],
        existing_matches: Iterable[Match] = (),
    ) -> list[Match]:
        """
        Create every match of the bracket.

        Args:
            tournament: Tournament being built
            seeded_entries: Entries with ``slot`` assigned by EntrySeeder
            existing_matches: Matches already stored for the tournament

        Returns:
            All matches ordered by (round, position)

        Raises:
            BracketAlreadyExists: ``existing_matches`` is not empty
            InvalidEntryCount: Fewer than 2 entries
            ValidationError: Missing, duplicate or out-of-range slots, or a
                first-round match with no entry on either side
        """
        if any(True for _ in existing_matches):
            raise BracketAlreadyExists(
                f"Tournament {tournament.id} already has a bracket; delete it before rebuilding"
            )

        entries = list(seeded_entries)
        if len(entries) < 2:
            raise InvalidEntryCount(f"Need at least 2 entries to build a bracket, got {len(entries)}")

        bracket_size = next_pow2(len(entries))
        rounds = total_rounds(bracket_size)
        by_slot = self._entries_by_slot(entries, bracket_size)

        matches: list[Match] = []
        for position in range(matches_in_round(bracket_size, 1)):
            home = by_slot.get(2 * position)
            away = by_slot.get(2 * position + 1)
            if home is None and away is None:
                raise ValidationError(
                    f"First-round match {position} would have no entries (slots {2 * position}, "
                    f"{2 * position + 1})"
                )
            matches.append(
                Match(
                    round=1,
                    position=position,
                    tournament_id=tournament.id,
                    home_entry_id=home.id if home else None,
                    away_entry_id=away.id if away else None,
                )
            )

        for round_no in range(2, rounds + 1):
            for position in range(matches_in_round(bracket_size, round_no)):
                matches.append(Match(round=round_no, position=position, tournament_id=tournament.id))

        byes = self.progression.resolve_byes(matches)

        logger.info(
            "Built bracket for tournament %s: %d entries, %d slots, %d rounds, %d matches, %d byes",
            tournament.id, len(entries), bracket_size, rounds, len(matches), len(byes),
        )
        return matches

    def build_from_registrations(
        self,
        tournament: Tournament,
        entries: Sequence[Entry],
        existing_matches: Iterable[Match] = (),
        rng: Optional[random.Random] = None,
    ) -> tuple[list[Entry], list[Match]]:
        """
        Run the qualifier cut (if any), seed, and build.

        For STANDARD seeding without a qualifier, ``entries`` must already be
        in preferred seed order (rating desc, then registration time).

        Returns:
            (seeded_entries, matches)

        Raises:
            QualifierNotFinished: Some entry hasn't played its qualifier quota
        """
        entries = list(entries)
        if tournament.has_qualifier:
            if not is_qualifier_finished(tournament, entries):
                remaining = sum(1 for e in entries if e.matches_played < tournament.qualifier_matches)
                raise QualifierNotFinished(
                    f"{remaining} entries have not played {tournament.qualifier_matches} qualifier matches"
                )
            entries = promote_qualified(tournament, entries)

        seeded = self.seeder.seed(entries, tournament.seeding_method, rng=rng)
        return seeded, self.build(tournament, seeded, existing_matches)

    def validate(self, matches: Sequence[Match]) -> list[str]:
        """
        Check that a stored bracket has the expected shape.

        Returns:
            List of warning messages (empty if the tree is complete)
        """
        if not matches:
            return ["Bracket has no matches"]

        first_round = [m for m in matches if m.round == 1]
        bracket_size = 2 * len(first_round)
        warnings = []
        if bracket_size < 2 or next_pow2(bracket_size) != bracket_size:
            warnings.append(f"Round 1 has {len(first_round)} matches, expected a power of two")
            return warnings

        expected_rounds = total_rounds(bracket_size)
        seen_rounds = sorted({m.round for m in matches})
        extra = [r for r in seen_rounds if r > expected_rounds]
        if extra:
            warnings.append(f"Unexpected rounds beyond {expected_rounds}: {extra}")

        for round_no in range(1, expected_rounds + 1):
            positions = [m.position for m in matches if m.round == round_no]
            warnings.extend(validate_round_positions(round_no, positions, bracket_size))
        return warnings

    @staticmethod
    def _entries_by_slot(entries: list[Entry], bracket_size: int) -> dict[int, Entry]:
        by_slot: dict[int, Entry] = {}
        for entry in entries:
            if entry.slot is None:
                raise ValidationError(f"Entry {entry.id} has no bracket slot; seed entries first")
            if not 0 <= entry.slot < bracket_size:
                raise ValidationError(
                    f"Entry {entry.id} slot {entry.slot} outside 0-{bracket_size - 1}"
                )
            if entry.slot in by_slot:
                raise ValidationError(
                    f"Entries {by_slot[entry.slot].id} and {entry.id} share slot {entry.slot}"
                )
            by_slot[entry.slot] = entry
        return by_slot
