#!/usr/bin/env python3
"""
Generate (or regenerate) the bracket for a tournament.

Runs the qualifier cut if the tournament has one, seeds the entries with
the tournament's seeding method and stores every match. Refuses to build
over an existing bracket unless --rebuild is given, in which case the old
matches and their predictions are deleted first.

Usage:
    python scripts/generate_bracket.py --tournament-id 12
    python scripts/generate_bracket.py --tournament-id 12 --rebuild --random-seed 7
    python scripts/generate_bracket.py --tournament-id 12 --dry-run
"""

import argparse
import logging
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tourney.config import settings
from tourney.db.models import Entry
from tourney.db.session import get_session
from tourney.draw import round_name, total_rounds
from tourney.errors import TourneyError
from tourney.services.bracket_service import delete_bracket, generate_bracket

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


class _DryRun(Exception):
    """Raised to roll back the session after a dry run."""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a tournament bracket")
    parser.add_argument("--tournament-id", type=int, required=True, help="Tournament to build")
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Delete the existing bracket (and its predictions) before building",
    )
    parser.add_argument(
        "--random-seed",
        type=int,
        default=None,
        help="Seed for RANDOM seeding (defaults to SEEDING_RANDOM_SEED)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the bracket without saving it")
    return parser


def print_bracket(matches, entry_names: dict[int, str]) -> None:
    rounds = total_rounds(2 * sum(1 for m in matches if m.round == 1))
    current = None
    for match in matches:
        if match.round != current:
            current = match.round
            print(f"\n{round_name(current, rounds)}")
        home = entry_names.get(match.home_entry_id, "BYE" if match.round == 1 else "TBD")
        away = entry_names.get(match.away_entry_id, "BYE" if match.round == 1 else "TBD")
        suffix = " (bye)" if match.is_bye else ""
        print(f"  #{match.position:<3} {home:<30} vs {away}{suffix}")


def main() -> int:
    args = _build_parser().parse_args()
    rng = random.Random(args.random_seed) if args.random_seed is not None else None

    try:
        with get_session() as session:
            if args.rebuild:
                deleted = delete_bracket(session, args.tournament_id)
                logger.info("Removed %d existing matches", deleted)

            matches = generate_bracket(session, args.tournament_id, rng=rng)

            entries = session.query(Entry).filter(Entry.tournament_id == args.tournament_id).all()
            names = {
                e.id: f"[{e.seed}] {e.competitor.name}" if e.seed else e.competitor.name
                for e in entries
            }
            print_bracket(matches, names)

            if args.dry_run:
                raise _DryRun()
    except _DryRun:
        logger.info("Dry run: bracket not saved")
    except TourneyError as e:
        logger.error("Could not generate bracket: [%s] %s", e.code, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
