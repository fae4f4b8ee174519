#!/usr/bin/env python3
"""
Admin reset of a completed match.

Reverses the rating change, removes the winner from the next round and
clears the result. Completed matches downstream that depended on this
result are reset too (deepest first), and their predictions lose their
points.

Usage:
    python scripts/reset_match.py --match-id 87
    python scripts/reset_match.py --match-id 87 --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tourney.config import settings
from tourney.db.session import get_session
from tourney.errors import TourneyError
from tourney.services.results_service import reset_match

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


class _DryRun(Exception):
    """Raised to roll back the session after a dry run."""


def main() -> int:
    parser = argparse.ArgumentParser(description="Reset a match result and its downstream cascade")
    parser.add_argument("--match-id", type=int, required=True, help="Match to reset")
    parser.add_argument("--dry-run", action="store_true", help="Show the reset plan without saving")
    args = parser.parse_args()

    try:
        with get_session() as session:
            report = reset_match(session, args.match_id)

            for step in report.plan.steps:
                round_no, position = step.match_key
                line = f"  r{round_no}#{position} (match {step.match_id})"
                if step.reverses_rating:
                    line += (
                        f": winner {step.winner_entry_id} -{step.rating_delta}, "
                        f"loser {step.loser_entry_id} +{step.rating_delta}"
                    )
                print(line)
            print(f"Predictions unscored: {len(report.cleared_predictions)}")

            if args.dry_run:
                raise _DryRun()
    except _DryRun:
        logger.info("Dry run: reset rolled back")
    except TourneyError as e:
        logger.error("Could not reset match %s: [%s] %s", args.match_id, e.code, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
