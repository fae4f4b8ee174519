"""
Bracket engine.

Pure, synchronous logic with no I/O:
- EntrySeeder: seeds and bracket slots (STANDARD, SEQUENTIAL, RANDOM)
- BracketBuilder: the full elimination tree, byes resolved
- MatchProgressionEngine: results, winner propagation, admin resets
- RatingUpdater: zero-sum ELO deltas
- PredictionScorer: exact-score and winner points
"""

from tourney.engine.bracket import BracketBuilder
from tourney.engine.pipeline import (
    CompletionReport,
    EngineConfig,
    ResetReport,
    complete_match,
    reset_match,
)
from tourney.engine.predictions import PredictionScorer, ScoredPrediction, make_prediction
from tourney.engine.progression import MatchProgressionEngine, ResetPlan, ResultOutcome
from tourney.engine.rating import RatingChange, RatingUpdater
from tourney.engine.seeding import EntrySeeder
from tourney.engine.types import Entry, Match, MatchCompletedEvent, Prediction, Tournament

__all__ = [
    # Components
    "BracketBuilder",
    "EntrySeeder",
    "MatchProgressionEngine",
    "PredictionScorer",
    "RatingUpdater",
    # Pipeline
    "complete_match",
    "reset_match",
    "EngineConfig",
    "CompletionReport",
    "ResetReport",
    # Results
    "ResultOutcome",
    "ResetPlan",
    "RatingChange",
    "ScoredPrediction",
    "make_prediction",
    # Types
    "Entry",
    "Match",
    "MatchCompletedEvent",
    "Prediction",
    "Tournament",
]
