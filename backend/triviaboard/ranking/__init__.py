"""Ranking pipeline for Triviaboard.

This package provides:
- Snapshot and leaderboard models (event, rounds, teams, scores -> rankings)
- Round completion tracking under mid-event team joins
- Ranking, movement classification and highlights
- Score value validation used before writes

Everything here is a pure function of the snapshot it is given.
"""

from .completion import RoundCompletionTracker
from .engine import compute_rankings, rank_totals
from .exceptions import DataIncompleteError, InvalidScoreError, RankingError
from .highlights import calculate_highlights, summarize_rounds
from .leaderboard import build_leaderboard, select_public_view
from .models import (
    Event,
    EventSnapshot,
    Highlights,
    LeaderboardData,
    PublicView,
    Round,
    RoundScore,
    RoundSummary,
    Score,
    Team,
    TeamRanking,
)
from .movement import apply_movement, comparison_round
from .validation import validate_points

__all__ = [
    # Models
    "Event",
    "EventSnapshot",
    "Highlights",
    "LeaderboardData",
    "PublicView",
    "Round",
    "RoundScore",
    "RoundSummary",
    "Score",
    "Team",
    "TeamRanking",
    # Pipeline
    "RoundCompletionTracker",
    "compute_rankings",
    "rank_totals",
    "apply_movement",
    "comparison_round",
    "calculate_highlights",
    "summarize_rounds",
    "build_leaderboard",
    "select_public_view",
    "validate_points",
    # Errors
    "RankingError",
    "DataIncompleteError",
    "InvalidScoreError",
]
