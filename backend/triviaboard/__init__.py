"""Triviaboard: live leaderboard ranking and score-edit conflict detection."""

__version__ = "0.1.0"
__author__ = "Triviaboard Team"

__all__ = ["__version__", "__author__"]
