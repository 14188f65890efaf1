"""Ranking pipeline exceptions."""

from typing import Any


class RankingError(Exception):
    """Base exception for ranking errors."""

    pass


class DataIncompleteError(RankingError):
    """Snapshot is missing its teams, rounds or scores collection."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Event data incomplete: missing {', '.join(missing)}")
        self.missing = missing


class InvalidScoreError(RankingError):
    """Score value rejected before it reaches the engine."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value
