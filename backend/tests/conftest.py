"""Shared snapshot fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from triviaboard.config import Operator
from triviaboard.ranking import Event, EventSnapshot, Round, Score, Team


def make_snapshot(
    status: str = "completed",
    current_round: int | None = 2,
    scores: list[tuple[str, int, str]] | None = None,
    teams: list[tuple[str, str, int]] | None = None,
    round_count: int = 2,
    event_id: str = "evt-1",
    **event_fields,
) -> EventSnapshot:
    """Build a snapshot from (team_id, round, points) and (id, name, joined) tuples."""
    if teams is None:
        teams = [("alpha", "Alpha", 1), ("beta", "Beta", 1), ("gamma", "Gamma", 2)]
    if scores is None:
        scores = [
            ("alpha", 1, "10"),
            ("beta", 1, "8"),
            ("alpha", 2, "5"),
            ("beta", 2, "9"),
            ("gamma", 2, "7"),
        ]

    return EventSnapshot(
        event=Event(
            id=event_id,
            name="Pub Quiz",
            status=status,
            current_round=current_round,
            updated_at=datetime(2026, 10, 1, 20, 0, tzinfo=timezone.utc),
            **event_fields,
        ),
        rounds=[
            Round(round_number=n, round_name=f"Round {n}", max_points=20)
            for n in range(1, round_count + 1)
        ],
        teams=[Team(id=i, name=name, joined_round=joined) for i, name, joined in teams],
        scores=[
            Score(team_id=t, round_number=r, points=Decimal(p)) for t, r, p in scores
        ],
    )


@pytest.fixture
def snapshot() -> EventSnapshot:
    """Alpha and Beta from round 1, Gamma joining in round 2."""
    return make_snapshot()


@pytest.fixture
def operator_a() -> Operator:
    return Operator(id="op-a", name="Ann")


@pytest.fixture
def operator_b() -> Operator:
    return Operator(id="op-b", name="Bo")


@pytest.fixture
def snapshot_factory():
    return make_snapshot
