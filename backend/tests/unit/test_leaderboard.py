"""
Unit Tests: Leaderboard Document and Public Event Selection

Test cases:
- Incomplete snapshots are rejected, never ranked
- Leaderboard document fields
- Public page priority: active > recently completed > upcoming > none
"""

from datetime import datetime, timedelta, timezone

import pytest

from triviaboard.ranking import (
    DataIncompleteError,
    EventSnapshot,
    build_leaderboard,
    select_public_view,
)
from triviaboard.ranking.models import Event

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def test_incomplete_snapshot_is_rejected():
    snapshot = EventSnapshot(event=Event(id="e", status="active"), rounds=[], teams=None)

    with pytest.raises(DataIncompleteError) as exc_info:
        build_leaderboard(snapshot)

    assert exc_info.value.missing == ["teams", "scores"]
    assert "Event data incomplete" in str(exc_info.value)


def test_empty_collections_are_allowed():
    snapshot = EventSnapshot(
        event=Event(id="e", status="upcoming"), rounds=[], teams=[], scores=[]
    )
    leaderboard = build_leaderboard(snapshot)

    assert leaderboard.rankings == []
    assert leaderboard.total_rounds == 0
    assert leaderboard.highlights.leader is None


def test_leaderboard_document_fields(snapshot):
    leaderboard = build_leaderboard(snapshot)

    assert leaderboard.event.id == "evt-1"
    assert leaderboard.current_round == 2
    assert leaderboard.total_rounds == 2
    assert leaderboard.completed_rounds == [1, 2]
    assert leaderboard.last_updated == snapshot.event.updated_at
    assert len(leaderboard.rounds_summary) == 2


def test_leaderboard_serializes_camel_case(snapshot):
    data = build_leaderboard(snapshot).model_dump(mode="json", by_alias=True)

    assert data["lastCompletedRound"] == 2
    assert data["rankings"][0]["totalScore"] == "17"
    assert data["highlights"]["roundHero"]["roundNumber"] == 1


def test_active_event_wins(snapshot_factory):
    view = select_public_view(
        [
            snapshot_factory(event_id="done", status="completed", ended_at=NOW - timedelta(hours=1)),
            snapshot_factory(event_id="live", status="active", current_round=2),
        ],
        now=NOW,
    )

    assert view.kind == "active"
    assert view.leaderboard.event.id == "live"


def test_most_recently_completed_event_within_window(snapshot_factory):
    view = select_public_view(
        [
            snapshot_factory(event_id="older", status="completed", ended_at=NOW - timedelta(hours=30)),
            snapshot_factory(event_id="newer", status="completed", ended_at=NOW - timedelta(hours=2)),
            snapshot_factory(event_id="soon", status="upcoming", scheduled_date=NOW + timedelta(days=1)),
        ],
        now=NOW,
    )

    assert view.kind == "completed"
    assert view.leaderboard.event.id == "newer"


def test_stale_completed_event_falls_through_to_upcoming(snapshot_factory):
    view = select_public_view(
        [
            snapshot_factory(event_id="stale", status="completed", ended_at=NOW - timedelta(hours=49)),
            snapshot_factory(event_id="later", status="upcoming", scheduled_date=NOW + timedelta(days=7)),
            snapshot_factory(event_id="sooner", status="upcoming", scheduled_date=NOW + timedelta(days=2)),
        ],
        now=NOW,
    )

    assert view.kind == "upcoming"
    assert view.event.id == "sooner"
    assert view.leaderboard is None


def test_window_is_configurable(snapshot_factory):
    snapshots = [
        snapshot_factory(event_id="stale", status="completed", ended_at=NOW - timedelta(hours=49)),
    ]

    assert select_public_view(snapshots, now=NOW).kind == "none"
    assert select_public_view(snapshots, now=NOW, recent_completed_hours=72).kind == "completed"


def test_naive_timestamps_are_treated_as_utc(snapshot_factory):
    ended = (NOW - timedelta(hours=1)).replace(tzinfo=None)
    view = select_public_view(
        [snapshot_factory(event_id="naive", status="completed", ended_at=ended)],
        now=NOW,
    )
    assert view.kind == "completed"


def test_nothing_to_show(snapshot_factory):
    view = select_public_view(
        [snapshot_factory(event_id="d", status="draft"), snapshot_factory(event_id="a", status="archived")],
        now=NOW,
    )

    assert view.kind == "none"
    assert view.leaderboard is None
    assert view.event is None
