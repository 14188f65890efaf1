"""Leaderboard pipeline: snapshot -> completion -> ranking -> movement -> highlights."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from triviaboard.ranking.completion import RoundCompletionTracker
from triviaboard.ranking.engine import compute_rankings
from triviaboard.ranking.exceptions import DataIncompleteError
from triviaboard.ranking.highlights import calculate_highlights, summarize_rounds
from triviaboard.ranking.models import EventSnapshot, LeaderboardData, PublicView
from triviaboard.ranking.movement import apply_movement

logger = logging.getLogger(__name__)


def _require_complete(snapshot: EventSnapshot) -> None:
    missing = [
        name for name in ("teams", "rounds", "scores")
        if getattr(snapshot, name) is None
    ]
    if missing:
        raise DataIncompleteError(missing)


def build_leaderboard(snapshot: EventSnapshot) -> LeaderboardData:
    """
    Run the full ranking pipeline over one snapshot.

    Raises:
        DataIncompleteError: If teams, rounds or scores are missing
    """
    _require_complete(snapshot)

    event = snapshot.event
    rounds, teams, scores = snapshot.rounds, snapshot.teams, snapshot.scores

    tracker = RoundCompletionTracker.from_snapshot(snapshot)
    last_completed = tracker.last_completed_round(event.status, event.current_round)

    rankings = compute_rankings(rounds, teams, scores, last_completed)
    apply_movement(rankings, event.status, last_completed, rounds, teams, scores)

    logger.debug(
        f"Built leaderboard for event {event.id}: "
        f"{len(rankings)} teams, last completed round {last_completed}"
    )

    return LeaderboardData(
        event=event,
        rankings=rankings,
        current_round=event.current_round,
        total_rounds=len(rounds),
        last_updated=event.updated_at,
        last_completed_round=last_completed,
        completed_rounds=tracker.completed_rounds,
        highlights=calculate_highlights(rankings, scores, teams, last_completed),
        rounds_summary=summarize_rounds(event, rounds, teams, scores, tracker),
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def select_public_view(
    snapshots: Iterable[EventSnapshot],
    now: datetime | None = None,
    recent_completed_hours: int = 48,
) -> PublicView:
    """
    Pick the event shown on the public page.

    Priority: active > completed within the recent window (latest end first)
    > upcoming (earliest scheduled first) > none.
    """
    now = _aware(now or datetime.now(timezone.utc))
    snapshots = list(snapshots)

    active = [s for s in snapshots if s.event.status == "active"]
    if active:
        return PublicView(kind="active", leaderboard=build_leaderboard(active[0]))

    cutoff = now - timedelta(hours=recent_completed_hours)
    recent = [
        s for s in snapshots
        if s.event.status == "completed"
        and s.event.ended_at is not None
        and _aware(s.event.ended_at) >= cutoff
    ]
    if recent:
        latest = max(recent, key=lambda s: _aware(s.event.ended_at))
        return PublicView(kind="completed", leaderboard=build_leaderboard(latest))

    upcoming = [s.event for s in snapshots if s.event.status == "upcoming"]
    if upcoming:
        far_future = datetime.max.replace(tzinfo=timezone.utc)
        first = min(
            upcoming,
            key=lambda e: _aware(e.scheduled_date) if e.scheduled_date else far_future,
        )
        return PublicView(kind="upcoming", event=first)

    return PublicView(kind="none")
