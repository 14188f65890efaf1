"""Leaderboard that recomputes whenever the event channel reports a change."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from triviaboard.config import Settings
from triviaboard.ranking.leaderboard import build_leaderboard
from triviaboard.ranking.models import EventSnapshot, LeaderboardData

from .connection import RealtimeConnection, Subscription
from .messages import EVENT_CHANNEL_PREFIX, BroadcastMessage, event_channel

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    """Persistence collaborator returning the full event snapshot."""

    async def fetch(self, event_id: str) -> EventSnapshot: ...


UpdateCallback = Callable[[LeaderboardData], Awaitable[None] | None]


class LiveLeaderboard:
    """
    Keeps an up-to-date leaderboard for one event.

    Every inbound message triggers a fresh snapshot fetch; partial updates
    are never merged. Messages arriving while a refresh runs collapse into a
    single follow-up refresh.
    """

    def __init__(
        self,
        connection: RealtimeConnection,
        source: SnapshotSource,
        event_id: str,
        on_update: UpdateCallback | None = None,
        channel_prefix: str = EVENT_CHANNEL_PREFIX,
    ):
        self.connection = connection
        self.source = source
        self.event_id = event_id
        self.on_update = on_update
        self.channel = event_channel(event_id, channel_prefix)
        self.current: LeaderboardData | None = None
        self.refresh_count = 0

        self._lock = asyncio.Lock()
        self._pending = False
        self._refresh_task: asyncio.Task | None = None
        self._subscription: Subscription | None = None

    async def start(self, initial_refresh: bool = True) -> None:
        if self._subscription is None:
            self._subscription = await self.connection.subscribe(self.channel, self._on_message)
        if initial_refresh:
            await self.refresh()

    async def stop(self) -> None:
        if self._subscription is not None:
            await self._subscription.cancel()
            self._subscription = None

        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _on_message(self, message: BroadcastMessage) -> None:
        """Schedule a refresh without blocking the channel listener."""
        logger.debug(f"{message.name} on {self.channel}, refreshing leaderboard")
        self._pending = True
        if self._lock.locked():
            return
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self.refresh())

    async def refresh(self) -> LeaderboardData | None:
        """Fetch the latest snapshot and rebuild; keeps the last good board on failure."""
        if self._lock.locked():
            self._pending = True
            return self.current

        async with self._lock:
            while True:
                self._pending = False
                await self._rebuild()
                if not self._pending:
                    break

        return self.current

    async def _rebuild(self) -> None:
        try:
            snapshot = await self.source.fetch(self.event_id)
            leaderboard = build_leaderboard(snapshot)
        except Exception as e:
            logger.error(f"Leaderboard refresh for {self.event_id} failed: {e}")
            return

        self.current = leaderboard
        self.refresh_count += 1

        if self.on_update is not None:
            result = self.on_update(leaderboard)
            if inspect.isawaitable(result):
                await result


def create_live_leaderboard(
    connection: RealtimeConnection,
    source: SnapshotSource,
    event_id: str,
    settings: Settings,
    on_update: UpdateCallback | None = None,
) -> LiveLeaderboard:
    return LiveLeaderboard(
        connection,
        source,
        event_id,
        on_update=on_update,
        channel_prefix=settings.realtime.channel_prefix,
    )
