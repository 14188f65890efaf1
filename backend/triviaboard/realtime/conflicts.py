"""
Score edit conflict coordinator.

Client-side state machine, one per connected operator. Each score cell
(team, round) is idle, editing or conflicted:

    idle --begin_edit--> editing --save ok / cancel--> idle
    editing --remote change--> conflicted --accept remote--> idle
                                          --override--> editing --save--> ...

Remote changes to idle cells only raise a short-lived highlight. Broadcasts
authored by this operator are ignored. Nothing here can stop two writes from
both landing; the persistence layer stays last-write-wins and this class only
surfaces what it has observed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple, Protocol

from pydantic import BaseModel, Field

from triviaboard.config import Operator, Settings
from triviaboard.ranking.validation import validate_points

from .connection import RealtimeConnection, Subscription
from .exceptions import InvalidTransitionError
from .messages import EVENT_CHANNEL_PREFIX, BroadcastMessage, ScoreDeleted, ScoreUpdated, event_channel
from .publisher import BroadcastPublisher

logger = logging.getLogger(__name__)


class CellKey(NamedTuple):
    team_id: str
    round_number: int


class CellState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    CONFLICTED = "conflicted"


class Resolution(str, Enum):
    ACCEPT_REMOTE = "accept_remote"
    OVERRIDE = "override"


class Conflict(BaseModel):
    """What the operator is shown when a peer changed the cell under edit."""

    team_id: str
    round_number: int
    remote_value: Decimal | None  # None when the peer deleted the score
    local_value: str | None
    changed_by: str
    changed_by_name: str = ""
    detected_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def remote_deleted(self) -> bool:
        return self.remote_value is None


class SaveResult(BaseModel):
    """Outcome of a score write."""

    success: bool
    old_points: Decimal | None = None
    error: str | None = None


class ScoreWriter(Protocol):
    """Persistence collaborator that writes one score cell."""

    async def save_score(
        self,
        event_id: str,
        team_id: str,
        round_number: int,
        points: Decimal,
    ) -> SaveResult: ...


@dataclass
class EditSession:
    """Local edit of one cell. Absent from the coordinator means idle."""

    key: CellKey
    state: CellState
    original_value: str | None = None
    pending_value: str | None = None
    team_name: str = ""
    conflict: Conflict | None = None


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)


class ConflictCoordinator:
    """Tracks local edits and reconciles them with peer broadcasts."""

    def __init__(
        self,
        connection: RealtimeConnection,
        event_id: str,
        operator: Operator,
        writer: ScoreWriter | None = None,
        publisher: BroadcastPublisher | None = None,
        highlight_seconds: float = 2.5,
        max_points: int = 1000,
        max_decimal_places: int = 2,
        channel_prefix: str = EVENT_CHANNEL_PREFIX,
        on_conflict: Callable[[Conflict], None] | None = None,
        on_highlight: Callable[[CellKey, bool], None] | None = None,
    ):
        self.connection = connection
        self.event_id = event_id
        self.operator = operator
        self.writer = writer
        self.publisher = publisher
        self.highlight_seconds = highlight_seconds
        self.max_points = max_points
        self.max_decimal_places = max_decimal_places
        self.channel = event_channel(event_id, channel_prefix)
        self.on_conflict = on_conflict
        self.on_highlight = on_highlight

        self._sessions: dict[CellKey, EditSession] = {}
        self._highlights: dict[CellKey, asyncio.TimerHandle] = {}
        self._subscription: Subscription | None = None

    async def __aenter__(self) -> ConflictCoordinator:
        await self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start listening on the event channel."""
        if self._subscription is not None:
            return
        self._subscription = await self.connection.subscribe(self.channel, self.handle_message)
        logger.info(f"Conflict coordinator listening on {self.channel} as {self.operator.id}")

    async def stop(self) -> None:
        """Stop listening and drop pending highlight timers."""
        if self._subscription is not None:
            await self._subscription.cancel()
            self._subscription = None

        for handle in self._highlights.values():
            handle.cancel()
        self._highlights.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def state(self, team_id: str, round_number: int) -> CellState:
        session = self._sessions.get(CellKey(team_id, round_number))
        return session.state if session else CellState.IDLE

    def session(self, team_id: str, round_number: int) -> EditSession | None:
        return self._sessions.get(CellKey(team_id, round_number))

    @property
    def conflicts(self) -> list[Conflict]:
        return [s.conflict for s in self._sessions.values() if s.conflict is not None]

    @property
    def highlighted(self) -> frozenset[CellKey]:
        return frozenset(self._highlights)

    def _require(self, key: CellKey, *states: CellState) -> EditSession:
        session = self._sessions.get(key)
        current = session.state if session else CellState.IDLE
        if session is None or current not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransitionError(
                f"Cell {key.team_id}/round {key.round_number} is {current.value}, expected {allowed}",
                cell=key,
                state=current,
            )
        return session

    # ------------------------------------------------------------------
    # Local operator actions
    # ------------------------------------------------------------------

    def begin_edit(
        self,
        team_id: str,
        round_number: int,
        current_value: Any = None,
        team_name: str = "",
    ) -> EditSession:
        """idle -> editing. Re-entering a cell already being edited is a no-op."""
        key = CellKey(team_id, round_number)
        session = self._sessions.get(key)

        if session is not None:
            if session.state == CellState.CONFLICTED:
                raise InvalidTransitionError(
                    f"Cell {team_id}/round {round_number} has an unresolved conflict",
                    cell=key,
                    state=session.state,
                )
            return session

        value = _as_text(current_value)
        session = EditSession(
            key=key,
            state=CellState.EDITING,
            original_value=value,
            pending_value=value,
            team_name=team_name,
        )
        self._sessions[key] = session
        return session

    def update_pending(self, team_id: str, round_number: int, value: Any) -> EditSession:
        """Record what the operator has typed so far."""
        session = self._require(CellKey(team_id, round_number), CellState.EDITING)
        session.pending_value = _as_text(value)
        return session

    def cancel_edit(self, team_id: str, round_number: int) -> None:
        """editing -> idle with no network effect."""
        key = CellKey(team_id, round_number)
        session = self._sessions.get(key)
        if session is None:
            return
        if session.state == CellState.CONFLICTED:
            raise InvalidTransitionError(
                f"Cell {team_id}/round {round_number} needs a conflict resolution, not a cancel",
                cell=key,
                state=session.state,
            )
        del self._sessions[key]

    def mark_saved(self, team_id: str, round_number: int) -> None:
        """
        Local write landed.

        An editing cell returns to idle. A cell that went conflicted while the
        write was in flight stays conflicted: both writes are durable and the
        operator still has to pick the value to keep.
        """
        key = CellKey(team_id, round_number)
        session = self._sessions.get(key)
        if session is None or session.state == CellState.CONFLICTED:
            return
        del self._sessions[key]

    def mark_save_failed(self, team_id: str, round_number: int) -> None:
        """
        Local write failed: keep the cell editable showing the previous value.

        A cell that went conflicted meanwhile keeps the operator's value so an
        override still writes what they typed.
        """
        session = self._sessions.get(CellKey(team_id, round_number))
        if session is None or session.state == CellState.CONFLICTED:
            return
        session.pending_value = session.original_value

    async def save(self, team_id: str, round_number: int) -> SaveResult:
        """
        Validate and write the pending value, then broadcast it.

        Raises:
            InvalidTransitionError: If the cell is not being edited
            InvalidScoreError: If the pending value is not a valid score
            RuntimeError: If no ScoreWriter was configured
        """
        key = CellKey(team_id, round_number)
        session = self._require(key, CellState.EDITING)
        if self.writer is None:
            raise RuntimeError("ConflictCoordinator needs a ScoreWriter to save")

        points = validate_points(
            session.pending_value,
            max_points=self.max_points,
            max_decimal_places=self.max_decimal_places,
        )

        try:
            result = await self.writer.save_score(self.event_id, team_id, round_number, points)
        except Exception as e:
            logger.error(f"Saving {team_id}/round {round_number} failed: {e}")
            result = SaveResult(success=False, error=str(e) or "Failed to save score")

        if not result.success:
            logger.warning(f"Save rejected for {team_id}/round {round_number}: {result.error}")
            self.mark_save_failed(team_id, round_number)
            return result

        self.mark_saved(team_id, round_number)

        if self.publisher is not None:
            await self.publisher.score_updated(
                self.event_id,
                team_id,
                round_number,
                points,
                changed_by=self.operator,
                team_name=session.team_name,
                old_points=result.old_points,
            )
        return result

    async def resolve(
        self,
        team_id: str,
        round_number: int,
        resolution: Resolution,
    ) -> SaveResult | None:
        """
        Clear a conflict with the operator's explicit choice.

        ACCEPT_REMOTE drops the local edit and returns None. OVERRIDE puts the
        cell back into editing with the operator's value and, when a writer is
        configured, saves it straight away and returns the save result.
        """
        key = CellKey(team_id, round_number)
        session = self._require(key, CellState.CONFLICTED)
        conflict = session.conflict

        if resolution == Resolution.ACCEPT_REMOTE:
            del self._sessions[key]
            logger.info(
                f"Accepted remote value {conflict.remote_value if conflict else None} "
                f"for {team_id}/round {round_number}"
            )
            return None

        session.state = CellState.EDITING
        session.conflict = None
        if conflict is not None:
            session.pending_value = conflict.local_value
            # Failed override falls back to the peer's value
            session.original_value = _as_text(conflict.remote_value)
        logger.info(f"Overriding remote change for {team_id}/round {round_number}")

        if self.writer is None:
            return None
        return await self.save(team_id, round_number)

    # ------------------------------------------------------------------
    # Broadcast listener
    # ------------------------------------------------------------------

    async def handle_message(self, message: BroadcastMessage) -> Conflict | None:
        """Inspect a broadcast against the local edit set."""
        if not isinstance(message, (ScoreUpdated, ScoreDeleted)):
            return None

        if message.changed_by == self.operator.id:
            return None

        key = CellKey(message.team_id, message.round_number)
        session = self._sessions.get(key)
        remote_value = message.points if isinstance(message, ScoreUpdated) else None

        if session is None:
            self._highlight(key)
            return None

        conflict = Conflict(
            team_id=key.team_id,
            round_number=key.round_number,
            remote_value=remote_value,
            local_value=session.pending_value,
            changed_by=message.changed_by,
            changed_by_name=message.changed_by_name,
        )
        session.state = CellState.CONFLICTED
        session.conflict = conflict

        logger.info(
            f"Conflict on {key.team_id}/round {key.round_number}: "
            f"{message.changed_by_name or message.changed_by} set {remote_value}"
        )
        if self.on_conflict is not None:
            self.on_conflict(conflict)
        return conflict

    def _highlight(self, key: CellKey) -> None:
        existing = self._highlights.pop(key, None)
        if existing is not None:
            existing.cancel()

        loop = asyncio.get_running_loop()
        self._highlights[key] = loop.call_later(self.highlight_seconds, self._clear_highlight, key)
        if self.on_highlight is not None:
            self.on_highlight(key, True)

    def _clear_highlight(self, key: CellKey) -> None:
        if self._highlights.pop(key, None) is None:
            return
        if self.on_highlight is not None:
            self.on_highlight(key, False)


def create_coordinator(
    connection: RealtimeConnection,
    event_id: str,
    settings: Settings,
    writer: ScoreWriter | None = None,
    publisher: BroadcastPublisher | None = None,
    on_conflict: Callable[[Conflict], None] | None = None,
    on_highlight: Callable[[CellKey, bool], None] | None = None,
) -> ConflictCoordinator:
    """
    Create a coordinator for the configured operator.

    Raises:
        ValueError: If no operator identity is configured
    """
    operator = settings.operator
    if operator is None:
        raise ValueError("OPERATOR_ID must be set to coordinate score edits")

    return ConflictCoordinator(
        connection,
        event_id,
        operator,
        writer=writer,
        publisher=publisher,
        highlight_seconds=settings.realtime.highlight_seconds,
        max_points=settings.leaderboard.max_points,
        max_decimal_places=settings.leaderboard.max_decimal_places,
        channel_prefix=settings.realtime.channel_prefix,
        on_conflict=on_conflict,
        on_highlight=on_highlight,
    )
