"""Realtime broadcast channel, publisher and edit conflict coordinator."""

from .adapter import BroadcastAdapter, InMemoryBroker
from .conflicts import (
    CellKey,
    CellState,
    Conflict,
    ConflictCoordinator,
    EditSession,
    Resolution,
    SaveResult,
    ScoreWriter,
    create_coordinator,
)
from .connection import RealtimeConnection, Subscription, create_connection
from .exceptions import (
    ConnectionClosedError,
    InvalidTransitionError,
    MessageFormatError,
    PublishError,
    RealtimeError,
)
from .live import LiveLeaderboard, SnapshotSource, create_live_leaderboard
from .messages import (
    GLOBAL_CHANNEL,
    BroadcastMessage,
    EventLifecycle,
    EventStatusChanged,
    RoundChanged,
    ScoreDeleted,
    ScoreUpdated,
    TeamAdded,
    TeamRemoved,
    event_channel,
    parse_message,
    to_envelope,
)
from .publisher import BroadcastPublisher, create_publisher

__all__ = [
    "BroadcastAdapter",
    "InMemoryBroker",
    "RealtimeConnection",
    "Subscription",
    "create_connection",
    "BroadcastPublisher",
    "create_publisher",
    "ConflictCoordinator",
    "create_coordinator",
    "CellKey",
    "CellState",
    "Conflict",
    "EditSession",
    "Resolution",
    "SaveResult",
    "ScoreWriter",
    "LiveLeaderboard",
    "SnapshotSource",
    "create_live_leaderboard",
    "GLOBAL_CHANNEL",
    "BroadcastMessage",
    "ScoreUpdated",
    "ScoreDeleted",
    "RoundChanged",
    "TeamAdded",
    "TeamRemoved",
    "EventStatusChanged",
    "EventLifecycle",
    "event_channel",
    "parse_message",
    "to_envelope",
    "RealtimeError",
    "ConnectionClosedError",
    "PublishError",
    "MessageFormatError",
    "InvalidTransitionError",
]
