"""Broadcast message schemas.

Every message travels as an envelope ``{"name": ..., "data": {...}}`` with a
camelCase payload. Event-scoped messages go to ``event:<id>``; lifecycle
notices go to the single global channel.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Literal, Union

from pydantic import Field, ValidationError

from triviaboard.ranking.models import BaseSchema
from triviaboard.realtime.exceptions import MessageFormatError

EVENT_CHANNEL_PREFIX = "event:"
GLOBAL_CHANNEL = "global"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def event_channel(event_id: str, prefix: str = EVENT_CHANNEL_PREFIX) -> str:
    """Channel name for one event."""
    return f"{prefix}{event_id}"


def is_valid_event_id(event_id: Any) -> bool:
    return isinstance(event_id, str) and len(event_id) > 0


class ScoreUpdated(BaseSchema):
    name: ClassVar[str] = "score:updated"

    team_id: str
    team_name: str = ""
    round_number: int
    points: Decimal
    old_points: Decimal | None = None
    changed_by: str
    changed_by_name: str = ""
    timestamp: datetime = Field(default_factory=_now)


class ScoreDeleted(BaseSchema):
    name: ClassVar[str] = "score:deleted"

    team_id: str
    team_name: str = ""
    round_number: int
    changed_by: str
    changed_by_name: str = ""
    timestamp: datetime = Field(default_factory=_now)


class RoundChanged(BaseSchema):
    name: ClassVar[str] = "round:changed"

    new_round: int
    total_rounds: int
    changed_by: str
    changed_by_name: str = ""
    timestamp: datetime = Field(default_factory=_now)


class TeamAdded(BaseSchema):
    name: ClassVar[str] = "team:added"

    team_id: str
    team_name: str
    joined_round: int = 1
    timestamp: datetime = Field(default_factory=_now)


class TeamRemoved(BaseSchema):
    name: ClassVar[str] = "team:removed"

    team_id: str
    team_name: str
    timestamp: datetime = Field(default_factory=_now)


class EventStatusChanged(BaseSchema):
    name: ClassVar[str] = "event:status"

    status: Literal["completed", "archived", "active"]
    timestamp: datetime = Field(default_factory=_now)


class EventLifecycle(BaseSchema):
    """Global-channel notice used only to refresh event lists."""

    name: ClassVar[str] = "event:lifecycle"

    action: Literal["created", "started", "ended", "reopened", "archived", "deleted", "reset"]
    event_id: str
    event_name: str = ""
    changed_by: str = ""
    changed_by_name: str = ""
    timestamp: datetime = Field(default_factory=_now)


BroadcastMessage = Union[
    ScoreUpdated,
    ScoreDeleted,
    RoundChanged,
    TeamAdded,
    TeamRemoved,
    EventStatusChanged,
    EventLifecycle,
]

MESSAGE_TYPES: dict[str, type] = {
    cls.name: cls
    for cls in (
        ScoreUpdated,
        ScoreDeleted,
        RoundChanged,
        TeamAdded,
        TeamRemoved,
        EventStatusChanged,
        EventLifecycle,
    )
}


def to_envelope(message: BroadcastMessage) -> dict[str, Any]:
    """Wrap a message for the wire."""
    return {
        "name": message.name,
        "data": message.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


def parse_message(envelope: dict[str, Any]) -> BroadcastMessage:
    """
    Turn a wire envelope back into a typed message.

    Raises:
        MessageFormatError: If the name is unknown or the payload is invalid
    """
    if not isinstance(envelope, dict):
        raise MessageFormatError(f"Envelope must be an object, got {type(envelope).__name__}")

    name = envelope.get("name")
    message_cls = MESSAGE_TYPES.get(name)
    if message_cls is None:
        raise MessageFormatError(f"Unknown message name: {name!r}")

    try:
        return message_cls.model_validate(envelope.get("data") or {})
    except ValidationError as e:
        raise MessageFormatError(f"Invalid {name} payload: {e}") from e
