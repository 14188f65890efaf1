"""Broadcast publisher used after successful writes.

Publishing is best effort: a failed broadcast only delays live updates, the
write itself already succeeded, so failures are logged and swallowed.
"""

import logging
from decimal import Decimal

from triviaboard.config import Operator, Settings
from triviaboard.realtime.connection import RealtimeConnection
from triviaboard.realtime.messages import (
    EVENT_CHANNEL_PREFIX,
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
    is_valid_event_id,
)

logger = logging.getLogger(__name__)


class BroadcastPublisher:
    """High-level publisher for event and lifecycle notices."""

    def __init__(
        self,
        connection: RealtimeConnection,
        channel_prefix: str = EVENT_CHANNEL_PREFIX,
        global_channel: str = GLOBAL_CHANNEL,
    ):
        self.connection = connection
        self.channel_prefix = channel_prefix
        self.global_channel = global_channel

    async def _send(self, channel: str, message: BroadcastMessage) -> bool:
        try:
            await self.connection.publish(channel, message)
        except Exception as e:
            logger.error(f"Publish of {message.name} to {channel} failed: {e}")
            return False

        logger.info(f"Published {message.name} to {channel}")
        return True

    async def publish(self, event_id: str, message: BroadcastMessage) -> bool:
        """Publish to an event channel. Returns False instead of raising."""
        if not is_valid_event_id(event_id):
            logger.warning(f"Not publishing {message.name}: invalid event id {event_id!r}")
            return False
        return await self._send(event_channel(event_id, self.channel_prefix), message)

    async def score_updated(
        self,
        event_id: str,
        team_id: str,
        round_number: int,
        points: Decimal,
        changed_by: Operator,
        team_name: str = "",
        old_points: Decimal | None = None,
    ) -> bool:
        return await self.publish(
            event_id,
            ScoreUpdated(
                team_id=team_id,
                team_name=team_name,
                round_number=round_number,
                points=points,
                old_points=old_points,
                changed_by=changed_by.id,
                changed_by_name=changed_by.name,
            ),
        )

    async def score_deleted(
        self,
        event_id: str,
        team_id: str,
        round_number: int,
        changed_by: Operator,
        team_name: str = "",
    ) -> bool:
        return await self.publish(
            event_id,
            ScoreDeleted(
                team_id=team_id,
                team_name=team_name,
                round_number=round_number,
                changed_by=changed_by.id,
                changed_by_name=changed_by.name,
            ),
        )

    async def round_changed(
        self, event_id: str, new_round: int, total_rounds: int, changed_by: Operator
    ) -> bool:
        return await self.publish(
            event_id,
            RoundChanged(
                new_round=new_round,
                total_rounds=total_rounds,
                changed_by=changed_by.id,
                changed_by_name=changed_by.name,
            ),
        )

    async def team_added(
        self, event_id: str, team_id: str, team_name: str, joined_round: int = 1
    ) -> bool:
        return await self.publish(
            event_id,
            TeamAdded(team_id=team_id, team_name=team_name, joined_round=joined_round),
        )

    async def team_removed(self, event_id: str, team_id: str, team_name: str) -> bool:
        return await self.publish(
            event_id, TeamRemoved(team_id=team_id, team_name=team_name)
        )

    async def status_changed(self, event_id: str, status: str) -> bool:
        return await self.publish(event_id, EventStatusChanged(status=status))

    async def lifecycle(
        self,
        action: str,
        event_id: str,
        event_name: str,
        changed_by: Operator,
    ) -> bool:
        """Notify dashboards on the global channel."""
        return await self._send(
            self.global_channel,
            EventLifecycle(
                action=action,
                event_id=event_id,
                event_name=event_name,
                changed_by=changed_by.id,
                changed_by_name=changed_by.name,
            ),
        )


def create_publisher(connection: RealtimeConnection, settings: Settings) -> BroadcastPublisher:
    """Create a publisher using the configured channel names."""
    return BroadcastPublisher(
        connection,
        channel_prefix=settings.realtime.channel_prefix,
        global_channel=settings.realtime.global_channel,
    )
