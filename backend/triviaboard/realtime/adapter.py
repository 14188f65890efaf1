"""
Broadcast adapter interface and in-memory implementation.

Adapters are delivery-only: the persistence layer stays the source of truth
and nothing here guarantees exactly-once delivery.
"""

import abc
import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from triviaboard.realtime.exceptions import MessageFormatError

logger = logging.getLogger(__name__)


class BroadcastAdapter(abc.ABC):
    """Abstract base class for broadcast transports."""

    @abc.abstractmethod
    async def publish(self, channel: str, envelope: dict[str, Any]) -> None:
        """
        Publish an envelope to a channel.

        Args:
            channel: Channel name (e.g., "event:42")
            envelope: {"name": ..., "data": {...}}
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(self, channel: str) -> AsyncIterator[dict[str, Any]]:
        """
        Register interest in a channel.

        The subscription is live once this coroutine returns; the returned
        iterator yields parsed envelopes until the adapter closes.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def close(self) -> None:
        """Close adapter connections."""
        raise NotImplementedError

    def _serialize_message(self, envelope: dict[str, Any]) -> str:
        """Serialize deterministically (sorted keys, compact)."""
        return json.dumps(envelope, sort_keys=True, separators=(",", ":"))

    def validate_envelope(self, envelope: dict[str, Any]) -> None:
        missing = [f for f in ("name", "data") if f not in envelope]
        if missing:
            raise MessageFormatError(f"Envelope missing required fields: {missing}")


class InMemoryBroker(BroadcastAdapter):
    """
    Process-local broadcast adapter.

    Uses one bounded asyncio.Queue per subscriber. A subscriber that falls
    behind loses messages rather than blocking publishers.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._channels: dict[str, set[asyncio.Queue]] = {}

    async def publish(self, channel: str, envelope: dict[str, Any]) -> None:
        self.validate_envelope(envelope)
        serialized = self._serialize_message(envelope)

        # Copy to avoid modification during iteration
        for queue in list(self._channels.get(channel, ())):
            try:
                queue.put_nowait(serialized)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {envelope['name']} on {channel}: subscriber queue full")

    async def subscribe(self, channel: str) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._channels.setdefault(channel, set()).add(queue)
        return self._iterate(channel, queue)

    async def _iterate(self, channel: str, queue: asyncio.Queue) -> AsyncIterator[dict[str, Any]]:
        try:
            while True:
                serialized = await queue.get()
                if serialized is None:
                    return
                try:
                    yield json.loads(serialized)
                except json.JSONDecodeError:
                    # Skip corrupted messages
                    continue
        finally:
            subscribers = self._channels.get(channel)
            if subscribers is not None:
                subscribers.discard(queue)

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    async def close(self) -> None:
        """Signal every subscriber to stop and forget all channels."""
        for queues in self._channels.values():
            for queue in queues:
                try:
                    queue.put_nowait(None)
                except asyncio.QueueFull:
                    logger.debug("Subscriber queue full on close")
        self._channels.clear()
