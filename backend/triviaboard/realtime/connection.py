"""Explicitly owned realtime connection handle."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from triviaboard.config import Settings

from .adapter import BroadcastAdapter, InMemoryBroker
from .exceptions import ConnectionClosedError, MessageFormatError, PublishError, RealtimeError
from .messages import BroadcastMessage, parse_message, to_envelope

logger = logging.getLogger(__name__)

MessageHandler = Callable[[BroadcastMessage], Awaitable[None] | None]


class Subscription:
    """Listener task for one channel/handler pair."""

    def __init__(self, channel: str, task: asyncio.Task):
        self.channel = channel
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def cancel(self) -> None:
        if self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class RealtimeConnection:
    """
    Connection to the broadcast channels.

    Created by the owner, opened once, passed to whoever needs to publish or
    listen, and closed by the owner. Use as an async context manager:

        async with RealtimeConnection(InMemoryBroker()) as connection:
            await connection.subscribe("event:42", handler)
    """

    def __init__(self, adapter: BroadcastAdapter, client_id: str = "client"):
        self.adapter = adapter
        self.client_id = client_id
        self._open = False
        self._subscriptions: list[Subscription] = []

    async def __aenter__(self) -> RealtimeConnection:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self._open = True
        logger.info(f"Opened realtime connection ({self.client_id})")

    async def close(self) -> None:
        """Stop every listener and release the adapter."""
        if not self._open:
            return
        self._open = False

        for subscription in self._subscriptions:
            await subscription.cancel()
        self._subscriptions.clear()

        await self.adapter.close()
        logger.info(f"Closed realtime connection ({self.client_id})")

    def _require_open(self) -> None:
        if not self._open:
            raise ConnectionClosedError(
                "RealtimeConnection must be opened before use"
            )

    async def subscribe(self, channel: str, handler: MessageHandler) -> Subscription:
        """Start delivering messages on channel to handler."""
        self._require_open()

        messages = await self.adapter.subscribe(channel)
        task = asyncio.create_task(self._listen(channel, messages, handler))
        subscription = Subscription(channel, task)
        self._subscriptions.append(subscription)

        logger.debug(f"Subscribed to {channel}")
        return subscription

    async def _listen(
        self,
        channel: str,
        messages: AsyncIterator[dict[str, Any]],
        handler: MessageHandler,
    ) -> None:
        async for envelope in messages:
            try:
                message = parse_message(envelope)
            except MessageFormatError as e:
                logger.warning(f"Ignoring message on {channel}: {e}")
                continue

            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Handler for {message.name} on {channel} failed: {e}")

    async def publish(self, channel: str, message: BroadcastMessage | dict[str, Any]) -> None:
        """
        Publish a message.

        Raises:
            ConnectionClosedError: If the connection is not open
            PublishError: If the adapter fails to deliver
        """
        self._require_open()

        envelope = message if isinstance(message, dict) else to_envelope(message)
        try:
            await self.adapter.publish(channel, envelope)
        except RealtimeError:
            raise
        except Exception as e:
            raise PublishError(f"Publish to {channel} failed: {e}", channel=channel) from e


def create_connection(settings: Settings) -> RealtimeConnection:
    """Create an unopened connection over an in-process broker."""
    adapter = InMemoryBroker(queue_size=settings.realtime.queue_size)
    return RealtimeConnection(adapter, client_id=settings.operator_id or "client")
