"""
Unit Tests: Realtime Connection and In-Memory Broker

Test cases:
- Explicit open/close lifetime
- Delivery to channel subscribers only
- Bad messages and failing handlers do not stop a listener
- Slow subscribers lose messages instead of blocking publishers
"""

import asyncio

import pytest

from triviaboard.realtime import (
    ConnectionClosedError,
    InMemoryBroker,
    MessageFormatError,
    RealtimeConnection,
    TeamAdded,
)


async def wait_for(predicate, timeout: float = 1.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def test_closed_connection_rejects_use():
    async def run():
        connection = RealtimeConnection(InMemoryBroker())

        with pytest.raises(ConnectionClosedError):
            await connection.publish("event:1", TeamAdded(team_id="t", team_name="T"))
        with pytest.raises(ConnectionClosedError):
            await connection.subscribe("event:1", lambda m: None)

    asyncio.run(run())


def test_delivers_only_to_channel_subscribers():
    async def run():
        received: dict[str, list] = {"event:1": [], "event:2": []}

        async with RealtimeConnection(InMemoryBroker()) as connection:
            await connection.subscribe("event:1", received["event:1"].append)
            await connection.subscribe("event:2", received["event:2"].append)

            await connection.publish("event:1", TeamAdded(team_id="t1", team_name="Quizzly Bears"))
            await wait_for(lambda: received["event:1"])
            await asyncio.sleep(0.01)

        assert [m.team_name for m in received["event:1"]] == ["Quizzly Bears"]
        assert received["event:2"] == []

    asyncio.run(run())


def test_listener_survives_bad_message_and_handler_error():
    async def run():
        seen = []

        async def handler(message):
            seen.append(message.team_id)
            if message.team_id == "boom":
                raise RuntimeError("handler failed")

        async with RealtimeConnection(InMemoryBroker()) as connection:
            subscription = await connection.subscribe("event:1", handler)

            await connection.publish("event:1", {"name": "nope", "data": {}})
            await connection.publish("event:1", TeamAdded(team_id="boom", team_name="B"))
            await connection.publish("event:1", TeamAdded(team_id="ok", team_name="O"))
            await wait_for(lambda: len(seen) == 2)

            assert seen == ["boom", "ok"]
            assert subscription.active

    asyncio.run(run())


def test_close_stops_subscriptions():
    async def run():
        connection = RealtimeConnection(InMemoryBroker())
        await connection.open()
        subscription = await connection.subscribe("event:1", lambda m: None)

        await connection.close()

        assert not connection.is_open
        assert not subscription.active

    asyncio.run(run())


def test_broker_rejects_envelope_without_name():
    async def run():
        broker = InMemoryBroker()
        with pytest.raises(MessageFormatError):
            await broker.publish("event:1", {"data": {}})

    asyncio.run(run())


def test_slow_subscriber_drops_messages():
    async def run():
        broker = InMemoryBroker(queue_size=2)
        messages = await broker.subscribe("event:1")
        assert broker.subscriber_count("event:1") == 1

        for i in range(5):
            await broker.publish("event:1", {"name": "team:added", "data": {"teamId": str(i)}})

        first = await messages.__anext__()
        second = await messages.__anext__()
        assert [first["data"]["teamId"], second["data"]["teamId"]] == ["0", "1"]

        await broker.close()
        assert broker.subscriber_count("event:1") == 0

    asyncio.run(run())
