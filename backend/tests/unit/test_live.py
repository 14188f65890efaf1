"""
Unit Tests: Live Leaderboard

Test cases:
- Inbound broadcast triggers a full recompute from a fresh snapshot
- Messages arriving during a refresh coalesce into one follow-up
- Fetch failures keep the previous leaderboard
"""

import asyncio

from triviaboard.realtime import InMemoryBroker, LiveLeaderboard, RealtimeConnection, TeamAdded


class FakeSource:
    def __init__(self, snapshot, gate: asyncio.Event | None = None):
        self.snapshot = snapshot
        self.gate = gate
        self.fail = False
        self.calls = 0

    async def fetch(self, event_id):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ConnectionError("persistence unavailable")
        return self.snapshot


async def wait_for(predicate, timeout: float = 1.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def test_broadcast_triggers_recompute(snapshot):
    async def run():
        updates = []
        async with RealtimeConnection(InMemoryBroker()) as connection:
            live = LiveLeaderboard(connection, FakeSource(snapshot), "evt-1", on_update=updates.append)
            await live.start()

            assert live.refresh_count == 1
            assert live.current.rankings[0].team.name == "Beta"

            await connection.publish("event:evt-1", TeamAdded(team_id="t9", team_name="Late"))
            await wait_for(lambda: live.refresh_count == 2)

            await live.stop()

        assert len(updates) == 2

    asyncio.run(run())


def test_messages_during_refresh_coalesce(snapshot):
    async def run():
        gate = asyncio.Event()
        source = FakeSource(snapshot, gate=gate)
        live = LiveLeaderboard(RealtimeConnection(InMemoryBroker()), source, "evt-1")

        first = asyncio.create_task(live.refresh())
        await wait_for(lambda: source.calls == 1)

        # Three more changes while the first fetch is still in flight
        for _ in range(3):
            assert await live.refresh() is None

        gate.set()
        result = await first

        assert result is live.current
        assert source.calls == 2
        assert live.refresh_count == 2

    asyncio.run(run())


def test_fetch_failure_keeps_previous_board(snapshot):
    async def run():
        source = FakeSource(snapshot)
        live = LiveLeaderboard(RealtimeConnection(InMemoryBroker()), source, "evt-1")

        board = await live.refresh()
        source.fail = True
        again = await live.refresh()

        assert again is board
        assert live.refresh_count == 1

    asyncio.run(run())


def test_incomplete_snapshot_keeps_previous_board(snapshot, snapshot_factory):
    async def run():
        source = FakeSource(snapshot)
        live = LiveLeaderboard(RealtimeConnection(InMemoryBroker()), source, "evt-1")
        board = await live.refresh()

        broken = snapshot_factory()
        broken.scores = None
        source.snapshot = broken

        assert await live.refresh() is board

    asyncio.run(run())


def test_channel_burst_during_refresh_coalesces(snapshot):
    """Several broadcasts while a fetch is in flight cause exactly one follow-up."""

    async def run():
        source = FakeSource(snapshot)
        async with RealtimeConnection(InMemoryBroker()) as connection:
            live = LiveLeaderboard(connection, source, "evt-1")
            await live.start()
            assert source.calls == 1

            source.gate = asyncio.Event()
            await connection.publish("event:evt-1", TeamAdded(team_id="t1", team_name="One"))
            await wait_for(lambda: source.calls == 2)

            for i in range(3):
                await connection.publish("event:evt-1", TeamAdded(team_id=f"x{i}", team_name="X"))
            await asyncio.sleep(0.02)

            source.gate.set()
            await wait_for(lambda: live.refresh_count == 3)
            await asyncio.sleep(0.02)

            assert source.calls == 3
            assert live.refresh_count == 3
            await live.stop()

    asyncio.run(run())
