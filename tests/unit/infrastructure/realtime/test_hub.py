"""
Unit tests for RealtimeHub sessions and the server-sent events stream.
"""

import json

import pytest

from app.application.use_cases.stats_use_cases import StatsReader
from app.infrastructure.realtime.broadcaster import RealtimeBroadcaster, TIME_ENTRY_UPDATE, USER_CONNECTED
from app.infrastructure.realtime.hub import RealtimeHub, format_sse
from app.infrastructure.realtime.registry import ConnectionRegistry, tenant_room


def parse_frame(frame: str):
    event_line, data_line, _, _ = frame.split("\n")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


async def connected():
    return False


class TestRealtimeHub:
    """Test cases for RealtimeHub."""

    @pytest.fixture(autouse=True)
    def _setup(self, services, clock):
        self.services = services
        self.registry = ConnectionRegistry()
        self.broadcaster = RealtimeBroadcaster(self.registry, clock)
        self.hub = RealtimeHub(
            registry=self.registry,
            broadcaster=self.broadcaster,
            stats_reader=StatsReader(services),
            is_elevated=services.is_elevated,
            sse_stats_interval=60.0,
        )

    def test_format_sse(self):
        """Test the server-sent event frame layout."""
        assert format_sse("stats_update", {"a": 1}) == 'event: stats_update\ndata: {"a": 1}\n\n'

    def test_open_session_announces_presence(self, member, admin):
        """Test that connecting registers the session and tells the tenant."""
        watcher = self.hub.open_session(admin)

        session = self.hub.open_session(member)

        assert session.elevated is False
        assert watcher.elevated is True
        assert self.registry.count(tenant_room(member.tenant_id)) == 2
        announced = [watcher.queue.get_nowait(), watcher.queue.get_nowait()]
        assert announced[-1]["event"] == USER_CONNECTED
        assert announced[-1]["data"]["user_id"] == member.user_id

    def test_close_session_announces_departure(self, member, admin):
        """Test that disconnecting unregisters the session and tells the tenant."""
        watcher = self.hub.open_session(admin)
        session = self.hub.open_session(member)

        self.hub.close_session(session)

        assert session.closed is True
        assert self.registry.count(tenant_room(member.tenant_id)) == 1
        events = []
        while not watcher.queue.empty():
            events.append(watcher.queue.get_nowait()["event"])
        assert events[-1] == "user:disconnected"

    @pytest.mark.asyncio
    async def test_stats_payload_scope(self, member, admin):
        """Test that members get personal stats and elevated callers get the tenant's."""
        personal = await self.hub.stats_payload(member)
        tenant_wide = await self.hub.stats_payload(admin)

        assert personal["scope"] == "user"
        assert personal["user_id"] == member.user_id
        assert tenant_wide["scope"] == "tenant"

    @pytest.mark.asyncio
    async def test_event_stream_starts_with_stats(self, member):
        """Test that the stream opens with a stats frame."""
        frames = [frame async for frame in self.hub.event_stream(member, connected, max_frames=1)]

        event, data = parse_frame(frames[0])
        assert event == "stats_update"
        assert data["scope"] == "user"
        assert "timestamp" in data
        assert self.registry.count() == 0

    @pytest.mark.asyncio
    async def test_event_stream_relays_broadcasts(self, member):
        """Test that events broadcast to the tenant are streamed in order."""
        stream = self.hub.event_stream(member, connected, max_frames=3)

        first = await stream.__anext__()
        self.broadcaster.broadcast(TIME_ENTRY_UPDATE, {"entry": {"id": "e1"}}, member.tenant_id)
        second = await stream.__anext__()
        third = await stream.__anext__()
        await stream.aclose()

        assert parse_frame(first)[0] == "stats_update"
        assert parse_frame(second)[0] == USER_CONNECTED
        event, data = parse_frame(third)
        assert event == TIME_ENTRY_UPDATE
        assert data["entry"] == {"id": "e1"}
        assert self.registry.count() == 0

    @pytest.mark.asyncio
    async def test_event_stream_stops_on_disconnect(self, member):
        """Test that a disconnected client ends the stream and frees the session."""

        async def gone():
            return True

        frames = [frame async for frame in self.hub.event_stream(member, gone)]

        assert frames == []
        assert self.registry.count() == 0
