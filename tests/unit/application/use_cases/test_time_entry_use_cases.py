"""
Unit tests for the time entry use cases.
"""

from unittest.mock import AsyncMock

import pytest

from app.application.dto.time_entry_dto import (
    StartTimeEntryRequestDTO,
    CorrectTimeEntryRequestDTO,
    TimeEntryListRequestDTO,
    ActivityListRequestDTO,
)
from app.application.use_cases.time_entry_use_cases import (
    StartTimeEntryUseCase,
    PauseTimeEntryUseCase,
    ResumeTimeEntryUseCase,
    StopTimeEntryUseCase,
    CorrectTimeEntryUseCase,
    GetActiveTimeEntryUseCase,
    GetTimeEntryUseCase,
    ListTimeEntriesUseCase,
    ListActivitiesUseCase,
)
from app.domain.events.base import EventHandler
from app.domain.events.time_entry_events import TimeEntryTransitioned, TimeEntryCorrected
from app.domain.models.base import EntryBusy
from app.domain.models.caller import Caller
from app.infrastructure.cache.keys import CacheKeys


class RecordingHandler(EventHandler):
    """Collects every event it is given."""

    def __init__(self):
        self.events = []

    def can_handle(self, event):
        return True

    async def handle(self, event):
        self.events.append(event)


class TestTimeEntryLifecycleUseCases:
    """Test cases for start, pause, resume and stop."""

    @pytest.fixture(autouse=True)
    def _setup(self, services, clock, member, admin):
        self.services = services
        self.clock = clock
        self.member = member
        self.admin = admin
        self.handler = RecordingHandler()
        services.dispatcher.register_global_handler(self.handler)

    async def start(self, caller=None, **kwargs):
        return await StartTimeEntryUseCase(self.services).execute(
            caller or self.member, StartTimeEntryRequestDTO(**kwargs)
        )

    @pytest.mark.asyncio
    async def test_scenario_start_pause_resume_stop(self):
        """Test that the lifecycle through the use cases yields 140 seconds."""
        started = await self.start(description="Feature work")
        entry_id = started.data.id

        self.clock.advance(90)
        paused = await PauseTimeEntryUseCase(self.services).execute(self.member, entry_id)
        self.clock.advance(60)
        resumed = await ResumeTimeEntryUseCase(self.services).execute(self.member, entry_id)
        self.clock.advance(50)
        stopped = await StopTimeEntryUseCase(self.services).execute(self.member, entry_id)

        assert started.success and paused.success and resumed.success and stopped.success
        assert paused.data.duration == 90
        assert resumed.data.status == "running"
        assert stopped.data.status == "stopped"
        assert stopped.data.duration == 140
        assert stopped.data.end_time == self.clock.now()

    @pytest.mark.asyncio
    async def test_second_stop_fails_deterministically(self):
        """Test that stopping twice returns INVALID_TRANSITION the second time."""
        started = await self.start()
        self.clock.advance(10)

        first = await StopTimeEntryUseCase(self.services).execute(self.member, started.data.id)
        second = await StopTimeEntryUseCase(self.services).execute(self.member, started.data.id)

        assert first.success is True
        assert second.success is False
        assert second.error_code == "INVALID_TRANSITION"
        assert second.details == {"operation": "stop", "current_status": "stopped"}

    @pytest.mark.asyncio
    async def test_second_start_conflicts_with_active_entry(self):
        """Test that a second start names the active entry."""
        started = await self.start()

        result = await self.start()

        assert result.success is False
        assert result.error_code == "CONFLICT_ACTIVE_ENTRY"
        assert result.details["active_entry_id"] == started.data.id

    @pytest.mark.asyncio
    async def test_member_cannot_start_for_someone_else(self):
        """Test that acting for another user requires elevation."""
        result = await self.start(user_id="user-2")

        assert result.success is False
        assert result.error_code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_elevated_caller_can_start_for_member(self):
        """Test that an elevated caller may start another member's entry."""
        result = await self.start(caller=self.admin, user_id="user-2")

        assert result.success is True
        assert result.data.user_id == "user-2"

    @pytest.mark.asyncio
    async def test_member_cannot_stop_someone_elses_entry(self):
        """Test that transitions on other members' entries are forbidden."""
        started = await self.start(caller=self.admin, user_id="user-2")

        result = await StopTimeEntryUseCase(self.services).execute(self.member, started.data.id)

        assert result.error_code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_unknown_project_is_rejected(self):
        """Test that entries must reference a project of the tenant."""
        result = await self.start(project_id="missing")

        assert result.error_code == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_entry_of_other_tenant_is_not_found(self):
        """Test that entries are invisible across tenants."""
        started = await self.start()
        outsider = Caller(user_id=self.member.user_id, tenant_id="tenant-2", role="ADMIN")

        result = await PauseTimeEntryUseCase(self.services).execute(outsider, started.data.id)

        assert result.error_code == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_events_published_after_commit(self):
        """Test that each transition publishes one event carrying the committed entry."""
        started = await self.start()
        self.clock.advance(5)
        await PauseTimeEntryUseCase(self.services).execute(self.member, started.data.id)

        operations = [e.operation for e in self.handler.events if isinstance(e, TimeEntryTransitioned)]
        assert operations == ["start", "pause"]
        paused_event = self.handler.events[-1]
        assert paused_event.entry["status"] == "paused"
        assert paused_event.activity["type"] == "pause"

    @pytest.mark.asyncio
    async def test_rejected_transition_publishes_nothing(self):
        """Test that failed commands publish no events."""
        started = await self.start()
        self.handler.events.clear()

        await ResumeTimeEntryUseCase(self.services).execute(self.member, started.data.id)

        assert self.handler.events == []

    @pytest.mark.asyncio
    async def test_write_invalidates_stats_cache(self):
        """Test that a committed transition drops the tenant's cached stats."""
        self.services.cache.set(CacheKeys.stats(self.member.tenant_id), {"stale": True})
        self.services.cache.set(CacheKeys.stats(self.member.tenant_id, self.member.user_id), {"stale": True})

        await self.start()

        assert self.services.cache.get(CacheKeys.stats(self.member.tenant_id)) is None
        assert self.services.cache.get(CacheKeys.stats(self.member.tenant_id, self.member.user_id)) is None

    @pytest.mark.asyncio
    async def test_busy_lock_is_retryable(self):
        """Test that a lock timeout surfaces as a retryable ENTRY_BUSY."""
        self.services.guard.try_start = AsyncMock(side_effect=EntryBusy("user-1", 2.0))

        result = await self.start()

        assert result.error_code == "ENTRY_BUSY"
        assert result.metadata["retryable"] is True

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self):
        """Test that unknown failures are reported generically."""
        self.services.guard.try_start = AsyncMock(side_effect=RuntimeError("database on fire"))

        result = await self.start()

        assert result.success is False
        assert result.error_code == "INTERNAL_ERROR"
        assert "fire" not in result.error
        assert result.metadata["exception_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_caller_without_tenant_is_rejected(self):
        """Test that every use case requires an authenticated tenant member."""
        result = await StartTimeEntryUseCase(self.services).execute(
            Caller(user_id="user-1", tenant_id=""), StartTimeEntryRequestDTO()
        )

        assert result.error_code == "FORBIDDEN"


class TestCorrectTimeEntryUseCase:
    """Test cases for administrative corrections."""

    @pytest.fixture(autouse=True)
    def _setup(self, services, clock, member):
        self.services = services
        self.clock = clock
        self.member = member
        self.handler = RecordingHandler()
        services.dispatcher.register_global_handler(self.handler)

    @pytest.mark.asyncio
    async def test_correcting_active_entry_is_rejected(self):
        """Test that running entries cannot be corrected."""
        started = await StartTimeEntryUseCase(self.services).execute(self.member, StartTimeEntryRequestDTO())

        result = await CorrectTimeEntryUseCase(self.services).for_entry(started.data.id).execute(
            self.member, CorrectTimeEntryRequestDTO(duration=10)
        )

        assert result.error_code == "ENTRY_NOT_TERMINAL"

    @pytest.mark.asyncio
    async def test_correct_stopped_entry(self):
        """Test that stopped entries accept corrections and publish them."""
        started = await StartTimeEntryUseCase(self.services).execute(
            self.member, StartTimeEntryRequestDTO(description="draft")
        )
        self.clock.advance(100)
        await StopTimeEntryUseCase(self.services).execute(self.member, started.data.id)

        result = await CorrectTimeEntryUseCase(self.services).for_entry(started.data.id).execute(
            self.member, CorrectTimeEntryRequestDTO(duration=3600, description="Final")
        )

        assert result.success is True
        assert result.data.duration == 3600
        assert result.data.description == "Final"
        corrected = [e for e in self.handler.events if isinstance(e, TimeEntryCorrected)]
        assert len(corrected) == 1
        assert corrected[0].corrected_by == self.member.user_id


class TestTimeEntryQueries:
    """Test cases for reading entries and the activity feed."""

    @pytest.fixture(autouse=True)
    def _setup(self, services, clock, member, admin):
        self.services = services
        self.clock = clock
        self.member = member
        self.admin = admin

    async def start_for(self, user_id):
        return await StartTimeEntryUseCase(self.services).execute(
            self.admin, StartTimeEntryRequestDTO(user_id=user_id)
        )

    @pytest.mark.asyncio
    async def test_active_entry_has_live_duration(self):
        """Test that the active entry reports live elapsed time without persisting it."""
        await self.start_for(self.member.user_id)
        self.clock.advance(42)

        result = await GetActiveTimeEntryUseCase(self.services).execute(self.member, None)

        assert result.data.duration == 0
        assert result.data.live_duration == 42

    @pytest.mark.asyncio
    async def test_no_active_entry(self):
        """Test that the active lookup returns None when nothing runs."""
        result = await GetActiveTimeEntryUseCase(self.services).execute(self.member, None)

        assert result.success is True
        assert result.data is None

    @pytest.mark.asyncio
    async def test_member_cannot_read_other_members_entry(self):
        """Test that other members' entries are hidden from non-elevated callers."""
        started = await self.start_for("user-2")

        hidden = await GetTimeEntryUseCase(self.services).execute(self.member, started.data.id)
        visible = await GetTimeEntryUseCase(self.services).execute(self.admin, started.data.id)

        assert hidden.error_code == "ENTITY_NOT_FOUND"
        assert visible.success is True

    @pytest.mark.asyncio
    async def test_member_lists_own_entries_only(self):
        """Test list scoping for members and elevated callers."""
        await self.start_for(self.member.user_id)
        await self.start_for("user-2")

        own = await ListTimeEntriesUseCase(self.services).execute(self.member, TimeEntryListRequestDTO())
        other = await ListTimeEntriesUseCase(self.services).execute(
            self.member, TimeEntryListRequestDTO(user_id="user-2")
        )
        everyone = await ListTimeEntriesUseCase(self.services).execute(self.admin, TimeEntryListRequestDTO())

        assert [e.user_id for e in own.data.items] == [self.member.user_id]
        assert other.error_code == "FORBIDDEN"
        assert everyone.data.count == 2

    @pytest.mark.asyncio
    async def test_activity_feed_limit_falls_back_to_default(self):
        """Test that out-of-range limits use the default."""
        await self.start_for(self.member.user_id)

        request = ActivityListRequestDTO(limit="5000")
        result = await ListActivitiesUseCase(self.services).execute(self.member, request)

        assert request.limit == 100
        assert [a.type for a in result.data] == ["start"]
