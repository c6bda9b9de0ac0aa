"""
Unit tests for the SQLAlchemy time entry repository.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.domain.models.base import (
    ConflictActiveEntry,
    EntityNotFoundError,
    IntegrityViolation,
    InvalidTransition,
    TransientStoreFailure,
)
from app.domain.models.time_entry import TimeEntry, TimeEntryStatus
from app.domain.services.timer_service import TimerService
from app.infrastructure.db.database import make_engine, make_session_factory, session_scope
from app.infrastructure.mappers.time_entry_mapper import TimeEntryMapper
from app.infrastructure.repositories.time_entry_repository import SQLAlchemyTimeEntryRepository


TENANT = "tenant-1"
T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


class TestSQLAlchemyTimeEntryRepository:
    """Test cases for the time entry store."""

    @pytest.fixture(autouse=True)
    def _setup(self, session_factory):
        self.session_factory = session_factory
        self.repository = SQLAlchemyTimeEntryRepository(session_factory)
        self.timer = TimerService()

    def start(self, user_id: str = "u1", now: datetime = T0, tenant_id: str = TENANT, **kwargs) -> TimeEntry:
        entry, activity = self.timer.start(tenant_id, user_id, now, **kwargs)
        return self.repository.create_if_no_active(entry, activity)

    def stop(self, entry: TimeEntry, now: datetime) -> TimeEntry:
        return self.repository.update_entry(
            entry.tenant_id, entry.id, lambda e: self.timer.stop(e, now)
        )

    def test_create_and_read_back(self):
        """Test that a started entry round-trips with UTC timestamps."""
        entry = self.start(project_id="p1", description="Coding")

        stored = self.repository.get(TENANT, entry.id)

        assert stored.status == TimeEntryStatus.RUNNING
        assert stored.start_time == T0
        assert stored.start_time.tzinfo is not None
        assert stored.project_id == "p1"
        assert stored.description == "Coding"

    def test_offset_timestamps_are_stored_as_utc(self):
        """Test that non-UTC offsets keep their instant through the store."""
        plus_five = timezone(timedelta(hours=5))
        entry = self.start()

        self.stop(entry, at(120).astimezone(plus_five))
        stored = self.repository.get(TENANT, entry.id)

        assert stored.end_time == at(120)
        assert stored.end_time.utcoffset() == timedelta(0)

    def test_second_start_conflicts(self):
        """Test that a second start names the active entry and creates nothing."""
        first = self.start()
        entry, activity = self.timer.start(TENANT, "u1", at(60))

        with pytest.raises(ConflictActiveEntry) as exc_info:
            self.repository.create_if_no_active(entry, activity)

        assert exc_info.value.active_entry_id == first.id
        assert self.repository.get(TENANT, entry.id) is None
        assert len(self.repository.list_activities(TENANT)) == 1

    def test_paused_entry_also_blocks_start(self):
        """Test that a paused entry counts as active."""
        first = self.start()
        self.repository.update_entry(TENANT, first.id, lambda e: self.timer.pause(e, at(30)))
        entry, activity = self.timer.start(TENANT, "u1", at(60))

        with pytest.raises(ConflictActiveEntry):
            self.repository.create_if_no_active(entry, activity)

    def test_other_tenant_is_independent(self):
        """Test that the same user id may run an entry in another tenant."""
        self.start()

        other = self.start(tenant_id="tenant-2")

        assert self.repository.find_active("tenant-2", "u1").id == other.id
        assert self.repository.get(TENANT, other.id) is None

    def test_lost_race_maps_unique_index_to_conflict(self):
        """Test that the unique index rejection becomes ConflictActiveEntry."""
        first = self.start()
        original = self.repository._active_models
        calls = []

        def miss_first_check(db, tenant_id, user_id):
            calls.append(user_id)
            if len(calls) == 1:
                return []
            return original(db, tenant_id, user_id)

        self.repository._active_models = miss_first_check
        entry, activity = self.timer.start(TENANT, "u1", at(5))

        with pytest.raises(ConflictActiveEntry) as exc_info:
            self.repository.create_if_no_active(entry, activity)

        assert exc_info.value.active_entry_id == first.id

    def test_unique_index_rejects_second_active_row(self):
        """Test that the store itself refuses two active rows for one user."""
        mapper = TimeEntryMapper()
        first, _ = self.timer.start(TENANT, "u1", T0)
        second, _ = self.timer.start(TENANT, "u1", at(10))

        with pytest.raises(IntegrityError):
            with session_scope(self.session_factory) as db:
                db.add(mapper.domain_to_model(first))
                db.add(mapper.domain_to_model(second))
                db.flush()

    def test_multiple_active_entries_raise_integrity_violation(self, caplog):
        """Test that corrupt data is reported, logged critically and left alone."""
        with session_scope(self.session_factory) as db:
            db.execute(text("DROP INDEX uq_time_entries_one_active_per_user"))

        mapper = TimeEntryMapper()
        first, _ = self.timer.start(TENANT, "u1", T0)
        second, _ = self.timer.start(TENANT, "u1", at(10))
        with session_scope(self.session_factory) as db:
            db.add(mapper.domain_to_model(first))
            db.add(mapper.domain_to_model(second))

        with caplog.at_level(logging.CRITICAL):
            with pytest.raises(IntegrityViolation) as exc_info:
                self.repository.find_active(TENANT, "u1")

        assert set(exc_info.value.entry_ids) == {first.id, second.id}
        assert "INTEGRITY ALERT" in caplog.text
        assert self.repository.get(TENANT, first.id).status == TimeEntryStatus.RUNNING
        assert self.repository.get(TENANT, second.id).status == TimeEntryStatus.RUNNING

    def test_update_entry_appends_activity(self):
        """Test that a transition and its activity are written together."""
        entry = self.start()

        stopped = self.stop(entry, at(120))

        assert stopped.status == TimeEntryStatus.STOPPED
        assert stopped.duration == 120
        assert self.repository.get(TENANT, entry.id).end_time == at(120)
        assert [a.type.value for a in self.repository.list_activities(TENANT)] == ["stop", "start"]

    def test_failed_mutation_rolls_back(self):
        """Test that a rejected transition leaves the stored entry untouched."""
        entry = self.start()
        self.stop(entry, at(10))

        with pytest.raises(InvalidTransition):
            self.stop(entry, at(20))

        stored = self.repository.get(TENANT, entry.id)
        assert stored.duration == 10
        assert len(self.repository.list_activities(TENANT)) == 2

    def test_update_missing_entry(self):
        """Test that updating an unknown entry raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            self.repository.update_entry(TENANT, "missing", lambda e: None)

    def test_list_entries_filters_and_pages(self):
        """Test listing by user and status, newest start first."""
        first = self.start("u1", T0)
        self.stop(first, at(60))
        second = self.start("u1", at(100))
        self.start("u2", at(50))

        mine = self.repository.list_entries(TENANT, user_id="u1")
        running = self.repository.list_entries(TENANT, status=TimeEntryStatus.RUNNING)
        page = self.repository.list_entries(TENANT, limit=1, offset=1)

        assert [e.id for e in mine] == [second.id, first.id]
        assert {e.user_id for e in running} == {"u1", "u2"}
        assert len(page) == 1

    def test_summarize_splits_persisted_and_running(self):
        """Test that summaries hold persisted totals and running slices separately."""
        first = self.start("u1", T0 - timedelta(days=1))
        self.stop(first, T0 - timedelta(days=1) + timedelta(seconds=300))
        second = self.start("u1", T0)
        self.repository.update_entry(TENANT, second.id, lambda e: self.timer.pause(e, at(40)))
        self.start("u2", at(10))

        summary = self.repository.summarize(TENANT, day_start=datetime(2024, 1, 15, tzinfo=timezone.utc))
        personal = self.repository.summarize(TENANT, day_start=datetime(2024, 1, 15, tzinfo=timezone.utc), user_id="u1")

        assert summary.persisted_total_seconds == 340
        assert summary.persisted_today_seconds == 40
        assert [s.user_id for s in summary.running] == ["u2"]
        assert summary.running[0].last_resumed_at == at(10)
        assert personal.persisted_total_seconds == 340
        assert personal.running == []

    def test_activity_feed_respects_limit(self):
        """Test that the feed is capped at the requested size."""
        entry = self.start()
        self.repository.update_entry(TENANT, entry.id, lambda e: self.timer.pause(e, at(10)))
        self.repository.update_entry(TENANT, entry.id, lambda e: self.timer.resume(e, at(20)))

        feed = self.repository.list_activities(TENANT, limit=2)

        assert [a.type.value for a in feed] == ["resume", "pause"]


class TestStoreUnavailable:
    """Test cases for an unreachable store."""

    def test_operational_error_becomes_transient_failure(self, tmp_path):
        """Test that connection failures surface as a retryable error."""
        engine = make_engine(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
        repository = SQLAlchemyTimeEntryRepository(make_session_factory(engine))

        with pytest.raises(TransientStoreFailure) as exc_info:
            repository.find_active(TENANT, "u1")

        assert exc_info.value.retryable is True
        engine.dispose()
