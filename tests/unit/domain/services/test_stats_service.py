"""
Unit tests for dashboard statistics aggregation.
"""

from datetime import date, datetime, timedelta, timezone

from app.domain.repositories.time_entry_repository import EntrySummary, RunningSlice
from app.domain.services.stats_service import StatsAggregator, StatsScope, StatsSnapshot


T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def running(user_id: str, resumed_seconds_ago: int, now: datetime, started=None) -> RunningSlice:
    resumed = now - timedelta(seconds=resumed_seconds_ago)
    return RunningSlice(
        entry_id=f"entry-{user_id}",
        user_id=user_id,
        start_time=started or resumed,
        last_resumed_at=resumed,
    )


class TestStatsAggregator:
    """Test cases for StatsAggregator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.aggregator = StatsAggregator()

    def test_three_running_users(self):
        """Test that three users accruing 10, 20 and 30 seconds give 3 active users and 60 seconds."""
        summary = EntrySummary(
            running=[running("u1", 10, T0), running("u2", 20, T0), running("u3", 30, T0)]
        )
        snapshot = self.aggregator.snapshot(summary, active_projects=2, now=T0)

        stats = self.aggregator.compute(snapshot, T0)

        assert stats.active_users == 3
        assert stats.total_seconds == 60
        assert stats.today_seconds == 60
        assert stats.active_projects == 2
        assert stats.computed_at == T0

    def test_live_time_grows_between_reads(self):
        """Test that a cached snapshot keeps accruing running time."""
        summary = EntrySummary(persisted_total_seconds=100, running=[running("u1", 0, T0)])
        snapshot = self.aggregator.snapshot(summary, active_projects=0, now=T0)

        later = self.aggregator.compute(snapshot, T0 + timedelta(seconds=90))

        assert later.total_seconds == 190

    def test_active_users_are_distinct(self):
        """Test that a user is counted once."""
        summary = EntrySummary(running=[running("u1", 5, T0), running("u1", 5, T0)])
        snapshot = self.aggregator.snapshot(summary, 0, T0)

        assert self.aggregator.compute(snapshot, T0).active_users == 1

    def test_today_excludes_entries_started_before_midnight(self):
        """Test that running time of an entry started yesterday is not counted as today."""
        yesterday = T0 - timedelta(days=1)
        summary = EntrySummary(
            persisted_total_seconds=500,
            persisted_today_seconds=200,
            running=[running("u1", 60, T0, started=yesterday), running("u2", 30, T0)],
        )
        snapshot = self.aggregator.snapshot(summary, 0, T0)

        stats = self.aggregator.compute(snapshot, T0)

        assert stats.total_seconds == 590
        assert stats.today_seconds == 230

    def test_day_start_in_configured_timezone(self):
        """Test that the day boundary follows the configured zone."""
        aggregator = StatsAggregator(timezone_name="America/New_York")

        start = aggregator.day_start(T0)

        assert start == datetime(2024, 1, 15, 5, 0, tzinfo=timezone.utc)
        assert aggregator.current_day(datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc)) == date(2024, 1, 14)

    def test_snapshot_from_previous_day_is_not_current(self):
        """Test that a snapshot taken yesterday must be rebuilt."""
        snapshot = self.aggregator.snapshot(EntrySummary(), 0, T0 - timedelta(days=1))

        assert self.aggregator.is_current(snapshot, T0) is False
        assert self.aggregator.is_current(self.aggregator.snapshot(EntrySummary(), 0, T0), T0) is True

    def test_hours_are_rounded(self):
        """Test the derived hour totals."""
        snapshot = StatsSnapshot(
            day=T0.date(),
            persisted_total_seconds=5400,
            persisted_today_seconds=1800,
            active_projects=1,
        )

        stats = self.aggregator.compute(snapshot, T0)

        assert stats.total_hours == 1.5
        assert stats.today_hours == 0.5


class TestStatsSnapshot:
    """Test cases for the cached snapshot form."""

    def test_dict_form_is_restorable(self):
        """Test that a snapshot survives the cache's JSON form."""
        snapshot = StatsSnapshot(
            day=T0.date(),
            persisted_total_seconds=10,
            persisted_today_seconds=5,
            active_projects=3,
            running=[running("u1", 30, T0)],
        )

        restored = StatsSnapshot.from_dict(snapshot.to_dict())

        assert restored == snapshot
        assert restored.running[0].last_resumed_at.tzinfo is not None


class TestStatsScope:
    """Test cases for StatsScope."""

    def test_tenant_wide(self):
        """Test tenant-wide and per-user scopes."""
        assert StatsScope("t1").is_tenant_wide is True
        assert StatsScope("t1", "u1").is_tenant_wide is False
