"""
Dashboard statistics.

Aggregates are built from a persisted snapshot plus the live elapsed time of
running entries, so a cached snapshot never freezes a running timer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from app.domain.models.stats import DashboardStats
from app.domain.repositories.time_entry_repository import EntrySummary, RunningSlice
from app.domain.services.duration import DurationAccumulator


@dataclass(frozen=True)
class StatsScope:
    """Whose entries are aggregated: a whole tenant, or one user in it."""

    tenant_id: str
    user_id: Optional[str] = None

    @property
    def is_tenant_wide(self) -> bool:
        return self.user_id is None


@dataclass(frozen=True)
class StatsSnapshot:
    """Persisted inputs of the dashboard for one scope and one calendar day."""

    day: date
    persisted_total_seconds: int
    persisted_today_seconds: int
    active_projects: int
    running: List[RunningSlice] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "persisted_total_seconds": self.persisted_total_seconds,
            "persisted_today_seconds": self.persisted_today_seconds,
            "active_projects": self.active_projects,
            "running": [
                {
                    "entry_id": item.entry_id,
                    "user_id": item.user_id,
                    "start_time": item.start_time.isoformat(),
                    "last_resumed_at": item.last_resumed_at.isoformat(),
                }
                for item in self.running
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatsSnapshot":
        return cls(
            day=date.fromisoformat(data["day"]),
            persisted_total_seconds=data["persisted_total_seconds"],
            persisted_today_seconds=data["persisted_today_seconds"],
            active_projects=data["active_projects"],
            running=[
                RunningSlice(
                    entry_id=item["entry_id"],
                    user_id=item["user_id"],
                    start_time=datetime.fromisoformat(item["start_time"]),
                    last_resumed_at=datetime.fromisoformat(item["last_resumed_at"]),
                )
                for item in data.get("running", [])
            ],
        )


class StatsAggregator:
    """
    Pure computation of DashboardStats.

    - total: persisted durations plus the open interval of every running entry
    - today: the same, restricted to entries started on the current day
    - active users: distinct users with a running entry
    """

    def __init__(self, accumulator: Optional[DurationAccumulator] = None, timezone_name: str = "UTC"):
        self.accumulator = accumulator or DurationAccumulator()
        self.zone = ZoneInfo(timezone_name)

    def current_day(self, now: datetime) -> date:
        return now.astimezone(self.zone).date()

    def day_start(self, now: datetime) -> datetime:
        """Start of ``now``'s calendar day in the configured zone, as UTC."""
        local_midnight = datetime.combine(self.current_day(now), time.min, tzinfo=self.zone)
        return local_midnight.astimezone(timezone.utc)

    def snapshot(self, summary: EntrySummary, active_projects: int, now: datetime) -> StatsSnapshot:
        return StatsSnapshot(
            day=self.current_day(now),
            persisted_total_seconds=summary.persisted_total_seconds,
            persisted_today_seconds=summary.persisted_today_seconds,
            active_projects=active_projects,
            running=list(summary.running),
        )

    def is_current(self, snapshot: StatsSnapshot, now: datetime) -> bool:
        """A snapshot taken on another day has the wrong 'today' boundary."""
        return snapshot.day == self.current_day(now)

    def compute(self, snapshot: StatsSnapshot, now: datetime) -> DashboardStats:
        day_start = self.day_start(now)
        live_total = 0
        live_today = 0
        for item in snapshot.running:
            elapsed = self.accumulator.elapsed_seconds(item.last_resumed_at, now)
            live_total += elapsed
            if item.start_time >= day_start:
                live_today += elapsed

        return DashboardStats(
            total_seconds=snapshot.persisted_total_seconds + live_total,
            active_users=len({item.user_id for item in snapshot.running}),
            active_projects=snapshot.active_projects,
            today_seconds=snapshot.persisted_today_seconds + live_today,
            computed_at=now,
        )
