"""
Duration bookkeeping across pause/resume cycles.

Durations are whole seconds. Each running interval is truncated to whole
seconds on its own before it is added, so accrual is strictly additive no
matter how many cycles an entry goes through. Negative intervals (clock skew)
clamp to zero.
"""

from datetime import datetime, timedelta
from typing import Optional

from app.domain.models.base import ValidationError
from app.domain.models.time_entry import TimeEntry, TimeEntryStatus, MAX_DURATION_SECONDS

_ONE_SECOND = timedelta(seconds=1)


class DurationAccumulator:
    """Computes persisted and live durations for time entries."""

    def __init__(self, max_duration_seconds: int = MAX_DURATION_SECONDS):
        self.max_duration_seconds = max_duration_seconds

    @staticmethod
    def elapsed_seconds(since: Optional[datetime], now: datetime) -> int:
        """Whole seconds from ``since`` to ``now``, truncated, never negative."""
        if since is None or now <= since:
            return 0
        return (now - since) // _ONE_SECOND

    def check_bounds(self, seconds: int, field: str = "duration") -> int:
        """Reject values outside ``0..max_duration_seconds`` instead of truncating them."""
        if seconds < 0:
            raise ValidationError("Duration cannot be negative", field)
        if seconds > self.max_duration_seconds:
            raise ValidationError(
                f"Duration cannot exceed {self.max_duration_seconds} seconds", field
            )
        return seconds

    def accrue(self, duration: int, since: Optional[datetime], now: datetime) -> int:
        """Add the running interval ``since..now`` to ``duration``."""
        return self.check_bounds(duration + self.elapsed_seconds(since, now))

    def live_duration(self, entry: TimeEntry, now: datetime) -> int:
        """
        Duration to display at ``now``.
        Running entries add the open interval; nothing is persisted.
        """
        if entry.status == TimeEntryStatus.RUNNING:
            return entry.duration + self.elapsed_seconds(entry.last_resumed_at, now)
        return entry.duration
