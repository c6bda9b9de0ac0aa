"""Time Entry repository interface.
Defines the contract for time entry and activity persistence.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from app.domain.models.time_entry import TimeEntry, TimeEntryStatus, Activity


# Applied to a freshly loaded entry inside the store's transaction. Returns the
# Activity to append alongside the update, or None for non-lifecycle edits.
EntryMutation = Callable[[TimeEntry], Optional[Activity]]


@dataclass(frozen=True)
class RunningSlice:
    """The open interval of a running entry, as needed for live totals."""

    entry_id: str
    user_id: str
    start_time: datetime
    last_resumed_at: datetime


@dataclass(frozen=True)
class EntrySummary:
    """
    Persisted aggregates for a set of entries.
    Persisted durations only; live elapsed time is added at read time from ``running``.
    """

    persisted_total_seconds: int = 0
    persisted_today_seconds: int = 0
    running: List[RunningSlice] = field(default_factory=list)


class TimeEntryRepository(ABC):
    """
    Repository interface for TimeEntry and Activity.
    The only component allowed to mutate persisted entries.
    """

    @abstractmethod
    def create_if_no_active(self, entry: TimeEntry, activity: Activity) -> TimeEntry:
        """
        Atomically insert ``entry`` and its START activity unless the user
        already has a running or paused entry in the tenant.
        Raises ConflictActiveEntry naming the existing entry otherwise.
        """
        pass

    @abstractmethod
    def update_entry(self, tenant_id: str, entry_id: str, mutate: EntryMutation) -> TimeEntry:
        """
        Read-modify-write one entry in a single transaction.
        Raises EntityNotFoundError when the entry is not in the tenant.
        """
        pass

    @abstractmethod
    def get(self, tenant_id: str, entry_id: str) -> Optional[TimeEntry]:
        """Find an entry by id within a tenant."""
        pass

    @abstractmethod
    def find_active(self, tenant_id: str, user_id: str) -> Optional[TimeEntry]:
        """
        The user's running or paused entry, if any.
        Raises IntegrityViolation when more than one exists.
        """
        pass

    @abstractmethod
    def list_entries(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
        status: Optional[TimeEntryStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[TimeEntry]:
        """List entries newest start first."""
        pass

    @abstractmethod
    def summarize(
        self,
        tenant_id: str,
        day_start: datetime,
        user_id: Optional[str] = None,
    ) -> EntrySummary:
        """Persisted duration totals and the open intervals of running entries."""
        pass

    @abstractmethod
    def list_activities(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Activity]:
        """Activity feed, newest first."""
        pass
