"""Timer service for the time entry lifecycle.
Applies state machine transitions and duration accrual to entries.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from app.domain.models.base import ValidationError, BusinessRuleViolation
from app.domain.models.time_entry import (
    TimeEntry,
    TimeEntryStatus,
    Activity,
    MAX_DESCRIPTION_LENGTH,
)
from app.domain.services import state_machine
from app.domain.services.state_machine import EntryOperation
from app.domain.services.duration import DurationAccumulator

_UNSET = object()


class TimerService:
    """
    Domain service for timer operations.
    Every method takes the operation's single ``now`` reading explicitly.
    """

    def __init__(self, accumulator: Optional[DurationAccumulator] = None):
        self.accumulator = accumulator or DurationAccumulator()

    def start(
        self,
        tenant_id: str,
        user_id: str,
        now: datetime,
        project_id: Optional[str] = None,
        description: Optional[str] = None,
        start_time: Optional[datetime] = None,
    ) -> Tuple[TimeEntry, Activity]:
        """
        Build a new running entry and its START activity.
        A start time later than ``now`` is clamped to ``now``. Naive start
        times are read as UTC; offsets are normalised to UTC.
        """
        status = state_machine.apply(None, EntryOperation.START)
        started = min(self._to_utc(start_time), now) if start_time else now

        entry = TimeEntry(
            tenant_id=tenant_id,
            user_id=user_id,
            project_id=project_id,
            description=self._clean_description(description),
            status=status,
            start_time=started,
            last_resumed_at=started,
            created_at=now,
            updated_at=now,
        )
        entry.validate()
        return entry, self._activity(entry, EntryOperation.START, now)

    def transition(self, entry: TimeEntry, operation: EntryOperation, now: datetime) -> Activity:
        """Apply pause, resume or stop to ``entry`` in place."""
        operation = EntryOperation(operation)
        if operation == EntryOperation.START:
            raise BusinessRuleViolation("Start creates a new entry; it cannot be applied to one")

        new_status = state_machine.apply(entry.status, operation)

        if operation == EntryOperation.PAUSE:
            entry.duration = self.accumulator.accrue(entry.duration, entry.last_resumed_at, now)
            entry.paused_at = now
        elif operation == EntryOperation.RESUME:
            entry.last_resumed_at = now
            entry.paused_at = None
        elif operation == EntryOperation.STOP:
            if entry.status == TimeEntryStatus.RUNNING:
                entry.duration = self.accumulator.accrue(entry.duration, entry.last_resumed_at, now)
            entry.end_time = max(now, entry.start_time)
            entry.paused_at = None

        entry.status = new_status
        entry.mark_as_updated(now)
        entry.validate()
        return self._activity(entry, operation, now)

    def pause(self, entry: TimeEntry, now: datetime) -> Activity:
        return self.transition(entry, EntryOperation.PAUSE, now)

    def resume(self, entry: TimeEntry, now: datetime) -> Activity:
        return self.transition(entry, EntryOperation.RESUME, now)

    def stop(self, entry: TimeEntry, now: datetime) -> Activity:
        return self.transition(entry, EntryOperation.STOP, now)

    def live_duration(self, entry: TimeEntry, now: datetime) -> int:
        return self.accumulator.live_duration(entry, now)

    def correct(
        self,
        entry: TimeEntry,
        now: datetime,
        duration: Optional[int] = None,
        project_id=_UNSET,
        description=_UNSET,
    ) -> TimeEntry:
        """
        Administrative correction of a stopped entry.
        Active entries are rejected; their duration is owned by the lifecycle.
        """
        if not entry.is_stopped:
            raise BusinessRuleViolation(
                "Only stopped time entries can be corrected; stop the entry first",
                "ENTRY_NOT_TERMINAL"
            )

        if duration is not None:
            entry.duration = self.accumulator.check_bounds(duration)
        if project_id is not _UNSET:
            entry.project_id = project_id
        if description is not _UNSET:
            entry.description = self._clean_description(description)

        entry.mark_as_updated(now)
        entry.validate()
        return entry

    @staticmethod
    def _clean_description(description: Optional[str]) -> Optional[str]:
        if description is None:
            return None
        description = description.strip()
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)", "description"
            )
        return description or None

    @staticmethod
    def _to_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def _activity(entry: TimeEntry, operation: EntryOperation, now: datetime) -> Activity:
        return Activity(
            tenant_id=entry.tenant_id,
            user_id=entry.user_id,
            entry_id=entry.id,
            project_id=entry.project_id,
            type=operation.activity_type,
            timestamp=now,
        )
