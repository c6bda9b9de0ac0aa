"""
TimeEntry domain model.
Represents a tracked work session and the append-only activity feed of its transitions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum

from app.domain.models.base import BaseEntity, ValidationError, new_id

# Duration lives in a signed 32-bit seconds column.
MAX_DURATION_SECONDS = 2_147_483_647
MAX_DESCRIPTION_LENGTH = 5000


class TimeEntryStatus(str, Enum):
    """Time entry status."""
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"

    @property
    def is_active(self) -> bool:
        return self is not TimeEntryStatus.STOPPED


ACTIVE_STATUSES = (TimeEntryStatus.RUNNING, TimeEntryStatus.PAUSED)


class ActivityType(str, Enum):
    """Lifecycle transition recorded in the activity feed."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"


@dataclass(eq=False, kw_only=True)
class TimeEntry(BaseEntity):
    """
    TimeEntry entity.

    ``duration`` holds whole seconds of tracked time accrued at transition
    boundaries. While running, the open interval since ``last_resumed_at`` is
    not yet part of ``duration``; it is added on the next pause or stop.
    """

    tenant_id: str
    user_id: str
    project_id: Optional[str] = None
    description: Optional[str] = None
    status: TimeEntryStatus = TimeEntryStatus.RUNNING
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = 0
    last_resumed_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None

    def validate(self) -> None:
        """Validate time entry state."""
        if not self.tenant_id:
            raise ValidationError("Tenant ID is required", "tenant_id")

        if not self.user_id:
            raise ValidationError("User ID is required", "user_id")

        if self.duration < 0:
            raise ValidationError("Duration cannot be negative", "duration")

        if self.duration > MAX_DURATION_SECONDS:
            raise ValidationError(
                f"Duration cannot exceed {MAX_DURATION_SECONDS} seconds", "duration"
            )

        if self.description and len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)", "description"
            )

        if self.status.is_active and self.end_time is not None:
            raise ValidationError("An active time entry cannot have an end time", "end_time")

        if self.status == TimeEntryStatus.STOPPED and self.end_time is None:
            raise ValidationError("A stopped time entry must have an end time", "end_time")

        if self.status == TimeEntryStatus.RUNNING and self.last_resumed_at is None:
            raise ValidationError("A running time entry must record when it last resumed", "last_resumed_at")

        if self.end_time is not None and self.end_time < self.start_time:
            raise ValidationError("End time cannot be before start time", "end_time")

    @property
    def is_active(self) -> bool:
        """Running or paused."""
        return self.status.is_active

    @property
    def is_running(self) -> bool:
        return self.status == TimeEntryStatus.RUNNING

    @property
    def is_stopped(self) -> bool:
        return self.status == TimeEntryStatus.STOPPED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = super().to_dict()
        data["status"] = self.status.value
        return data


@dataclass(frozen=True, kw_only=True)
class Activity:
    """
    Immutable record of one lifecycle transition.
    Created exactly once per transition, in the same unit of work as the transition.
    """

    tenant_id: str
    user_id: str
    entry_id: str
    type: ActivityType
    timestamp: datetime
    project_id: Optional[str] = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "entry_id": self.entry_id,
            "project_id": self.project_id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
        }
