"""
Time Entry DTOs for the application layer.
Data Transfer Objects for time tracking operations.
"""

from typing import Optional, List
from datetime import datetime
from pydantic import Field, field_validator

from app.domain.models.time_entry import (
    TimeEntry,
    TimeEntryStatus,
    Activity,
    ActivityType,
    MAX_DESCRIPTION_LENGTH,
    MAX_DURATION_SECONDS,
)
from .base_dto import RequestDTO, ResponseDTO, BaseDTO


DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 500
DEFAULT_ACTIVITY_LIMIT = 100
MAX_ACTIVITY_LIMIT = 1000


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is not None and len(v.strip()) == 0:
        return None
    return v


# Request DTOs
class StartTimeEntryRequestDTO(RequestDTO):
    """DTO for starting a time entry."""

    user_id: Optional[str] = Field(default=None, description="Owning user; defaults to the caller")
    project_id: Optional[str] = Field(default=None, description="Project ID (optional)")
    description: Optional[str] = Field(
        default=None, max_length=MAX_DESCRIPTION_LENGTH, description="Work description"
    )
    start_time: Optional[datetime] = Field(default=None, description="Start timestamp; defaults to now")

    @field_validator('user_id', 'project_id', 'description')
    @classmethod
    def validate_blank(cls, v):
        """Treat blank strings as absent."""
        return _blank_to_none(v)

    @field_validator('start_time')
    @classmethod
    def validate_timezone(cls, v):
        """Start times must carry an explicit offset."""
        if v is not None and v.tzinfo is None:
            raise ValueError('start_time must include a timezone offset')
        return v


class CorrectTimeEntryRequestDTO(RequestDTO):
    """
    DTO for correcting a stopped time entry.
    Only fields present in the request body are changed.
    """

    duration: Optional[int] = Field(
        default=None, ge=0, le=MAX_DURATION_SECONDS, description="Corrected duration in seconds"
    )
    project_id: Optional[str] = Field(default=None, description="Project ID, or null to clear")
    description: Optional[str] = Field(
        default=None, max_length=MAX_DESCRIPTION_LENGTH, description="Work description"
    )

    @field_validator('project_id', 'description')
    @classmethod
    def validate_blank(cls, v):
        return _blank_to_none(v)


class TimeEntryListRequestDTO(RequestDTO):
    """DTO for listing time entries."""

    user_id: Optional[str] = Field(default=None, description="Filter by user")
    project_id: Optional[str] = Field(default=None, description="Filter by project")
    status: Optional[TimeEntryStatus] = Field(default=None, description="Filter by status")
    limit: int = Field(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT, description="Page size")
    offset: int = Field(default=0, ge=0, description="Rows to skip")


class ActivityListRequestDTO(RequestDTO):
    """DTO for the activity feed."""

    user_id: Optional[str] = Field(default=None, description="Filter by user")
    limit: int = Field(default=DEFAULT_ACTIVITY_LIMIT, description="Maximum activities")

    @field_validator('limit', mode='before')
    @classmethod
    def normalize_limit(cls, v):
        """Out-of-range or unparsable limits fall back to the default."""
        try:
            limit = int(v)
        except (TypeError, ValueError):
            return DEFAULT_ACTIVITY_LIMIT
        if limit < 1 or limit > MAX_ACTIVITY_LIMIT:
            return DEFAULT_ACTIVITY_LIMIT
        return limit


# Response DTOs
class TimeEntryResponseDTO(ResponseDTO):
    """DTO for time entry responses."""

    tenant_id: str
    user_id: str
    project_id: Optional[str] = None
    description: Optional[str] = None
    status: TimeEntryStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = Field(description="Persisted duration in seconds")
    live_duration: int = Field(description="Duration including the running interval, at read time")
    last_resumed_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, entry: TimeEntry, live_duration: int) -> "TimeEntryResponseDTO":
        return cls(
            id=entry.id,
            tenant_id=entry.tenant_id,
            user_id=entry.user_id,
            project_id=entry.project_id,
            description=entry.description,
            status=entry.status,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration=entry.duration,
            live_duration=live_duration,
            last_resumed_at=entry.last_resumed_at,
            paused_at=entry.paused_at,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class TimeEntryListResponseDTO(BaseDTO):
    """DTO for time entry listings."""

    items: List[TimeEntryResponseDTO]
    count: int
    limit: int
    offset: int


class ActivityResponseDTO(BaseDTO):
    """DTO for activity feed items."""

    id: str
    tenant_id: str
    user_id: str
    entry_id: str
    project_id: Optional[str] = None
    type: ActivityType
    timestamp: datetime

    @classmethod
    def from_entity(cls, activity: Activity) -> "ActivityResponseDTO":
        return cls(
            id=activity.id,
            tenant_id=activity.tenant_id,
            user_id=activity.user_id,
            entry_id=activity.entry_id,
            project_id=activity.project_id,
            type=activity.type,
            timestamp=activity.timestamp,
        )
