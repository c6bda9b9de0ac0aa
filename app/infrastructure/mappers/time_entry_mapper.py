"""
Time entry mapper for converting between domain entities and database models.
"""

from datetime import datetime, timezone
from typing import Optional

from app.domain.models.time_entry import TimeEntry, TimeEntryStatus, Activity, ActivityType
from app.infrastructure.db.models import TimeEntryModel, ActivityModel


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Every stored datetime is UTC; SQLite drops offsets and returns naive values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeEntryMapper:
    """Maps between TimeEntry domain entity and TimeEntryModel database model."""

    def domain_to_model(self, time_entry: TimeEntry) -> TimeEntryModel:
        """Convert TimeEntry domain entity to TimeEntryModel."""
        model = TimeEntryModel(id=time_entry.id)
        self.update_model(model, time_entry)
        model.created_at = as_utc(time_entry.created_at)
        return model

    def update_model(self, model: TimeEntryModel, time_entry: TimeEntry) -> TimeEntryModel:
        """Copy mutable entry state onto an existing row."""
        model.tenant_id = time_entry.tenant_id
        model.user_id = time_entry.user_id
        model.project_id = time_entry.project_id
        model.description = time_entry.description
        model.status = time_entry.status
        model.start_time = as_utc(time_entry.start_time)
        model.end_time = as_utc(time_entry.end_time)
        model.duration = time_entry.duration
        model.last_resumed_at = as_utc(time_entry.last_resumed_at)
        model.paused_at = as_utc(time_entry.paused_at)
        model.updated_at = as_utc(time_entry.updated_at)
        return model

    def model_to_domain(self, model: TimeEntryModel) -> TimeEntry:
        """Convert TimeEntryModel to TimeEntry domain entity."""
        return TimeEntry(
            id=model.id,
            tenant_id=model.tenant_id,
            user_id=model.user_id,
            project_id=model.project_id,
            description=model.description,
            status=TimeEntryStatus(model.status),
            start_time=as_utc(model.start_time),
            end_time=as_utc(model.end_time),
            duration=model.duration or 0,
            last_resumed_at=as_utc(model.last_resumed_at),
            paused_at=as_utc(model.paused_at),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )


class ActivityMapper:
    """Maps between Activity records and ActivityModel rows."""

    def domain_to_model(self, activity: Activity) -> ActivityModel:
        return ActivityModel(
            id=activity.id,
            tenant_id=activity.tenant_id,
            user_id=activity.user_id,
            entry_id=activity.entry_id,
            project_id=activity.project_id,
            type=activity.type,
            timestamp=as_utc(activity.timestamp),
        )

    def model_to_domain(self, model: ActivityModel) -> Activity:
        return Activity(
            id=model.id,
            tenant_id=model.tenant_id,
            user_id=model.user_id,
            entry_id=model.entry_id,
            project_id=model.project_id,
            type=ActivityType(model.type),
            timestamp=as_utc(model.timestamp),
        )
