"""
Domain events related to time tracking.
Published after the change is committed and caches are invalidated.
"""

from typing import Dict, Any, Optional

from .base import DomainEvent


class TimeEntryTransitioned(DomainEvent):
    """Event fired when a time entry is started, paused, resumed or stopped."""

    def __init__(self,
                 tenant_id: str,
                 user_id: str,
                 operation: str,
                 entry: Dict[str, Any],
                 activity: Dict[str, Any],
                 **kwargs):
        super().__init__(tenant_id=tenant_id, **kwargs)
        self.user_id = user_id
        self.operation = operation
        self.entry = entry
        self.activity = activity

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "operation": self.operation,
            "entry": self.entry,
            "activity": self.activity,
        }


class TimeEntryCorrected(DomainEvent):
    """Event fired when a stopped entry is corrected."""

    def __init__(self,
                 tenant_id: str,
                 user_id: str,
                 entry: Dict[str, Any],
                 corrected_by: Optional[str] = None,
                 **kwargs):
        super().__init__(tenant_id=tenant_id, **kwargs)
        self.user_id = user_id
        self.entry = entry
        self.corrected_by = corrected_by

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "entry": self.entry,
            "corrected_by": self.corrected_by,
        }
