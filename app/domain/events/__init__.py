"""
Domain events for the application.
"""

from .base import DomainEvent, EventHandler, EventDispatcher
from .project_events import ProjectChanged
from .time_entry_events import TimeEntryTransitioned, TimeEntryCorrected

__all__ = [
    "DomainEvent",
    "EventHandler",
    "EventDispatcher",
    "ProjectChanged",
    "TimeEntryTransitioned",
    "TimeEntryCorrected",
]
