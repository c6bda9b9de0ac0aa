"""
Repository interfaces for the domain layer.
This module exports all repository interfaces (ports) for dependency injection.
"""

from .project_repository import ProjectRepository
from .time_entry_repository import (
    TimeEntryRepository,
    EntryMutation,
    EntrySummary,
    RunningSlice,
)

__all__ = [
    "ProjectRepository",
    "TimeEntryRepository",
    "EntryMutation",
    "EntrySummary",
    "RunningSlice",
]
