"""
Infrastructure mappers module.
Contains mappers for converting between domain entities and database models.
"""

from .project_mapper import ProjectMapper
from .time_entry_mapper import TimeEntryMapper, ActivityMapper

__all__ = [
    "ProjectMapper",
    "TimeEntryMapper",
    "ActivityMapper",
]
