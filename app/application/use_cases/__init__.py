"""
Application layer use cases.
Business logic for the work time tracker.
"""

from .base_use_case import (
    UseCaseResult,
    BaseUseCase,
    QueryUseCase,
    CommandUseCase,
    AuthorizedMixin,
)
from .context import TrackingServices
from .time_entry_use_cases import (
    StartTimeEntryUseCase,
    TransitionTimeEntryUseCase,
    PauseTimeEntryUseCase,
    ResumeTimeEntryUseCase,
    StopTimeEntryUseCase,
    CorrectTimeEntryUseCase,
    GetActiveTimeEntryUseCase,
    GetTimeEntryUseCase,
    ListTimeEntriesUseCase,
    ListActivitiesUseCase,
)
from .project_use_cases import ListProjectsUseCase, CreateProjectUseCase, UpdateProjectUseCase
from .stats_use_cases import StatsReader, GetDashboardStatsUseCase

__all__ = [
    # Base Use Cases
    "UseCaseResult",
    "BaseUseCase",
    "QueryUseCase",
    "CommandUseCase",
    "AuthorizedMixin",
    "TrackingServices",

    # Time Entry Use Cases
    "StartTimeEntryUseCase",
    "TransitionTimeEntryUseCase",
    "PauseTimeEntryUseCase",
    "ResumeTimeEntryUseCase",
    "StopTimeEntryUseCase",
    "CorrectTimeEntryUseCase",
    "GetActiveTimeEntryUseCase",
    "GetTimeEntryUseCase",
    "ListTimeEntriesUseCase",
    "ListActivitiesUseCase",

    # Project Use Cases
    "ListProjectsUseCase",
    "CreateProjectUseCase",
    "UpdateProjectUseCase",

    # Stats Use Cases
    "StatsReader",
    "GetDashboardStatsUseCase",
]
