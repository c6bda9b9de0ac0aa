"""
Application layer DTOs.
Data Transfer Objects for API requests and responses.
"""

from .base_dto import BaseDTO, RequestDTO, ResponseDTO, ErrorResponseDTO
from .time_entry_dto import (
    StartTimeEntryRequestDTO,
    CorrectTimeEntryRequestDTO,
    TimeEntryListRequestDTO,
    ActivityListRequestDTO,
    TimeEntryResponseDTO,
    TimeEntryListResponseDTO,
    ActivityResponseDTO,
)
from .project_dto import (
    CreateProjectRequestDTO,
    UpdateProjectRequestDTO,
    ProjectResponseDTO,
    ProjectListResponseDTO,
)
from .stats_dto import DashboardStatsRequestDTO, DashboardStatsResponseDTO

__all__ = [
    # Base DTOs
    "BaseDTO",
    "RequestDTO",
    "ResponseDTO",
    "ErrorResponseDTO",

    # Time entry DTOs
    "StartTimeEntryRequestDTO",
    "CorrectTimeEntryRequestDTO",
    "TimeEntryListRequestDTO",
    "ActivityListRequestDTO",
    "TimeEntryResponseDTO",
    "TimeEntryListResponseDTO",
    "ActivityResponseDTO",

    # Project DTOs
    "CreateProjectRequestDTO",
    "UpdateProjectRequestDTO",
    "ProjectResponseDTO",
    "ProjectListResponseDTO",

    # Stats DTOs
    "DashboardStatsRequestDTO",
    "DashboardStatsResponseDTO",
]
