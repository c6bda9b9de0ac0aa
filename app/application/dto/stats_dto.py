"""
Dashboard statistics DTOs.
"""

from typing import Optional
from datetime import datetime
from pydantic import Field

from app.domain.models.stats import DashboardStats
from .base_dto import RequestDTO, BaseDTO


class DashboardStatsRequestDTO(RequestDTO):
    """DTO for reading dashboard statistics."""

    user_id: Optional[str] = Field(default=None, description="Restrict to one member (elevated callers)")


class DashboardStatsResponseDTO(BaseDTO):
    """DTO for dashboard statistics."""

    scope: str = Field(description="'tenant' or 'user'")
    user_id: Optional[str] = None
    total_seconds: int
    total_hours: float
    active_users: int
    active_projects: int
    today_seconds: int
    today_hours: float
    computed_at: datetime

    @classmethod
    def from_stats(cls, stats: DashboardStats, user_id: Optional[str] = None) -> "DashboardStatsResponseDTO":
        return cls(
            scope="user" if user_id else "tenant",
            user_id=user_id,
            total_seconds=stats.total_seconds,
            total_hours=stats.total_hours,
            active_users=stats.active_users,
            active_projects=stats.active_projects,
            today_seconds=stats.today_seconds,
            today_hours=stats.today_hours,
            computed_at=stats.computed_at,
        )
