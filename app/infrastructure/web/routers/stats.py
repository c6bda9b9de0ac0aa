"""
Dashboard statistics router.
"""

from typing import Optional
from fastapi import APIRouter, Query

from app.application.dto.stats_dto import DashboardStatsRequestDTO, DashboardStatsResponseDTO
from app.application.use_cases.stats_use_cases import GetDashboardStatsUseCase
from app.infrastructure.auth.dependencies import CurrentCaller
from app.infrastructure.web.dependencies import Services
from app.infrastructure.web.middleware.error_handler import unwrap


router = APIRouter()


@router.get("", response_model=DashboardStatsResponseDTO)
async def get_dashboard_stats(
    caller: CurrentCaller,
    services: Services,
    user_id: Optional[str] = Query(None, description="Restrict to one member (elevated roles only)"),
):
    """
    Dashboard totals including live time of running entries.

    Elevated callers see the whole tenant; everyone else sees their own entries.
    """
    result = await GetDashboardStatsUseCase(services).execute(caller, DashboardStatsRequestDTO(user_id=user_id))
    return unwrap(result)
