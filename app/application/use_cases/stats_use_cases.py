"""
Dashboard statistics use cases.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from app.application.dto.stats_dto import DashboardStatsRequestDTO, DashboardStatsResponseDTO
from app.application.use_cases.base_use_case import QueryUseCase, AuthorizedMixin
from app.application.use_cases.context import TrackingServices
from app.domain.models.caller import Caller
from app.domain.models.stats import DashboardStats
from app.domain.services.stats_service import StatsScope, StatsSnapshot
from app.infrastructure.cache.keys import CacheKeys

logger = logging.getLogger(__name__)


class StatsReader:
    """
    Read-through access to dashboard statistics.
    The cache holds persisted snapshots; live elapsed time is added on every read.
    """

    def __init__(self, services: TrackingServices):
        self.services = services

    def scope_for(self, caller: Caller, user_id: Optional[str] = None) -> StatsScope:
        """Own entries unless the caller is elevated; elevated callers may narrow to one member."""
        if self.services.is_elevated(caller):
            return StatsScope(caller.tenant_id, user_id)
        return StatsScope(caller.tenant_id, caller.user_id)

    async def read(self, scope: StatsScope, now: Optional[datetime] = None) -> DashboardStats:
        now = now or self.services.clock.now()
        aggregator = self.services.stats
        key = CacheKeys.stats(scope.tenant_id, scope.user_id)

        data = await asyncio.to_thread(
            self.services.cache.get_or_build,
            key,
            scope.tenant_id,
            lambda: self._build_snapshot(scope, now).to_dict(),
            lambda cached: aggregator.is_current(StatsSnapshot.from_dict(cached), now),
        )
        return aggregator.compute(StatsSnapshot.from_dict(data), now)

    def _build_snapshot(self, scope: StatsScope, now: datetime) -> StatsSnapshot:
        aggregator = self.services.stats
        summary = self.services.entries.summarize(
            scope.tenant_id,
            aggregator.day_start(now),
            user_id=scope.user_id,
        )
        active_projects = self.services.projects.count_active(scope.tenant_id)
        return aggregator.snapshot(summary, active_projects, now)


class GetDashboardStatsUseCase(AuthorizedMixin, QueryUseCase[DashboardStatsRequestDTO, DashboardStatsResponseDTO]):
    """Use case for reading dashboard statistics."""

    def __init__(self, services: TrackingServices):
        super().__init__()
        self.is_elevated = services.is_elevated
        self.reader = StatsReader(services)

    async def _execute_business_logic(
        self, caller: Caller, request: Optional[DashboardStatsRequestDTO]
    ) -> DashboardStatsResponseDTO:
        requested_user = request.user_id if request else None
        if requested_user and requested_user != caller.user_id:
            self._require_elevated(caller, "Only elevated roles can read another member's stats")

        scope = self.reader.scope_for(caller, requested_user)
        stats = await self.reader.read(scope)
        return DashboardStatsResponseDTO.from_stats(stats, scope.user_id)
