"""
Event handlers for real-time delivery.
Converts committed domain events into broadcasts to live sessions.
"""

import logging
from typing import Optional

from app.application.dto.stats_dto import DashboardStatsResponseDTO
from app.application.use_cases.stats_use_cases import StatsReader
from app.domain.events.base import EventHandler, DomainEvent
from app.domain.events.project_events import ProjectChanged
from app.domain.events.time_entry_events import TimeEntryTransitioned, TimeEntryCorrected
from app.domain.services.stats_service import StatsScope
from app.infrastructure.realtime.broadcaster import (
    RealtimeBroadcaster,
    TIME_ENTRY_UPDATE,
    ACTIVITY_NEW,
    STATS_UPDATE,
)
from app.infrastructure.realtime.registry import elevated_room, user_room


logger = logging.getLogger(__name__)


class RealtimeEventHandler(EventHandler):
    """
    Handler for time tracking and project events.

    - entry changes go to every session of the tenant
    - tenant-wide stats go to elevated sessions only
    - personal stats go to the affected user's sessions
    """

    def __init__(self, broadcaster: RealtimeBroadcaster, stats_reader: StatsReader):
        self.broadcaster = broadcaster
        self.stats_reader = stats_reader

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can process the given event."""
        return isinstance(event, (TimeEntryTransitioned, TimeEntryCorrected, ProjectChanged))

    async def handle(self, event: DomainEvent) -> None:
        """Broadcast the change, then refreshed statistics."""
        if isinstance(event, TimeEntryTransitioned):
            await self._handle_transition(event)
        elif isinstance(event, TimeEntryCorrected):
            await self._handle_correction(event)
        elif isinstance(event, ProjectChanged):
            await self._push_stats(event.tenant_id)

    async def _handle_transition(self, event: TimeEntryTransitioned) -> None:
        self.broadcaster.broadcast(
            TIME_ENTRY_UPDATE,
            {"operation": event.operation, "user_id": event.user_id, "entry": event.entry},
            event.tenant_id,
        )
        self.broadcaster.broadcast(ACTIVITY_NEW, {"activity": event.activity}, event.tenant_id)
        await self._push_stats(event.tenant_id, event.user_id)

    async def _handle_correction(self, event: TimeEntryCorrected) -> None:
        self.broadcaster.broadcast(
            TIME_ENTRY_UPDATE,
            {"operation": "correct", "user_id": event.user_id, "entry": event.entry},
            event.tenant_id,
        )
        await self._push_stats(event.tenant_id, event.user_id)

    async def _push_stats(self, tenant_id: str, user_id: Optional[str] = None) -> None:
        """Recompute only for audiences that are connected."""
        registry = self.broadcaster.registry

        if registry.count(elevated_room(tenant_id)):
            stats = await self.stats_reader.read(StatsScope(tenant_id))
            self.broadcaster.broadcast_elevated(
                STATS_UPDATE,
                DashboardStatsResponseDTO.from_stats(stats).model_dump(mode="json"),
                tenant_id,
            )

        if user_id and registry.count(user_room(tenant_id, user_id)):
            stats = await self.stats_reader.read(StatsScope(tenant_id, user_id))
            self.broadcaster.notify_user(
                tenant_id,
                user_id,
                STATS_UPDATE,
                DashboardStatsResponseDTO.from_stats(stats, user_id).model_dump(mode="json"),
            )
