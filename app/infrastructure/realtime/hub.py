"""
Session lifecycle for the real-time transports.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from app.application.dto.stats_dto import DashboardStatsResponseDTO
from app.application.use_cases.stats_use_cases import StatsReader
from app.domain.models.caller import Caller, ElevatedPredicate
from app.infrastructure.realtime.broadcaster import (
    RealtimeBroadcaster,
    USER_CONNECTED,
    USER_DISCONNECTED,
)
from app.infrastructure.realtime.registry import ConnectionRegistry, RealtimeSession

logger = logging.getLogger(__name__)

SSE_STATS_EVENT = "stats_update"


def format_sse(event: str, data: Dict[str, Any]) -> str:
    """One server-sent event frame."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@dataclass
class RealtimeHub:
    """Opens and closes sessions and announces presence to the tenant."""

    registry: ConnectionRegistry
    broadcaster: RealtimeBroadcaster
    stats_reader: StatsReader
    is_elevated: ElevatedPredicate
    queue_size: int = 100
    sse_stats_interval: float = 5.0

    def open_session(self, caller: Caller, transport: str = "websocket") -> RealtimeSession:
        session = RealtimeSession(
            user_id=caller.user_id,
            tenant_id=caller.tenant_id,
            role=caller.role,
            elevated=self.is_elevated(caller),
            queue_size=self.queue_size,
            transport=transport,
        )
        self.registry.register(session)
        self.broadcaster.broadcast(USER_CONNECTED, {"user_id": caller.user_id}, caller.tenant_id)
        return session

    def close_session(self, session: RealtimeSession) -> None:
        self.registry.unregister(session)
        self.broadcaster.broadcast(USER_DISCONNECTED, {"user_id": session.user_id}, session.tenant_id)

    async def stats_payload(self, caller: Caller) -> Dict[str, Any]:
        scope = self.stats_reader.scope_for(caller)
        stats = await self.stats_reader.read(scope)
        return DashboardStatsResponseDTO.from_stats(stats, scope.user_id).model_dump(mode="json")

    async def event_stream(
        self,
        caller: Caller,
        is_disconnected: Callable[[], Awaitable[bool]],
        max_frames: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        Streamed fallback: queued events as they arrive, plus ``stats_update``
        every ``sse_stats_interval`` seconds starting immediately.
        """
        session = self.open_session(caller, transport="sse")
        loop = asyncio.get_running_loop()
        frames = 0
        try:
            next_stats = loop.time()
            while max_frames is None or frames < max_frames:
                if await is_disconnected():
                    break

                timeout = next_stats - loop.time()
                if timeout <= 0:
                    message = self.broadcaster.message(SSE_STATS_EVENT, await self.stats_payload(caller))
                    frame = format_sse(message["event"], message["data"])
                    next_stats = loop.time() + self.sse_stats_interval
                else:
                    try:
                        message = await asyncio.wait_for(session.next_message(), timeout)
                    except asyncio.TimeoutError:
                        continue
                    frame = format_sse(message["event"], message["data"])

                frames += 1
                yield frame
        finally:
            self.close_session(session)
