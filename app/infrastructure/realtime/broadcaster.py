"""
Best-effort fan-out of lifecycle deltas to live sessions.

Every message is ``{"event": name, "data": {...payload, "timestamp": ...}}``
where the timestamp is read from the server clock. Delivery never blocks the
sender; a session whose queue is full or closed misses the message and
reconciles on its next full read.
"""

import logging
from typing import Any, Dict, Optional

from app.domain.services.clock import Clock, SystemClock
from app.infrastructure.realtime.registry import (
    ConnectionRegistry,
    RealtimeSession,
    tenant_room,
    elevated_room,
    user_room,
)

logger = logging.getLogger(__name__)

TIME_ENTRY_UPDATE = "time-entry:update"
ACTIVITY_NEW = "activity:new"
STATS_UPDATE = "stats:update"
USER_CONNECTED = "user:connected"
USER_DISCONNECTED = "user:disconnected"
PONG = "pong"


class RealtimeBroadcaster:
    """Sends events to rooms of the connection registry."""

    def __init__(self, registry: ConnectionRegistry, clock: Optional[Clock] = None):
        self.registry = registry
        self.clock = clock or SystemClock()

    def message(self, event: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = dict(payload or {})
        data["timestamp"] = self.clock.now().isoformat()
        return {"event": event, "data": data}

    def broadcast(self, event: str, payload: Dict[str, Any], tenant_id: str) -> int:
        """Deliver to every session of the tenant. Returns the number of sessions reached."""
        return self.send_to_room(tenant_room(tenant_id), event, payload)

    def broadcast_elevated(self, event: str, payload: Dict[str, Any], tenant_id: str) -> int:
        """Deliver to the tenant's sessions that may see tenant-wide aggregates."""
        return self.send_to_room(elevated_room(tenant_id), event, payload)

    def notify_user(self, tenant_id: str, user_id: str, event: str, payload: Dict[str, Any]) -> int:
        """Deliver to every session of one user in the tenant."""
        return self.send_to_room(user_room(tenant_id, user_id), event, payload)

    def send(self, session: RealtimeSession, event: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        return session.deliver(self.message(event, payload))

    def send_to_room(self, room: str, event: str, payload: Dict[str, Any]) -> int:
        sessions = self.registry.sessions_in(room)
        if not sessions:
            return 0

        message = self.message(event, payload)
        delivered = sum(1 for session in sessions if session.deliver(message))
        logger.debug(f"Event {event} delivered to {delivered}/{len(sessions)} sessions in {room}")
        return delivered
