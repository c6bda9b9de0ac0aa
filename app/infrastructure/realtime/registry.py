"""
Registry of live real-time sessions.

Sessions are inserted on connect, removed on disconnect and read as
snapshots under a lock when broadcasting.
"""

import asyncio
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


def tenant_room(tenant_id: str) -> str:
    return f"tenant:{tenant_id}"


def elevated_room(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:elevated"


def user_room(tenant_id: str, user_id: str) -> str:
    return f"tenant:{tenant_id}:user:{user_id}"


class RealtimeSession:
    """
    One authenticated connection.
    Outbound messages go through a bounded queue drained by the transport.
    """

    def __init__(
        self,
        user_id: str,
        tenant_id: str,
        role: Optional[str] = None,
        elevated: bool = False,
        queue_size: int = 100,
        transport: str = "websocket",
    ):
        self.id = str(uuid.uuid4())
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.role = role
        self.elevated = elevated
        self.transport = transport
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False

        self.rooms: Set[str] = {tenant_room(tenant_id), user_room(tenant_id, user_id)}
        if elevated:
            self.rooms.add(elevated_room(tenant_id))

    def deliver(self, message: Dict[str, Any]) -> bool:
        """Queue a message without waiting. Returns False when it is dropped."""
        if self.closed:
            logger.warning(f"Dropped {message.get('event')} for closed session {self.id}")
            return False
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                f"Dropped {message.get('event')} for session {self.id} "
                f"(user {self.user_id}): outbound queue full"
            )
            return False
        return True

    async def next_message(self) -> Dict[str, Any]:
        return await self.queue.get()

    def close(self) -> None:
        self.closed = True


class ConnectionRegistry:
    """Live sessions indexed by room."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, RealtimeSession] = {}
        self._rooms: Dict[str, Set[str]] = {}

    def register(self, session: RealtimeSession) -> None:
        with self._lock:
            self._sessions[session.id] = session
            for room in session.rooms:
                self._rooms.setdefault(room, set()).add(session.id)
        logger.info(
            f"Realtime session {session.id} connected ({session.transport}) "
            f"for user {session.user_id} in tenant {session.tenant_id}"
        )

    def unregister(self, session: RealtimeSession) -> None:
        session.close()
        with self._lock:
            if self._sessions.pop(session.id, None) is None:
                return
            for room in session.rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(session.id)
                if not members:
                    del self._rooms[room]
        logger.info(f"Realtime session {session.id} disconnected for user {session.user_id}")

    def sessions_in(self, room: str) -> List[RealtimeSession]:
        """Snapshot of the sessions currently in ``room``."""
        with self._lock:
            return [self._sessions[session_id] for session_id in self._rooms.get(room, ())]

    def count(self, room: Optional[str] = None) -> int:
        with self._lock:
            if room is None:
                return len(self._sessions)
            return len(self._rooms.get(room, ()))
