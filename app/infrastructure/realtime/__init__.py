"""
Real-time delivery of time tracking changes.
"""

from .registry import ConnectionRegistry, RealtimeSession, tenant_room, elevated_room, user_room
from .broadcaster import RealtimeBroadcaster
from .hub import RealtimeHub, format_sse

__all__ = [
    "ConnectionRegistry",
    "RealtimeSession",
    "RealtimeBroadcaster",
    "RealtimeHub",
    "format_sse",
    "tenant_room",
    "elevated_room",
    "user_room",
]
