"""
Infrastructure event handlers.
"""

from .realtime_handlers import RealtimeEventHandler
from .event_setup import setup_event_handlers

__all__ = [
    "RealtimeEventHandler",
    "setup_event_handlers",
]
