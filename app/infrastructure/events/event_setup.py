"""
Event system setup and configuration.
Registers all event handlers with an event dispatcher.
"""

import logging

from app.application.use_cases.stats_use_cases import StatsReader
from app.domain.events.base import EventDispatcher
from app.infrastructure.realtime.broadcaster import RealtimeBroadcaster
from .realtime_handlers import RealtimeEventHandler

logger = logging.getLogger(__name__)


def setup_event_handlers(
    dispatcher: EventDispatcher,
    broadcaster: RealtimeBroadcaster,
    stats_reader: StatsReader,
) -> EventDispatcher:
    """Set up and register all event handlers."""
    realtime_handler = RealtimeEventHandler(broadcaster, stats_reader)

    # Register specific handlers for time tracking events
    dispatcher.register_handler("TimeEntryTransitioned", realtime_handler)
    dispatcher.register_handler("TimeEntryCorrected", realtime_handler)

    # Register specific handlers for project events
    dispatcher.register_handler("ProjectChanged", realtime_handler)

    # Log registered handlers
    registered = dispatcher.get_registered_handlers()
    for event_type, handlers in registered.items():
        logger.info(f"Event {event_type}: {', '.join(handlers)} handlers")

    return dispatcher
