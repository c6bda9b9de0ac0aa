"""
Tenant-scoped domain events and the in-process dispatcher.
Events are published after a change is committed; handlers never affect the publisher.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, Any, List, Optional
from datetime import datetime
from dataclasses import dataclass, field
import uuid

from app.domain.models.base import utcnow


logger = logging.getLogger(__name__)


@dataclass
class DomainEvent(ABC):
    """Base class for all domain events. Every event belongs to one tenant."""

    tenant_id: str = ""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=utcnow)
    event_type: str = field(init=False)
    version: int = field(default=1)

    def __post_init__(self):
        self.event_type = self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "tenant_id": self.tenant_id,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data()
        }

    @abstractmethod
    def _get_event_data(self) -> Dict[str, Any]:
        """Get event-specific data for serialization."""
        pass


class EventHandler(ABC):
    """Base class for event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        pass

    @abstractmethod
    def can_handle(self, event: DomainEvent) -> bool:
        pass


class EventDispatcher:
    """
    Dispatches committed domain events to registered handlers.

    Handlers run concurrently. A failing handler is logged with its traceback
    and the remaining handlers still run. The most recent events are kept in
    a bounded log for diagnostics.
    """

    def __init__(self, event_log_size: int = 1000):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []
        self._event_log: deque = deque(maxlen=event_log_size)

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        """Register an event handler for specific event type."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.info(f"Registered handler {handler.__class__.__name__} for {event_type}")

    def register_global_handler(self, handler: EventHandler) -> None:
        """Register a handler that is offered every event."""
        self._global_handlers.append(handler)
        logger.info(f"Registered global handler {handler.__class__.__name__}")

    async def dispatch(self, event: DomainEvent) -> None:
        self._event_log.append(event.to_dict())
        logger.debug(f"Dispatching {event.event_type} for tenant {event.tenant_id} (ID: {event.event_id})")

        handlers = self._handlers.get(event.event_type, []) + [
            h for h in self._global_handlers if h.can_handle(event)
        ]
        if not handlers:
            logger.debug(f"No handlers registered for event: {event.event_type}")
            return

        await asyncio.gather(*(self._safe_handle(handler, event) for handler in handlers))

    async def _safe_handle(self, handler: EventHandler, event: DomainEvent) -> None:
        try:
            await handler.handle(event)
        except Exception as e:
            logger.error(
                f"Handler {handler.__class__.__name__} failed to process "
                f"{event.event_type} for tenant {event.tenant_id}: {str(e)}",
                exc_info=True
            )

    def get_event_log(self, limit: Optional[int] = None, tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Recent events, newest first, optionally for one tenant only."""
        events = [
            e for e in reversed(self._event_log)
            if tenant_id is None or e["tenant_id"] == tenant_id
        ]
        return events[:limit] if limit else events

    def clear_event_log(self) -> None:
        self._event_log.clear()

    def get_registered_handlers(self) -> Dict[str, List[str]]:
        """Handler class names per event type, plus the global handlers."""
        result = {
            event_type: [h.__class__.__name__ for h in handlers]
            for event_type, handlers in self._handlers.items()
        }
        if self._global_handlers:
            result["global"] = [h.__class__.__name__ for h in self._global_handlers]
        return result
