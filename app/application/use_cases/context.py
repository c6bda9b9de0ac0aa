"""
Collaborators shared by the time tracking use cases.
"""

from dataclasses import dataclass
from typing import Optional

from app.domain.events.base import EventDispatcher
from app.domain.models.caller import ElevatedPredicate
from app.domain.repositories.project_repository import ProjectRepository
from app.domain.repositories.time_entry_repository import TimeEntryRepository
from app.domain.services.clock import Clock
from app.domain.services.concurrency_guard import ConcurrencyGuard
from app.domain.services.stats_service import StatsAggregator
from app.domain.services.timer_service import TimerService
from app.infrastructure.cache.aggregate_cache import AggregateCache


@dataclass
class TrackingServices:
    """Built once per application; use cases are built per request around it."""

    entries: TimeEntryRepository
    projects: ProjectRepository
    guard: ConcurrencyGuard
    timer: TimerService
    stats: StatsAggregator
    cache: AggregateCache
    clock: Clock
    is_elevated: ElevatedPredicate
    dispatcher: Optional[EventDispatcher] = None
