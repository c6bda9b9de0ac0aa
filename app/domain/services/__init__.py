"""
Domain services for the time entry lifecycle.
This module exports the services that hold the tracking rules.
"""

from .clock import Clock, SystemClock, ManualClock
from .state_machine import EntryOperation
from .duration import DurationAccumulator
from .timer_service import TimerService
from .concurrency_guard import ConcurrencyGuard, UserLockRegistry
from .stats_service import StatsAggregator, StatsScope

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "EntryOperation",
    "DurationAccumulator",
    "TimerService",
    "ConcurrencyGuard",
    "UserLockRegistry",
    "StatsAggregator",
    "StatsScope",
]
