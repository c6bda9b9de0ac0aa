"""
Time entry lifecycle state machine.
Pure transition logic: no clocks, no storage.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from app.domain.models.base import InvalidTransition
from app.domain.models.time_entry import TimeEntryStatus, ActivityType


class EntryOperation(str, Enum):
    """Operations a caller may request on a time entry."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"

    @property
    def activity_type(self) -> ActivityType:
        return ActivityType(self.value)


_TRANSITIONS: Dict[Tuple[Optional[TimeEntryStatus], EntryOperation], TimeEntryStatus] = {
    (None, EntryOperation.START): TimeEntryStatus.RUNNING,
    (TimeEntryStatus.RUNNING, EntryOperation.PAUSE): TimeEntryStatus.PAUSED,
    (TimeEntryStatus.PAUSED, EntryOperation.RESUME): TimeEntryStatus.RUNNING,
    (TimeEntryStatus.RUNNING, EntryOperation.STOP): TimeEntryStatus.STOPPED,
    (TimeEntryStatus.PAUSED, EntryOperation.STOP): TimeEntryStatus.STOPPED,
}


def apply(current: Optional[TimeEntryStatus], operation: EntryOperation) -> TimeEntryStatus:
    """
    Return the status an entry moves to when ``operation`` is applied.

    ``current`` is None when no entry exists yet; only START is legal then.
    Raises InvalidTransition for every pair outside the transition table,
    including repeats such as pausing a paused entry or stopping a stopped one.
    """
    try:
        return _TRANSITIONS[(current, EntryOperation(operation))]
    except KeyError:
        state = current.value if current is not None else "not started"
        raise InvalidTransition(EntryOperation(operation).value, state) from None


def can_apply(current: Optional[TimeEntryStatus], operation: EntryOperation) -> bool:
    return (current, EntryOperation(operation)) in _TRANSITIONS


def allowed_operations(current: Optional[TimeEntryStatus]) -> list[EntryOperation]:
    """Operations legal from ``current``, in declaration order."""
    return [op for op in EntryOperation if (current, op) in _TRANSITIONS]
