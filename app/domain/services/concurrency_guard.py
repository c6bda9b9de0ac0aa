"""
Single-active-entry guard.

Writes for one (tenant, user) pair are serialised by an in-process lock with a
bounded wait; the store's transactional check-and-insert, backed by a partial
unique index, covers writers in other processes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional, Tuple

from app.domain.models.base import EntryBusy
from app.domain.models.time_entry import TimeEntry, Activity
from app.domain.repositories.time_entry_repository import TimeEntryRepository, EntryMutation

logger = logging.getLogger(__name__)


@dataclass
class _LockSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class UserLockRegistry:
    """
    Per-user write locks.
    A slot lives only while someone holds or waits for it.
    """

    def __init__(self, timeout_seconds: float = 2.0):
        self.timeout_seconds = timeout_seconds
        self._slots: Dict[Tuple[str, str], _LockSlot] = {}

    @asynccontextmanager
    async def hold(
        self,
        tenant_id: str,
        user_id: str,
        timeout: Optional[float] = None,
    ) -> AsyncIterator[None]:
        """Hold the user's write lock; raise EntryBusy if it is not free within ``timeout``."""
        timeout = self.timeout_seconds if timeout is None else timeout
        key = (tenant_id, user_id)
        slot = self._slots.setdefault(key, _LockSlot())
        slot.holders += 1
        try:
            try:
                await asyncio.wait_for(slot.lock.acquire(), timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Write lock for user {user_id} in tenant {tenant_id} "
                    f"not acquired within {timeout}s"
                )
                raise EntryBusy(user_id, timeout) from None
            try:
                yield
            finally:
                slot.lock.release()
        finally:
            slot.holders -= 1
            if slot.holders == 0 and self._slots.get(key) is slot:
                del self._slots[key]

    def is_locked(self, tenant_id: str, user_id: str) -> bool:
        slot = self._slots.get((tenant_id, user_id))
        return slot is not None and slot.lock.locked()


class ConcurrencyGuard:
    """
    Guarded write path for time entries.
    Store calls run in a worker thread so a slow write never stalls other requests.
    """

    def __init__(self, repository: TimeEntryRepository, locks: UserLockRegistry):
        self.repository = repository
        self.locks = locks

    async def try_start(self, entry: TimeEntry, activity: Activity) -> TimeEntry:
        """
        Persist a new running entry for its user.
        Raises ConflictActiveEntry with the existing entry's id when one is active.
        """
        async with self.locks.hold(entry.tenant_id, entry.user_id):
            return await asyncio.to_thread(self.repository.create_if_no_active, entry, activity)

    async def update(
        self,
        tenant_id: str,
        user_id: str,
        entry_id: str,
        mutate: EntryMutation,
    ) -> TimeEntry:
        """Apply ``mutate`` to an entry while holding its owner's write lock."""
        async with self.locks.hold(tenant_id, user_id):
            return await asyncio.to_thread(self.repository.update_entry, tenant_id, entry_id, mutate)
