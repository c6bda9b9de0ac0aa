"""
Time Entry use cases for the application layer.
Implements business logic for time tracking operations.

Every write follows the same order: per-user lock, transition, durable
write, cache invalidation, then broadcast of the committed change.
"""

import asyncio
import logging
from typing import List, Optional

from app.application.dto.time_entry_dto import (
    StartTimeEntryRequestDTO,
    CorrectTimeEntryRequestDTO,
    TimeEntryListRequestDTO,
    ActivityListRequestDTO,
    TimeEntryResponseDTO,
    TimeEntryListResponseDTO,
    ActivityResponseDTO,
)
from app.application.use_cases.base_use_case import CommandUseCase, QueryUseCase, AuthorizedMixin
from app.application.use_cases.context import TrackingServices
from app.domain.events.time_entry_events import TimeEntryTransitioned, TimeEntryCorrected
from app.domain.models.base import AuthorizationError, EntityNotFoundError
from app.domain.models.caller import Caller
from app.domain.models.time_entry import TimeEntry, Activity
from app.domain.services.state_machine import EntryOperation

logger = logging.getLogger(__name__)


class TimeEntryUseCaseMixin(AuthorizedMixin):
    """Lookups and authorization shared by the time entry use cases."""

    services: TrackingServices

    async def _load_entry(self, caller: Caller, entry_id: str) -> TimeEntry:
        """Entry within the caller's tenant, or EntityNotFoundError."""
        entry = await asyncio.to_thread(self.services.entries.get, caller.tenant_id, entry_id)
        if not entry:
            raise EntityNotFoundError("TimeEntry", entry_id)
        return entry

    async def _require_project(self, caller: Caller, project_id: str) -> None:
        project = await asyncio.to_thread(self.services.projects.get, caller.tenant_id, project_id)
        if not project:
            raise EntityNotFoundError("Project", project_id)

    def _to_response(self, entry: TimeEntry, now=None) -> TimeEntryResponseDTO:
        now = now or self.services.clock.now()
        return TimeEntryResponseDTO.from_entity(entry, self.services.timer.live_duration(entry, now))


class StartTimeEntryUseCase(TimeEntryUseCaseMixin, CommandUseCase[StartTimeEntryRequestDTO, TimeEntryResponseDTO]):
    """Use case for starting a time entry."""

    def __init__(self, services: TrackingServices):
        super().__init__(services.dispatcher)
        self.services = services
        self.is_elevated = services.is_elevated

    async def _execute_command_logic(
        self, caller: Caller, request: StartTimeEntryRequestDTO
    ) -> TimeEntryResponseDTO:
        user_id = request.user_id or caller.user_id
        self._require_self_or_elevated(caller, user_id)

        if request.project_id:
            await self._require_project(caller, request.project_id)

        now = self.services.clock.now()
        entry, activity = self.services.timer.start(
            tenant_id=caller.tenant_id,
            user_id=user_id,
            now=now,
            project_id=request.project_id,
            description=request.description,
            start_time=request.start_time,
        )

        entry = await self.services.guard.try_start(entry, activity)
        logger.info(
            f"Time entry {entry.id} started for user {user_id} in tenant {caller.tenant_id}"
        )

        self.services.cache.invalidate_stats(caller.tenant_id)

        response = self._to_response(entry, now)
        self.events.append(TimeEntryTransitioned(
            tenant_id=caller.tenant_id,
            user_id=user_id,
            operation=EntryOperation.START.value,
            entry=response.model_dump(mode="json"),
            activity=activity.to_dict(),
        ))
        return response


class TransitionTimeEntryUseCase(TimeEntryUseCaseMixin, CommandUseCase[str, TimeEntryResponseDTO]):
    """
    Use case for pause, resume and stop.
    The entry is re-read and transitioned inside the store's transaction while
    its owner's write lock is held.
    """

    operation: EntryOperation

    def __init__(self, services: TrackingServices, operation: Optional[EntryOperation] = None):
        super().__init__(services.dispatcher)
        self.services = services
        self.is_elevated = services.is_elevated
        if operation is not None:
            self.operation = EntryOperation(operation)

    async def _execute_command_logic(self, caller: Caller, entry_id: str) -> TimeEntryResponseDTO:
        current = await self._load_entry(caller, entry_id)
        self._require_self_or_elevated(caller, current.user_id)

        applied: List[Activity] = []

        def mutate(entry: TimeEntry) -> Activity:
            activity = self.services.timer.transition(entry, self.operation, self.services.clock.now())
            applied.append(activity)
            return activity

        entry = await self.services.guard.update(caller.tenant_id, current.user_id, entry_id, mutate)
        activity = applied[-1]
        logger.info(
            f"Time entry {entry.id} {self.operation.value}: now {entry.status.value} "
            f"for user {entry.user_id} in tenant {entry.tenant_id}"
        )

        self.services.cache.invalidate_stats(caller.tenant_id)

        response = self._to_response(entry, activity.timestamp)
        self.events.append(TimeEntryTransitioned(
            tenant_id=caller.tenant_id,
            user_id=entry.user_id,
            operation=self.operation.value,
            entry=response.model_dump(mode="json"),
            activity=activity.to_dict(),
        ))
        return response


class PauseTimeEntryUseCase(TransitionTimeEntryUseCase):
    """Use case for pausing a running entry."""

    operation = EntryOperation.PAUSE


class ResumeTimeEntryUseCase(TransitionTimeEntryUseCase):
    """Use case for resuming a paused entry."""

    operation = EntryOperation.RESUME


class StopTimeEntryUseCase(TransitionTimeEntryUseCase):
    """Use case for stopping a running or paused entry."""

    operation = EntryOperation.STOP


class CorrectTimeEntryUseCase(TimeEntryUseCaseMixin, CommandUseCase[CorrectTimeEntryRequestDTO, TimeEntryResponseDTO]):
    """Use case for correcting duration, project or description of a stopped entry."""

    def __init__(self, services: TrackingServices):
        super().__init__(services.dispatcher)
        self.services = services
        self.is_elevated = services.is_elevated
        self.entry_id: Optional[str] = None

    def for_entry(self, entry_id: str) -> "CorrectTimeEntryUseCase":
        self.entry_id = entry_id
        return self

    async def _execute_command_logic(
        self, caller: Caller, request: CorrectTimeEntryRequestDTO
    ) -> TimeEntryResponseDTO:
        current = await self._load_entry(caller, self.entry_id)
        self._require_self_or_elevated(caller, current.user_id)

        changes = {
            field: getattr(request, field)
            for field in ("duration", "project_id", "description")
            if field in request.model_fields_set
        }
        if changes.get("project_id"):
            await self._require_project(caller, changes["project_id"])
        if "duration" in changes and changes["duration"] is None:
            del changes["duration"]

        def mutate(entry: TimeEntry) -> None:
            self.services.timer.correct(entry, self.services.clock.now(), **changes)
            return None

        entry = await self.services.guard.update(caller.tenant_id, current.user_id, self.entry_id, mutate)
        logger.info(
            f"Time entry {entry.id} corrected by {caller.user_id} "
            f"({', '.join(sorted(changes)) or 'no fields'})"
        )

        self.services.cache.invalidate_stats(caller.tenant_id)

        response = self._to_response(entry)
        self.events.append(TimeEntryCorrected(
            tenant_id=caller.tenant_id,
            user_id=entry.user_id,
            entry=response.model_dump(mode="json"),
            corrected_by=caller.user_id,
        ))
        return response


class GetActiveTimeEntryUseCase(TimeEntryUseCaseMixin, QueryUseCase[Optional[str], Optional[TimeEntryResponseDTO]]):
    """Use case for the caller's, or a queried user's, non-stopped entry."""

    def __init__(self, services: TrackingServices):
        super().__init__()
        self.services = services
        self.is_elevated = services.is_elevated

    async def _execute_business_logic(
        self, caller: Caller, user_id: Optional[str]
    ) -> Optional[TimeEntryResponseDTO]:
        user_id = user_id or caller.user_id
        self._require_self_or_elevated(caller, user_id)

        entry = await asyncio.to_thread(self.services.entries.find_active, caller.tenant_id, user_id)
        return self._to_response(entry) if entry else None


class GetTimeEntryUseCase(TimeEntryUseCaseMixin, QueryUseCase[str, TimeEntryResponseDTO]):
    """Use case for reading one entry. Other members' entries are hidden from non-elevated callers."""

    def __init__(self, services: TrackingServices):
        super().__init__()
        self.services = services
        self.is_elevated = services.is_elevated

    async def _execute_business_logic(self, caller: Caller, entry_id: str) -> TimeEntryResponseDTO:
        entry = await self._load_entry(caller, entry_id)
        if entry.user_id != caller.user_id and not self.is_elevated(caller):
            raise EntityNotFoundError("TimeEntry", entry_id)
        return self._to_response(entry)


class ListTimeEntriesUseCase(TimeEntryUseCaseMixin, QueryUseCase[TimeEntryListRequestDTO, TimeEntryListResponseDTO]):
    """
    Use case for listing entries in the tenant.
    Non-elevated callers list their own entries only.
    """

    def __init__(self, services: TrackingServices, own_only: bool = False):
        super().__init__()
        self.services = services
        self.is_elevated = services.is_elevated
        self.own_only = own_only

    async def _execute_business_logic(
        self, caller: Caller, request: Optional[TimeEntryListRequestDTO]
    ) -> TimeEntryListResponseDTO:
        request = request or TimeEntryListRequestDTO()

        if self.own_only:
            user_id = caller.user_id
        elif self.is_elevated(caller):
            user_id = request.user_id
        else:
            if request.user_id and request.user_id != caller.user_id:
                raise AuthorizationError("Only elevated roles can list another member's entries")
            user_id = caller.user_id

        entries = await asyncio.to_thread(
            self.services.entries.list_entries,
            caller.tenant_id,
            user_id=user_id,
            project_id=request.project_id,
            status=request.status,
            limit=request.limit,
            offset=request.offset,
        )

        now = self.services.clock.now()
        items = [self._to_response(entry, now) for entry in entries]
        return TimeEntryListResponseDTO(
            items=items,
            count=len(items),
            limit=request.limit,
            offset=request.offset,
        )


class ListActivitiesUseCase(TimeEntryUseCaseMixin, QueryUseCase[ActivityListRequestDTO, List[ActivityResponseDTO]]):
    """Use case for the activity feed, newest first."""

    def __init__(self, services: TrackingServices):
        super().__init__()
        self.services = services
        self.is_elevated = services.is_elevated

    async def _execute_business_logic(
        self, caller: Caller, request: Optional[ActivityListRequestDTO]
    ) -> List[ActivityResponseDTO]:
        request = request or ActivityListRequestDTO()

        user_id = request.user_id
        if not self.is_elevated(caller):
            if user_id and user_id != caller.user_id:
                raise AuthorizationError("Only elevated roles can read another member's activity")
            user_id = caller.user_id

        activities = await asyncio.to_thread(
            self.services.entries.list_activities,
            caller.tenant_id,
            user_id=user_id,
            limit=request.limit,
        )
        return [ActivityResponseDTO.from_entity(activity) for activity in activities]
