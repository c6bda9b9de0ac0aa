"""
Time tracking router.
Handles the time entry lifecycle, listings, corrections and the activity feed.
"""

from typing import List, Optional
from fastapi import APIRouter, Query, status

from app.application.dto.time_entry_dto import (
    StartTimeEntryRequestDTO,
    CorrectTimeEntryRequestDTO,
    TimeEntryListRequestDTO,
    ActivityListRequestDTO,
    TimeEntryResponseDTO,
    TimeEntryListResponseDTO,
    ActivityResponseDTO,
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
)
from app.application.use_cases.time_entry_use_cases import (
    StartTimeEntryUseCase,
    PauseTimeEntryUseCase,
    ResumeTimeEntryUseCase,
    StopTimeEntryUseCase,
    CorrectTimeEntryUseCase,
    GetActiveTimeEntryUseCase,
    GetTimeEntryUseCase,
    ListTimeEntriesUseCase,
    ListActivitiesUseCase,
)
from app.domain.models.time_entry import TimeEntryStatus
from app.infrastructure.auth.dependencies import CurrentCaller
from app.infrastructure.web.dependencies import Services
from app.infrastructure.web.middleware.error_handler import unwrap


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TimeEntryResponseDTO)
async def start_time_entry(request: StartTimeEntryRequestDTO, caller: CurrentCaller, services: Services):
    """
    Start a new running time entry.

    - **user_id**: Owning user (defaults to the caller; others require an elevated role)
    - **project_id**: Project to track against
    - **description**: Work description
    - **start_time**: Start timestamp (defaults to now; future values are clamped to now)

    Fails with 409 CONFLICT_ACTIVE_ENTRY, naming the active entry, when the user
    already has a running or paused entry.
    """
    result = await StartTimeEntryUseCase(services).execute(caller, request)
    return unwrap(result)


@router.put("/{entry_id}/pause", response_model=TimeEntryResponseDTO)
async def pause_time_entry(entry_id: str, caller: CurrentCaller, services: Services):
    """Pause a running time entry, accruing the elapsed interval."""
    result = await PauseTimeEntryUseCase(services).execute(caller, entry_id)
    return unwrap(result)


@router.put("/{entry_id}/resume", response_model=TimeEntryResponseDTO)
async def resume_time_entry(entry_id: str, caller: CurrentCaller, services: Services):
    """Resume a paused time entry."""
    result = await ResumeTimeEntryUseCase(services).execute(caller, entry_id)
    return unwrap(result)


@router.put("/{entry_id}/stop", response_model=TimeEntryResponseDTO)
async def stop_time_entry(entry_id: str, caller: CurrentCaller, services: Services):
    """Stop a running or paused time entry."""
    result = await StopTimeEntryUseCase(services).execute(caller, entry_id)
    return unwrap(result)


@router.get("/active", response_model=Optional[TimeEntryResponseDTO])
async def get_active_time_entry(
    caller: CurrentCaller,
    services: Services,
    user_id: Optional[str] = Query(None, description="User to query (elevated roles only)")
):
    """Get the caller's, or a queried user's, running or paused entry; null when none."""
    result = await GetActiveTimeEntryUseCase(services).execute(caller, user_id)
    return unwrap(result)


@router.get("/my", response_model=TimeEntryListResponseDTO)
async def list_my_time_entries(
    caller: CurrentCaller,
    services: Services,
    project_id: Optional[str] = Query(None, description="Filter by project"),
    entry_status: Optional[TimeEntryStatus] = Query(None, alias="status", description="Filter by status"),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    offset: int = Query(0, ge=0),
):
    """List the caller's own time entries, newest first."""
    request = TimeEntryListRequestDTO(project_id=project_id, status=entry_status, limit=limit, offset=offset)
    result = await ListTimeEntriesUseCase(services, own_only=True).execute(caller, request)
    return unwrap(result)


@router.get("/activities", response_model=List[ActivityResponseDTO])
async def list_activities(
    caller: CurrentCaller,
    services: Services,
    user_id: Optional[str] = Query(None, description="Filter by user"),
    limit: Optional[str] = Query(None, description="Maximum activities (1-1000, default 100)"),
):
    """Activity feed of lifecycle transitions, newest first."""
    request = ActivityListRequestDTO(user_id=user_id, limit=limit)
    result = await ListActivitiesUseCase(services).execute(caller, request)
    return unwrap(result)


@router.get("", response_model=TimeEntryListResponseDTO)
async def list_time_entries(
    caller: CurrentCaller,
    services: Services,
    user_id: Optional[str] = Query(None, description="Filter by user"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    entry_status: Optional[TimeEntryStatus] = Query(None, alias="status", description="Filter by status"),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    offset: int = Query(0, ge=0),
):
    """
    List time entries in the caller's tenant, newest first.

    Non-elevated callers only see their own entries.
    """
    request = TimeEntryListRequestDTO(
        user_id=user_id, project_id=project_id, status=entry_status, limit=limit, offset=offset
    )
    result = await ListTimeEntriesUseCase(services).execute(caller, request)
    return unwrap(result)


@router.get("/{entry_id}", response_model=TimeEntryResponseDTO)
async def get_time_entry(entry_id: str, caller: CurrentCaller, services: Services):
    """Get a single time entry."""
    result = await GetTimeEntryUseCase(services).execute(caller, entry_id)
    return unwrap(result)


@router.patch("/{entry_id}", response_model=TimeEntryResponseDTO)
async def correct_time_entry(
    entry_id: str,
    request: CorrectTimeEntryRequestDTO,
    caller: CurrentCaller,
    services: Services,
):
    """
    Correct a stopped time entry.

    - **duration**: Corrected duration in seconds
    - **project_id**: Project, or null to clear
    - **description**: Work description

    Running and paused entries are rejected with 409 ENTRY_NOT_TERMINAL.
    """
    result = await CorrectTimeEntryUseCase(services).for_entry(entry_id).execute(caller, request)
    return unwrap(result)
