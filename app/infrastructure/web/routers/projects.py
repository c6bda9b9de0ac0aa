"""
Project router.
Project lists are served through the aggregate cache.
"""

from fastapi import APIRouter, Query, status

from app.application.dto.project_dto import (
    CreateProjectRequestDTO,
    UpdateProjectRequestDTO,
    ProjectResponseDTO,
    ProjectListResponseDTO,
)
from app.application.use_cases.project_use_cases import (
    CreateProjectUseCase,
    UpdateProjectUseCase,
    ListProjectsUseCase,
)
from app.infrastructure.auth.dependencies import CurrentCaller
from app.infrastructure.web.dependencies import Services
from app.infrastructure.web.middleware.error_handler import unwrap


router = APIRouter()


@router.get("", response_model=ProjectListResponseDTO)
async def list_projects(
    caller: CurrentCaller,
    services: Services,
    active: bool = Query(False, description="Only active projects"),
):
    """List the tenant's projects, newest first."""
    result = await ListProjectsUseCase(services).execute(caller, active)
    return unwrap(result)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectResponseDTO)
async def create_project(request: CreateProjectRequestDTO, caller: CurrentCaller, services: Services):
    """
    Create a new project (elevated roles only).

    - **name**: Project name (required)
    - **description**: Project description
    - **color**: Display colour as #rrggbb
    """
    result = await CreateProjectUseCase(services).execute(caller, request)
    return unwrap(result)


@router.patch("/{project_id}", response_model=ProjectResponseDTO)
async def update_project(
    project_id: str,
    request: UpdateProjectRequestDTO,
    caller: CurrentCaller,
    services: Services,
):
    """Rename, archive or reactivate a project (elevated roles only)."""
    result = await UpdateProjectUseCase(services).for_project(project_id).execute(caller, request)
    return unwrap(result)
