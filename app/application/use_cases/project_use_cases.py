"""
Project use cases for the application layer.
Project lists are read through the aggregate cache; writes invalidate it.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from app.application.dto.project_dto import (
    CreateProjectRequestDTO,
    UpdateProjectRequestDTO,
    ProjectResponseDTO,
    ProjectListResponseDTO,
)
from app.application.use_cases.base_use_case import CommandUseCase, QueryUseCase, AuthorizedMixin
from app.application.use_cases.context import TrackingServices
from app.domain.events.project_events import ProjectChanged
from app.domain.models.base import EntityNotFoundError
from app.domain.models.caller import Caller
from app.domain.models.project import Project, ProjectStatus
from app.infrastructure.cache.keys import CacheKeys

logger = logging.getLogger(__name__)


class ListProjectsUseCase(QueryUseCase[bool, ProjectListResponseDTO]):
    """Use case for listing the tenant's projects, optionally active ones only."""

    def __init__(self, services: TrackingServices):
        super().__init__()
        self.services = services

    async def _execute_business_logic(self, caller: Caller, active_only: Optional[bool]) -> ProjectListResponseDTO:
        active_only = bool(active_only)
        key = CacheKeys.projects(caller.tenant_id, active_only)

        def build() -> List[Dict[str, Any]]:
            projects = self.services.projects.list(caller.tenant_id, active_only=active_only)
            return [ProjectResponseDTO.from_entity(p).model_dump(mode="json") for p in projects]

        items = await asyncio.to_thread(self.services.cache.get_or_build, key, caller.tenant_id, build)

        return ProjectListResponseDTO(
            items=[ProjectResponseDTO.model_validate(item) for item in items],
            count=len(items),
        )


class CreateProjectUseCase(AuthorizedMixin, CommandUseCase[CreateProjectRequestDTO, ProjectResponseDTO]):
    """Use case for creating a project. Elevated callers only."""

    def __init__(self, services: TrackingServices):
        super().__init__(services.dispatcher)
        self.services = services
        self.is_elevated = services.is_elevated

    async def _execute_command_logic(self, caller: Caller, request: CreateProjectRequestDTO) -> ProjectResponseDTO:
        self._require_elevated(caller, "Only elevated roles can create projects")

        now = self.services.clock.now()
        project = Project(
            tenant_id=caller.tenant_id,
            name=request.name,
            description=request.description,
            color=request.color,
            created_at=now,
            updated_at=now,
        )
        project.validate()

        await asyncio.to_thread(self.services.projects.save, project)
        logger.info(f"Project {project.id} created in tenant {caller.tenant_id}")

        self.services.cache.invalidate_projects(caller.tenant_id)

        response = ProjectResponseDTO.from_entity(project)
        self.events.append(ProjectChanged(
            tenant_id=caller.tenant_id,
            project=response.model_dump(mode="json"),
            change="created",
        ))
        return response


class UpdateProjectUseCase(AuthorizedMixin, CommandUseCase[UpdateProjectRequestDTO, ProjectResponseDTO]):
    """Use case for renaming, archiving or reactivating a project. Elevated callers only."""

    def __init__(self, services: TrackingServices):
        super().__init__(services.dispatcher)
        self.services = services
        self.is_elevated = services.is_elevated
        self.project_id: Optional[str] = None

    def for_project(self, project_id: str) -> "UpdateProjectUseCase":
        self.project_id = project_id
        return self

    async def _execute_command_logic(self, caller: Caller, request: UpdateProjectRequestDTO) -> ProjectResponseDTO:
        self._require_elevated(caller, "Only elevated roles can update projects")

        project = await asyncio.to_thread(self.services.projects.get, caller.tenant_id, self.project_id)
        if not project:
            raise EntityNotFoundError("Project", self.project_id)

        if request.name is not None:
            project.name = request.name
        if request.status is not None:
            if ProjectStatus(request.status) == ProjectStatus.ARCHIVED:
                project.archive()
            else:
                project.activate()
        project.mark_as_updated(self.services.clock.now())
        project.validate()

        await asyncio.to_thread(self.services.projects.save, project)
        logger.info(f"Project {project.id} updated in tenant {caller.tenant_id}")

        self.services.cache.invalidate_projects(caller.tenant_id)

        response = ProjectResponseDTO.from_entity(project)
        self.events.append(ProjectChanged(
            tenant_id=caller.tenant_id,
            project=response.model_dump(mode="json"),
            change="updated",
        ))
        return response
