"""
Project DTOs for the application layer.
"""

from typing import Optional, List
from pydantic import Field, field_validator

from app.domain.models.project import Project, ProjectStatus, MAX_PROJECT_NAME_LENGTH
from .base_dto import RequestDTO, ResponseDTO, BaseDTO


class CreateProjectRequestDTO(RequestDTO):
    """DTO for project creation."""

    name: str = Field(min_length=1, max_length=MAX_PROJECT_NAME_LENGTH, description="Project name")
    description: Optional[str] = Field(default=None, max_length=2000, description="Project description")
    color: str = Field(default="#3b82f6", pattern=r"^#[0-9a-fA-F]{6}$", description="Display colour")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Project name cannot be blank')
        return v.strip()


class UpdateProjectRequestDTO(RequestDTO):
    """DTO for renaming, archiving or reactivating a project."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=MAX_PROJECT_NAME_LENGTH)
    status: Optional[ProjectStatus] = Field(default=None, description="active or archived")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Project name cannot be blank')
        return v.strip() if v else v


class ProjectResponseDTO(ResponseDTO):
    """DTO for project responses."""

    tenant_id: str
    name: str
    description: Optional[str] = None
    color: str
    status: ProjectStatus

    @classmethod
    def from_entity(cls, project: Project) -> "ProjectResponseDTO":
        return cls(
            id=project.id,
            tenant_id=project.tenant_id,
            name=project.name,
            description=project.description,
            color=project.color,
            status=project.status,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectListResponseDTO(BaseDTO):
    """DTO for project listings."""

    items: List[ProjectResponseDTO]
    count: int
