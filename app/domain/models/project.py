"""
Project domain model.
Projects are the optional grouping a time entry is tracked against.
"""

from dataclasses import dataclass
from typing import Optional
from enum import Enum

from app.domain.models.base import BaseEntity, ValidationError

MAX_PROJECT_NAME_LENGTH = 200


class ProjectStatus(str, Enum):
    """Project status."""
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass(eq=False, kw_only=True)
class Project(BaseEntity):
    """Tenant-scoped project."""

    tenant_id: str
    name: str
    description: Optional[str] = None
    color: str = "#3b82f6"
    status: ProjectStatus = ProjectStatus.ACTIVE

    def validate(self) -> None:
        """Validate project state."""
        if not self.tenant_id:
            raise ValidationError("Tenant ID is required", "tenant_id")

        if not self.name or not self.name.strip():
            raise ValidationError("Project name is required", "name")

        if len(self.name) > MAX_PROJECT_NAME_LENGTH:
            raise ValidationError(
                f"Project name too long (max {MAX_PROJECT_NAME_LENGTH} characters)", "name"
            )

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE

    def archive(self) -> None:
        self.status = ProjectStatus.ARCHIVED
        self.mark_as_updated()

    def activate(self) -> None:
        self.status = ProjectStatus.ACTIVE
        self.mark_as_updated()
