"""Project repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.project import Project


class ProjectRepository(ABC):
    """Repository interface for tenant-scoped projects."""

    @abstractmethod
    def save(self, project: Project) -> Project:
        """Insert or update a project."""
        pass

    @abstractmethod
    def get(self, tenant_id: str, project_id: str) -> Optional[Project]:
        """Find a project by id within a tenant."""
        pass

    @abstractmethod
    def list(self, tenant_id: str, active_only: bool = False) -> List[Project]:
        """List a tenant's projects, newest first."""
        pass

    @abstractmethod
    def count_active(self, tenant_id: str) -> int:
        """Number of active projects in the tenant."""
        pass
