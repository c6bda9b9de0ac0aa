"""
Project repository implementation using SQLAlchemy.
"""

from typing import Optional, List

from sqlalchemy import func, desc
from sqlalchemy.exc import IntegrityError, OperationalError, DBAPIError

from app.domain.models.project import Project, ProjectStatus
from app.domain.repositories.project_repository import ProjectRepository as ProjectRepositoryInterface
from app.domain.models.base import TransientStoreFailure
from app.infrastructure.db.database import SessionFactory, session_scope
from app.infrastructure.db.models import ProjectModel
from app.infrastructure.mappers.project_mapper import ProjectMapper


class SQLAlchemyProjectRepository(ProjectRepositoryInterface):
    """SQLAlchemy implementation of project repository."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.mapper = ProjectMapper()

    def save(self, project: Project) -> Project:
        """Save a project entity."""
        try:
            with session_scope(self.session_factory) as db:
                model = db.query(ProjectModel).filter_by(
                    tenant_id=project.tenant_id, id=project.id
                ).first()
                if model:
                    self.mapper.update_model(model, project)
                else:
                    db.add(self.mapper.domain_to_model(project))
                db.flush()
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as exc:
            raise TransientStoreFailure() from exc
        return project

    def get(self, tenant_id: str, project_id: str) -> Optional[Project]:
        """Get project by ID within the tenant."""
        with session_scope(self.session_factory) as db:
            model = db.query(ProjectModel).filter_by(tenant_id=tenant_id, id=project_id).first()
            return self.mapper.model_to_domain(model) if model else None

    def list(self, tenant_id: str, active_only: bool = False) -> List[Project]:
        """List the tenant's projects, newest first."""
        with session_scope(self.session_factory) as db:
            query = db.query(ProjectModel).filter(ProjectModel.tenant_id == tenant_id)
            if active_only:
                query = query.filter(ProjectModel.status == ProjectStatus.ACTIVE)
            query = query.order_by(desc(ProjectModel.created_at), ProjectModel.name)
            return [self.mapper.model_to_domain(model) for model in query.all()]

    def count_active(self, tenant_id: str) -> int:
        """Count active projects in the tenant."""
        with session_scope(self.session_factory) as db:
            return db.query(func.count(ProjectModel.id)).filter(
                ProjectModel.tenant_id == tenant_id,
                ProjectModel.status == ProjectStatus.ACTIVE,
            ).scalar() or 0
