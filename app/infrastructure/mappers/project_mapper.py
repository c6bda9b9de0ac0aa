"""
Project mapper for converting between domain entities and database models.
"""

from app.domain.models.project import Project, ProjectStatus
from app.infrastructure.db.models import ProjectModel
from app.infrastructure.mappers.time_entry_mapper import as_utc


class ProjectMapper:
    """Maps between Project domain entity and ProjectModel database model."""

    def domain_to_model(self, project: Project) -> ProjectModel:
        """Convert Project domain entity to ProjectModel."""
        model = ProjectModel(id=project.id, created_at=project.created_at)
        return self.update_model(model, project)

    def update_model(self, model: ProjectModel, project: Project) -> ProjectModel:
        model.tenant_id = project.tenant_id
        model.name = project.name
        model.description = project.description
        model.color = project.color
        model.status = project.status
        model.updated_at = project.updated_at
        return model

    def model_to_domain(self, model: ProjectModel) -> Project:
        """Convert ProjectModel to Project domain entity."""
        return Project(
            id=model.id,
            tenant_id=model.tenant_id,
            name=model.name,
            description=model.description,
            color=model.color or "#3b82f6",
            status=ProjectStatus(model.status),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )
