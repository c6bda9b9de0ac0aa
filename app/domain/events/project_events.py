"""
Domain events related to projects.
"""

from typing import Dict, Any

from .base import DomainEvent


class ProjectChanged(DomainEvent):
    """Event fired when a project is created, renamed, archived or reactivated."""

    def __init__(self,
                 tenant_id: str,
                 project: Dict[str, Any],
                 change: str,
                 **kwargs):
        super().__init__(tenant_id=tenant_id, **kwargs)
        self.project = project
        self.change = change

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "project": self.project,
            "change": self.change,
        }
