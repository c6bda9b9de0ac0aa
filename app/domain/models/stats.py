"""
Dashboard statistics value object.
Derived from time entries at read time; never stored.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Any


@dataclass(frozen=True)
class DashboardStats:
    """Aggregate tracking totals for a tenant, or for a single user of it."""

    total_seconds: int
    active_users: int
    active_projects: int
    today_seconds: int
    computed_at: datetime

    @property
    def total_hours(self) -> float:
        return round(self.total_seconds / 3600, 2)

    @property
    def today_hours(self) -> float:
        return round(self.today_seconds / 3600, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["computed_at"] = self.computed_at.isoformat()
        data["total_hours"] = self.total_hours
        data["today_hours"] = self.today_hours
        return data
