"""
SQLAlchemy models for the database.
Maps domain entities to database tables.
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Enum as SQLEnum,
    Index, CheckConstraint, text
)
from sqlalchemy.sql import func

from app.domain.models.time_entry import TimeEntryStatus, ActivityType
from app.domain.models.project import ProjectStatus
from app.infrastructure.db.database import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


ACTIVE_STATUS_CLAUSE = "status IN ('running', 'paused')"


class ProjectModel(Base):
    """Project table"""
    __tablename__ = 'projects'

    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(64), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(Text)
    color = Column(String(20), default="#3b82f6")
    status = Column(
        SQLEnum(ProjectStatus, values_callable=_enum_values, name="project_status"),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_projects_tenant_status', 'tenant_id', 'status'),
    )


class TimeEntryModel(Base):
    """Time entry table"""
    __tablename__ = 'time_entries'

    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    project_id = Column(String(36))

    description = Column(Text)
    status = Column(
        SQLEnum(TimeEntryStatus, values_callable=_enum_values, name="entry_status"),
        nullable=False,
    )
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True))
    duration = Column(Integer, nullable=False, default=0)
    last_resumed_at = Column(DateTime(timezone=True))
    paused_at = Column(DateTime(timezone=True))

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    # Constraints and indexes
    __table_args__ = (
        Index('idx_time_entries_tenant_user', 'tenant_id', 'user_id'),
        Index('idx_time_entries_tenant_start', 'tenant_id', 'start_time'),
        Index('idx_time_entries_tenant_project', 'tenant_id', 'project_id'),
        CheckConstraint('duration >= 0', name='time_entry_duration_non_negative'),
        # At most one running or paused entry per user within a tenant
        Index(
            'uq_time_entries_one_active_per_user', 'tenant_id', 'user_id',
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
    )


class ActivityModel(Base):
    """Append-only lifecycle activity table"""
    __tablename__ = 'activities'

    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    entry_id = Column(String(36), nullable=False)
    project_id = Column(String(36))

    type = Column(
        SQLEnum(ActivityType, values_callable=_enum_values, name="activity_type"),
        nullable=False,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_activities_tenant_timestamp', 'tenant_id', 'timestamp'),
        Index('idx_activities_entry', 'entry_id'),
    )
