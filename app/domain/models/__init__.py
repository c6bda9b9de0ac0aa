"""
Domain models for the work time tracker.
This module exports all domain entities, value objects and domain errors.
"""

# Base classes
from .base import (
    BaseEntity,
    DomainException,
    ValidationError,
    BusinessRuleViolation,
    InvalidTransition,
    ConflictActiveEntry,
    EntryBusy,
    AuthorizationError,
    EntityNotFoundError,
    TransientStoreFailure,
    IntegrityViolation,
)

# Entities
from .time_entry import (
    TimeEntry,
    TimeEntryStatus,
    Activity,
    ActivityType,
    ACTIVE_STATUSES,
    MAX_DURATION_SECONDS,
    MAX_DESCRIPTION_LENGTH,
)
from .project import Project, ProjectStatus
from .stats import DashboardStats
from .caller import Caller, ElevatedPredicate, role_predicate

__all__ = [
    # Base
    "BaseEntity",
    "DomainException",
    "ValidationError",
    "BusinessRuleViolation",
    "InvalidTransition",
    "ConflictActiveEntry",
    "EntryBusy",
    "AuthorizationError",
    "EntityNotFoundError",
    "TransientStoreFailure",
    "IntegrityViolation",

    # TimeEntry
    "TimeEntry",
    "TimeEntryStatus",
    "Activity",
    "ActivityType",
    "ACTIVE_STATUSES",
    "MAX_DURATION_SECONDS",
    "MAX_DESCRIPTION_LENGTH",

    # Project
    "Project",
    "ProjectStatus",

    # Stats
    "DashboardStats",

    # Caller
    "Caller",
    "ElevatedPredicate",
    "role_predicate",
]
