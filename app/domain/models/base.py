"""
Base entity and domain exceptions.
This module contains the foundational classes for all domain entities.
"""

from datetime import datetime, timezone
from typing import Optional, Any, Dict
from dataclasses import dataclass, field
from enum import Enum
import uuid


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque entity identifier."""
    return str(uuid.uuid4())


@dataclass
class BaseEntity:
    """
    Base class for all domain entities.
    Provides identity, timestamps and equality by id.
    """

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if they have the same ID and are of the same type."""
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on entity ID."""
        return hash((self.__class__.__name__, self.id))

    def mark_as_updated(self, when: Optional[datetime] = None) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = when or utcnow()

    def validate(self) -> None:
        """
        Validate the entity's state.
        Should be overridden by subclasses to implement specific validation rules.
        Raises ValidationError if the entity is in an invalid state.
        """
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to a JSON-friendly dictionary."""
        data = {}
        for key, value in self.__dict__.items():
            if key.startswith('_'):
                continue
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, Enum):
                data[key] = value.value
            else:
                data[key] = value
        return data


class DomainException(Exception):
    """Base exception for domain errors."""

    retryable = False

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    @property
    def details(self) -> Dict[str, Any]:
        """Structured, caller-actionable details of the error."""
        return {}


class ValidationError(DomainException):
    """Exception raised when input or entity validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "VALIDATION_ERROR")
        self.field = field

    @property
    def details(self) -> Dict[str, Any]:
        return {"field": self.field} if self.field else {}


class BusinessRuleViolation(DomainException):
    """Exception raised when a business rule is violated."""

    def __init__(self, message: str, code: str = "BUSINESS_RULE_VIOLATION"):
        super().__init__(message, code)


class InvalidTransition(BusinessRuleViolation):
    """Requested lifecycle operation is not legal from the entry's current status."""

    def __init__(self, operation: str, current_status: str):
        super().__init__(
            f"Cannot {operation} a time entry that is {current_status}",
            "INVALID_TRANSITION"
        )
        self.operation = operation
        self.current_status = current_status

    @property
    def details(self) -> Dict[str, Any]:
        return {"operation": self.operation, "current_status": self.current_status}


class ConflictActiveEntry(BusinessRuleViolation):
    """A start was attempted while the user already has a non-stopped entry."""

    def __init__(self, active_entry_id: Optional[str]):
        super().__init__(
            "You already have an active time entry; resume or stop it first",
            "CONFLICT_ACTIVE_ENTRY"
        )
        self.active_entry_id = active_entry_id

    @property
    def details(self) -> Dict[str, Any]:
        return {"active_entry_id": self.active_entry_id}


class EntryBusy(DomainException):
    """Another operation for the same user holds the write lock; retry shortly."""

    retryable = True

    def __init__(self, user_id: str, timeout_seconds: float):
        super().__init__(
            "Another time tracking operation for this user is in progress; please retry",
            "ENTRY_BUSY"
        )
        self.user_id = user_id
        self.timeout_seconds = timeout_seconds

    @property
    def details(self) -> Dict[str, Any]:
        return {"retryable": True}


class AuthorizationError(DomainException):
    """Caller lacks rights over the target user's or tenant's entry."""

    def __init__(self, message: str = "You are not allowed to act on this time entry"):
        super().__init__(message, "FORBIDDEN")


class EntityNotFoundError(DomainException):
    """Exception raised when an entity is not found within the caller's tenant."""

    def __init__(self, entity_type: str, entity_id: Any):
        message = f"{entity_type} with id {entity_id} not found"
        super().__init__(message, "ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.entity_id = entity_id

    @property
    def details(self) -> Dict[str, Any]:
        return {"entity_type": self.entity_type, "entity_id": self.entity_id}


class TransientStoreFailure(DomainException):
    """The underlying store is unavailable; nothing was applied and retrying is safe."""

    retryable = True

    def __init__(self, message: str = "The time entry store is temporarily unavailable; please retry"):
        super().__init__(message, "TRANSIENT_STORE_FAILURE")

    @property
    def details(self) -> Dict[str, Any]:
        return {"retryable": True}


class IntegrityViolation(DomainException):
    """The store holds data that breaks an invariant the write path guarantees."""

    def __init__(self, message: str, entry_ids: Optional[list] = None):
        super().__init__(message, "INTEGRITY_VIOLATION")
        self.entry_ids = entry_ids or []
