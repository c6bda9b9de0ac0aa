"""
Base use case classes for the application layer.
Provides common patterns and structure for use case implementations.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypeVar, Generic, List
from dataclasses import dataclass
from datetime import datetime

from app.domain.events.base import DomainEvent, EventDispatcher
from app.domain.models.base import DomainException, AuthorizationError, utcnow
from app.domain.models.caller import Caller, ElevatedPredicate


logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


@dataclass
class UseCaseResult(Generic[T]):
    """Result wrapper for use case operations."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success_result(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> "UseCaseResult[T]":
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def error_result(
        cls,
        error: str,
        error_code: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> "UseCaseResult[T]":
        """Create an error result."""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            metadata=metadata
        )

    @classmethod
    def from_exception(cls, exc: Exception) -> "UseCaseResult[T]":
        """Create error result from exception, keeping domain error details."""
        if isinstance(exc, DomainException):
            return cls.error_result(
                exc.message,
                exc.code,
                metadata={"details": exc.details, "retryable": exc.retryable}
            )
        return cls.error_result("An unexpected error occurred", "INTERNAL_ERROR", metadata={"details": {}})

    @property
    def details(self) -> Dict[str, Any]:
        return (self.metadata or {}).get("details") or {}


class BaseUseCase(ABC, Generic[T, R]):
    """
    Base class for all use cases.
    Provides common structure and error handling.
    """

    def __init__(self):
        self.execution_start: Optional[datetime] = None
        self.execution_end: Optional[datetime] = None

    async def execute(self, caller: Caller, request: T = None) -> UseCaseResult[R]:
        """
        Execute the use case on behalf of ``caller`` with error handling and logging.
        """
        self.execution_start = utcnow()

        try:
            # Validate input
            await self._validate_request(caller, request)

            # Execute business logic
            result = await self._execute_business_logic(caller, request)

            self.execution_end = utcnow()
            execution_time = (self.execution_end - self.execution_start).total_seconds()

            return UseCaseResult.success_result(
                result,
                metadata={
                    "execution_time_seconds": execution_time,
                    "executed_at": self.execution_end.isoformat()
                }
            )

        except Exception as exc:
            self.execution_end = utcnow()
            execution_time = (self.execution_end - self.execution_start).total_seconds()

            if isinstance(exc, DomainException):
                logger.info(f"{self.__class__.__name__} rejected: {exc.code} - {exc.message}")
            else:
                logger.error(f"{self.__class__.__name__} failed unexpectedly: {exc}", exc_info=True)

            error_result = UseCaseResult.from_exception(exc)
            error_result.metadata.update({
                "execution_time_seconds": execution_time,
                "failed_at": self.execution_end.isoformat(),
                "exception_type": type(exc).__name__
            })

            return error_result

    async def _validate_request(self, caller: Caller, request: T) -> None:
        """
        Validate the request. Override in subclasses if needed.
        """
        if not caller or not caller.user_id or not caller.tenant_id:
            raise AuthorizationError("Authenticated caller with a tenant is required")

    @abstractmethod
    async def _execute_business_logic(self, caller: Caller, request: T) -> R:
        """
        Execute the core business logic. Must be implemented by subclasses.
        """
        pass


class QueryUseCase(BaseUseCase[T, R]):
    """
    Base class for query use cases (read operations).
    """
    pass


class CommandUseCase(BaseUseCase[T, R]):
    """
    Base class for command use cases (write operations).
    Domain events collected during the command are published after it succeeds.
    """

    def __init__(self, dispatcher: Optional[EventDispatcher] = None):
        super().__init__()
        self.dispatcher = dispatcher
        self.events: List[DomainEvent] = []

    async def _execute_business_logic(self, caller: Caller, request: T) -> R:
        """
        Execute command, then publish its events.
        """
        self.events.clear()
        result = await self._execute_command_logic(caller, request)

        # Publish domain events
        await self._publish_events()

        return result

    @abstractmethod
    async def _execute_command_logic(self, caller: Caller, request: T) -> R:
        """Execute the command logic. Must be implemented by subclasses."""
        pass

    async def _publish_events(self) -> None:
        """Publish collected domain events."""
        events, self.events = self.events, []
        if self.dispatcher is None:
            return
        for event in events:
            await self.dispatcher.dispatch(event)


class AuthorizedMixin:
    """
    Ownership and capability checks shared by use cases.
    Expects ``self.is_elevated``.
    """

    is_elevated: ElevatedPredicate

    def _require_self_or_elevated(self, caller: Caller, user_id: str) -> None:
        """Check if the caller is the target user or holds the elevated capability."""
        if caller.user_id != user_id and not self.is_elevated(caller):
            raise AuthorizationError()

    def _require_elevated(self, caller: Caller, message: str) -> None:
        if not self.is_elevated(caller):
            raise AuthorizationError(message)
