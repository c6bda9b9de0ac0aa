"""
Global error handling for the FastAPI application.
Maps use case failures and domain errors to consistent JSON responses, and
catches anything unexpected.
"""

import logging
import traceback
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi import FastAPI, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.application.dto.base_dto import ErrorResponseDTO
from app.application.use_cases.base_use_case import UseCaseResult
from app.domain.models.base import DomainException

logger = logging.getLogger(__name__)


ERROR_STATUS_CODES: Dict[str, int] = {
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "CONFLICT_ACTIVE_ENTRY": status.HTTP_409_CONFLICT,
    "ENTRY_BUSY": status.HTTP_409_CONFLICT,
    "ENTRY_NOT_TERMINAL": status.HTTP_409_CONFLICT,
    "BUSINESS_RULE_VIOLATION": status.HTTP_400_BAD_REQUEST,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "ENTITY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TRANSIENT_STORE_FAILURE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "INTEGRITY_VIOLATION": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "INTERNAL_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

RETRY_AFTER_SECONDS = 1


def status_for(error_code: Optional[str]) -> int:
    return ERROR_STATUS_CODES.get(error_code or "", status.HTTP_500_INTERNAL_SERVER_ERROR)


def format_error_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Consistent error body: error, message, error_code, details."""
    return ErrorResponseDTO(
        error=HTTPStatus(status_code).phrase,
        message=message,
        error_code=error_code,
        details=details or {},
    ).model_dump()


def error_json_response(
    message: str,
    error_code: Optional[str],
    details: Optional[Dict[str, Any]] = None,
    retryable: bool = False,
) -> JSONResponse:
    status_code = status_for(error_code)
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if retryable else None
    return JSONResponse(
        status_code=status_code,
        content=format_error_response(status_code, message, error_code, details),
        headers=headers,
    )


class UseCaseFailed(Exception):
    """Raised by routers to turn a failed UseCaseResult into an HTTP response."""

    def __init__(self, result: UseCaseResult):
        self.result = result
        super().__init__(result.error)


def unwrap(result: UseCaseResult) -> Any:
    """Return the data of a successful result or raise UseCaseFailed."""
    if result.success:
        return result.data
    raise UseCaseFailed(result)


async def use_case_failed_handler(request: Request, exc: UseCaseFailed) -> JSONResponse:
    result = exc.result
    metadata = result.metadata or {}
    return error_json_response(
        result.error or "Request failed",
        result.error_code,
        result.details,
        retryable=bool(metadata.get("retryable")),
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Domain errors raised outside a use case."""
    if status_for(exc.code) >= 500:
        logger.error(f"Domain error at request boundary: {exc.code} - {exc.message}")
    return error_json_response(exc.message, exc.code, exc.details, retryable=exc.retryable)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle all uncaught exceptions and format error responses.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and handle any exceptions.
        """
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            return await self.handle_exception(request, exc)

    async def handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Log the exception and return a generic 500.
        """
        # Log the full exception with traceback
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
            extra={
                "request_path": request.url.path,
                "request_method": request.method,
                "client_host": request.client.host if request.client else None
            }
        )

        error_response = format_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            "INTERNAL_ERROR",
        )

        # In development, add more debug information
        if self.debug:
            error_response["debug"] = {
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n")
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response
        )


def register_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Install the exception handlers and the catch-all middleware."""
    app.add_exception_handler(UseCaseFailed, use_case_failed_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_middleware(ErrorHandlerMiddleware, debug=debug)
