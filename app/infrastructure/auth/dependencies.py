"""
Authentication dependencies for FastAPI.
Resolves the bearer credential into an explicit Caller.
"""

import logging
from typing import Optional, Annotated

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.requests import HTTPConnection

from app.domain.models.base import ValidationError
from app.domain.models.caller import Caller
from app.infrastructure.auth.jwt_handler import JWTHandler


logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def get_jwt_handler(request: Request) -> JWTHandler:
    """Dependency to get the application's JWT handler."""
    return request.app.state.jwt_handler


def authenticate_connection(connection: HTTPConnection) -> Caller:
    """
    Authenticate a WebSocket or streaming handshake.
    The token comes from the ``token`` query parameter or the Authorization header.

    Raises:
        ValidationError: If no valid credential is presented
    """
    token: Optional[str] = connection.query_params.get("token")
    if not token:
        header = connection.headers.get("authorization", "")
        if header.lower().startswith("bearer "):
            token = header[7:]
    if not token:
        raise ValidationError("Missing credential", "token")

    handler: JWTHandler = connection.app.state.jwt_handler
    return handler.get_caller(token)


async def get_current_caller(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)]
) -> Caller:
    """
    FastAPI dependency to get the current authenticated caller.

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return jwt_handler.get_caller(credentials.credentials)
    except ValidationError as e:
        logger.info(f"Rejected bearer credential: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
