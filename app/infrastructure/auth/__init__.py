"""
Authentication infrastructure module.
Handles JWT validation and caller resolution.
"""

from .jwt_handler import JWTHandler
from .dependencies import get_current_caller, authenticate_connection, CurrentCaller

__all__ = [
    "JWTHandler",
    "get_current_caller",
    "authenticate_connection",
    "CurrentCaller",
]
