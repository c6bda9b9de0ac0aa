"""
JWT token handler.
Validates bearer tokens and extracts the caller's identity.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt as jose_jwt

from app.domain.models.base import ValidationError
from app.domain.models.caller import Caller


class JWTHandler:
    """Handles JWT token validation and caller extraction."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.jwt_secret = secret_key
        self.jwt_algorithm = algorithm
        self.expire_minutes = expire_minutes

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string

        Returns:
            Dict containing token payload

        Raises:
            ValidationError: If token is invalid, expired or missing required claims
        """
        # Remove 'Bearer ' prefix if present
        if token.startswith('Bearer '):
            token = token[7:]

        try:
            payload = jose_jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"verify_exp": True, "verify_aud": False}
            )
        except JWTError as e:
            raise ValidationError(f"Invalid JWT token: {str(e)}", "token")

        # Validate required claims
        if not payload.get('sub'):
            raise ValidationError("Token missing user ID (sub claim)", "token")

        if not payload.get('tenant_id'):
            raise ValidationError("Token missing tenant (tenant_id claim)", "token")

        if 'exp' not in payload:
            raise ValidationError("Token missing expiration (exp claim)", "token")

        if datetime.now(timezone.utc).timestamp() > payload['exp']:
            raise ValidationError("Token has expired", "token")

        return payload

    def get_caller(self, token: str) -> Caller:
        """
        Extract the caller identity from a JWT token.

        Raises:
            ValidationError: If token is invalid
        """
        payload = self.verify_token(token)
        return Caller(
            user_id=str(payload['sub']),
            tenant_id=str(payload['tenant_id']),
            role=payload.get('role'),
        )

    def issue_token(
        self,
        user_id: str,
        tenant_id: str,
        role: Optional[str] = None,
        expires_minutes: Optional[int] = None,
    ) -> str:
        """
        Generate a token for development and testing purposes.

        Args:
            user_id: User ID to include in token
            tenant_id: Tenant the user acts in
            role: User role
            expires_minutes: Token lifetime; negative values produce an expired token

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        lifetime = self.expire_minutes if expires_minutes is None else expires_minutes
        expire = now + timedelta(minutes=lifetime)

        payload = {
            "sub": user_id,  # Subject (user ID)
            "tenant_id": tenant_id,
            "iat": int(now.timestamp()),  # Issued at
            "exp": int(expire.timestamp()),  # Expires at
        }
        if role:
            payload["role"] = role

        return jose_jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)
