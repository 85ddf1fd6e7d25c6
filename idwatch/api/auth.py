"""
idwatch API Authentication
==========================

JWT bearer authentication and profile-level authorization.

Usage:
    from idwatch.api.auth import CurrentUser, get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        return {"user_id": user.user_id}

Author: idwatch Team
Version: 1.0.0
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from idwatch.config import settings
from idwatch.logging import get_logger, set_request_user


logger = get_logger(__name__)


# =============================================================================
# Models
# =============================================================================


class UserRole(str, Enum):
    """User roles."""
    ADMIN = "admin"    # Any profile
    MEMBER = "member"  # Own profiles only


@dataclass
class CurrentUser:
    """Authenticated user context from a validated JWT."""
    user_id: str
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_access(self, owner_id: str) -> bool:
        """Owners and admins may act on a profile."""
        return self.is_admin or self.user_id == owner_id


# =============================================================================
# Token Utilities
# =============================================================================


def create_access_token(
    user_id: str,
    role: str = UserRole.MEMBER.value,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: Unique user identifier
        role: User role (admin, member)
        email: Optional email
        expires_minutes: Token TTL in minutes (default from settings)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or settings.jwt_expire_minutes),
    }
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException 401 if token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or expired token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    if "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject",
        )
    return payload


# =============================================================================
# FastAPI Dependencies
# =============================================================================

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> CurrentUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(credentials.credentials)

    try:
        role = UserRole(payload.get("role", UserRole.MEMBER.value))
    except ValueError:
        role = UserRole.MEMBER

    user = CurrentUser(
        user_id=payload["sub"],
        role=role,
        email=payload.get("email"),
    )
    set_request_user(user.user_id)
    return user

