"""FastAPI dependencies for authentication.

Provides:
- Current user extraction from the Bearer token
- Optional user for endpoints open to anonymous callers
- Admin-only guard
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from jose import JWTError

from lingala.auth.permissions import UserRole
from lingala.auth.schemas import UserResponse
from lingala.auth.security import decode_access_token
from lingala.core.context import set_user_id
from lingala.core.errors import AuthenticationRequiredError, PermissionDeniedError


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_payload(payload: dict) -> UserResponse:
    user_id = UUID(str(payload["sub"]))
    set_user_id(user_id)
    return UserResponse(
        id=user_id,
        email=payload["email"],
        name=payload.get("name"),
        role=payload.get("role", UserRole.USER.value),
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Get current authenticated user from JWT token.

    Raises:
        AuthenticationRequiredError: If token is missing, invalid, or expired
    """
    if not token:
        raise AuthenticationRequiredError("Access token not provided")

    try:
        payload = decode_access_token(token)
        return _user_from_payload(payload)
    except (JWTError, ValueError) as e:
        raise AuthenticationRequiredError("Invalid or expired access token") from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse | None:
    """Get current user if authenticated, None otherwise.

    An invalid token is treated as anonymous so that free-preview
    content keeps working for visitors with a stale session.
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
        return _user_from_payload(payload)
    except (JWTError, ValueError):
        return None


async def require_admin(
    user: Annotated[UserResponse, Depends(get_current_user)],
) -> UserResponse:
    """Require ADMIN role."""
    if not user.is_admin:
        raise PermissionDeniedError
    return user


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
OptionalUser = Annotated[UserResponse | None, Depends(get_current_user_optional)]
AdminUser = Annotated[UserResponse, Depends(require_admin)]
