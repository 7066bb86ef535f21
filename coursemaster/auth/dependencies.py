"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current principal extraction from the bearer token
- Role-based access control
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError

from coursemaster.auth.permissions import UserRole, has_permission
from coursemaster.auth.schemas import Principal
from coursemaster.auth.security import decode_access_token
from coursemaster.core.context import set_user_id, set_user_role


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


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal:
    """Get the verified caller from the access token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        principal = Principal(
            id=UUID(str(payload["sub"])),
            role=payload["role"],
            email=payload.get("email"),
        )
    except (JWTError, ValueError, PydanticValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(principal.id)
    set_user_role(principal.role.value)
    return principal


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal | None:
    """Get current user if authenticated, None otherwise.

    Use this for endpoints that work for both authenticated and anonymous users.
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
        principal = Principal(
            id=UUID(str(payload["sub"])),
            role=payload["role"],
            email=payload.get("email"),
        )
    except (JWTError, ValueError, PydanticValidationError):
        return None

    set_user_id(principal.id)
    set_user_role(principal.role.value)
    return principal


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Example:
        @router.get("/admin/reports")
        async def reports(
            user: Annotated[Principal, Depends(require_permission(UserRole.ADMIN))]
        ):
            ...
    """

    async def permission_checker(
        user: Annotated[Principal, Depends(get_current_user)],
    ) -> Principal:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )
        return user

    return permission_checker


CurrentUser = Annotated[Principal, Depends(get_current_user)]

# Optional user (for endpoints that work both ways)
OptionalUser = Annotated[Principal | None, Depends(get_current_user_optional)]

AdminUser = Annotated[Principal, Depends(require_permission(UserRole.ADMIN))]
