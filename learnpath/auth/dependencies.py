"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the bearer token
- Role-based access control
- The user directory service
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from learnpath.auth.permissions import UserRole, has_permission
from learnpath.auth.schemas import UserResponse
from learnpath.auth.security import decode_access_token
from learnpath.auth.service import UserService
from learnpath.core.context import set_user_id


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
    user_id = payload["sub"]
    set_user_id(user_id)
    return UserResponse(
        id=user_id,
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        role=payload.get("role", UserRole.USER.value),
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Get current authenticated user from the access token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return _user_from_payload(payload)


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse | None:
    """Get current user if authenticated, None otherwise."""
    if not token:
        return None

    try:
        return _user_from_payload(decode_access_token(token))
    except JWTError:
        return None


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Uses hierarchical comparison: ADMIN >= TEACHER >= STUDENT >= USER
    """

    async def permission_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


async def get_user_service(request: Request) -> UserService:
    """Get user service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "user_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User service not available",
        )
    return app_state.user_service


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
OptionalUser = Annotated[UserResponse | None, Depends(get_current_user_optional)]
StudentUser = Annotated[UserResponse, Depends(require_permission(UserRole.STUDENT))]
TeacherUser = Annotated[UserResponse, Depends(require_permission(UserRole.TEACHER))]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
