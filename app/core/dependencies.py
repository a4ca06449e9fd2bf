"""
app/core/dependencies.py

Authentication and Authorization Dependencies

Provides authentication and role-based access control (RBAC) for FastAPI routes:
- Validates JWT tokens from Bearer header OR HttpOnly cookie
- Checks against blacklisted tokens (logout protection)
- Retrieves authenticated user from the database
- Restricts access based on user roles

Pagination Dependency:
- Provides reusable dependency for pagination (skip, limit).
"""

import logging
from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Cookie, Depends, HTTPException, Query, WebSocket, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import TokenPayload
from app.core.blacklist import is_token_blacklisted
from app.core.config import settings
from app.database.enums import UserRole
from app.database.models import User
from app.database.session import get_db

logger = logging.getLogger(__name__)

# auto_error is off so a missing header falls through to the cookie check
oauth2_scheme: OAuth2PasswordBearer = OAuth2PasswordBearer(
    tokenUrl="/auth/login/oauth", auto_error=False
)


# ---------------------------------------------------
# Pagination Dependency
# ---------------------------------------------------
class PaginationParams:
    """
    Dependency that provides pagination parameters from query parameters.
    """

    def __init__(
        self,
        skip: int = Query(0, ge=0, description="Number of records to skip for pagination"),
        limit: int = Query(50, ge=1, le=200, description="Maximum number of records to return"),
    ):
        self.skip = skip
        self.limit = limit


# ---------------------------------------------------
# Authentication Functions
# ---------------------------------------------------
async def _resolve_user(token: str, db: AsyncSession) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenPayload(**payload)
    except (JWTError, ValidationError) as e:
        logger.warning(f"[AUTH] JWT decoding/validation failed: {e}")
        raise credentials_exception

    if await is_token_blacklisted(token_data.jti):
        logger.warning(f"[AUTH] Blacklisted token detected: jti={token_data.jti}")
        raise credentials_exception

    result = await db.execute(select(User).filter(User.id == token_data.sub))
    user = result.unique().scalar_one_or_none()

    if not user:
        logger.warning(f"[AUTH] JWT valid but no matching user found: user_id={token_data.sub}")
        raise credentials_exception

    if not user.is_active:
        logger.warning(f"[AUTH] Authentication attempt by suspended user: {user.id}")
        raise credentials_exception

    return user


async def get_current_user(
    token_header: Annotated[str | None, Depends(oauth2_scheme)] = None,
    token_cookie: Annotated[str | None, Cookie(alias="access_token")] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Authenticate the current user from the Bearer header, falling back to
    the HttpOnly cookie.

    Raises:
        HTTPException: 401 Unauthorized if authentication fails.
    """
    token = token_header or token_cookie
    if token is None:
        logger.debug("[AUTH] No token found in Authorization header or access_token cookie.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await _resolve_user(token, db)
    logger.debug(
        f"[AUTH] User {user.id} authenticated via {'Header' if token_header else 'Cookie'}."
    )
    return user


async def get_current_user_from_ws(websocket: WebSocket, db: AsyncSession) -> User | None:
    """
    Authenticate a WebSocket client. Closes the socket with a policy
    violation and returns None when authentication fails.
    """
    token_header = websocket.headers.get("Authorization")
    token = None
    if token_header and token_header.startswith("Bearer "):
        token = token_header.removeprefix("Bearer ")
    else:
        token = websocket.cookies.get("access_token") or websocket.query_params.get("token")

    if not token:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Authentication token missing."
        )
        return None

    try:
        return await _resolve_user(token, db)
    except HTTPException as e:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason=f"Authentication failed: {e.detail}"
        )
        return None


# ---------------------------------------------------
# Authorization Functions (Role-Based)
# ---------------------------------------------------
def get_current_user_with_role(required_role: UserRole) -> Callable[..., Coroutine[Any, Any, User]]:
    """
    Dependency to restrict access to users with a specific role.
    """

    async def role_dependency(user: User = Depends(get_current_user)) -> User:
        if user.role != required_role:
            logger.warning(
                f"[RBAC] Access denied: User {user.id} role={user.role}, required={required_role}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role: {user.role.value}",
            )
        return user

    return role_dependency


def require_roles(*roles: UserRole) -> Callable[..., Coroutine[Any, Any, User]]:
    """
    Dependency to restrict access to users having any of the specified roles.
    """

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(
                f"[RBAC] Access denied: User {user.id} with role {user.role} attempted access (allowed roles: {roles})"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role: {user.role.value}",
            )
        return user

    return checker


# ---------------------------------------------------
# Shared Annotated Aliases
# ---------------------------------------------------
DBDep = Annotated[AsyncSession, Depends(get_db)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user_with_role(UserRole.USER))]
AuthenticatedVendorDep = Annotated[User, Depends(get_current_user_with_role(UserRole.VENDOR))]
AuthenticatedRiderDep = Annotated[User, Depends(get_current_user_with_role(UserRole.RIDER))]
AuthenticatedAdminDep = Annotated[User, Depends(get_current_user_with_role(UserRole.ADMIN))]
