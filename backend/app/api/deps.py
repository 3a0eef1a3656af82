from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, Callable
import uuid

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from app.core.logging_config import set_user_id, set_school_id
from app.core.security import decode_token
from app.models.user import User, UserRole

security = HTTPBearer(auto_error=False)


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


async def _load_user(token: str, db: AsyncSession) -> User:
    payload = decode_token(token, expected_type="access")

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid token payload")

    try:
        uuid.UUID(user_id)  # Just validate, GUID type handles conversion
    except ValueError:
        raise InvalidTokenError("Invalid user ID format")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthorizationError("User account is inactive")

    return user


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(get_token),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user; any token failure stops the request"""
    if not token:
        raise AuthenticationError("Authentication required")

    user = await _load_user(token, db)

    # Rate limiter keys on this, log lines carry it
    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    if user.school_id:
        set_school_id(str(user.school_id))

    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    allowed = set(roles)

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AuthorizationError(
                f"Requires one of: {', '.join(sorted(r.value for r in allowed))}"
            )
        return current_user

    return checker


async def get_school_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """User that belongs to a school; its school_id is the tenant scope"""
    if not current_user.school_id:
        raise AuthorizationError("No school associated with this account")
    return current_user


async def get_current_admin(
    current_user: User = Depends(get_school_user)
) -> User:
    """School admin (super admins acting inside their own school also pass)"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


async def get_staff_user(
    current_user: User = Depends(get_school_user)
) -> User:
    """Admin or teacher of a school"""
    if current_user.role not in (UserRole.ADMIN, UserRole.SUPER_ADMIN, UserRole.TEACHER):
        raise AuthorizationError("Staff access required")
    return current_user


async def get_super_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Platform operator"""
    if current_user.role != UserRole.SUPER_ADMIN:
        raise AuthorizationError("Super admin access required")
    return current_user
