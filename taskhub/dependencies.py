"""FastAPI dependencies: the authenticated caller and permission guards."""
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.core.exceptions import ForbiddenError, UnauthorizedError
from taskhub.core.security import Permission
from taskhub.crud.user import user as user_crud
from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.utils.permissions import has_permission
from taskhub.utils.security import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")


def _access_token_subject(token: str) -> Optional[int]:
    """User id carried by a valid access token, or None."""
    try:
        payload = decode_token(token)
    except ValueError:
        return None
    subject = payload.get("sub")
    if payload.get("type") != "access" or subject is None or not str(subject).isdigit():
        return None
    return int(subject)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user row."""
    user_id = _access_token_subject(token)
    current = await user_crud.get(db, id=user_id) if user_id is not None else None
    if current is None:
        raise UnauthorizedError(message_key="errors.invalid_credentials_token")
    return current


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise ForbiddenError(message_key="errors.user_inactive")
    return current_user


def require_permission(permission: Permission):
    """Guard a route with one RBAC permission; yields the caller."""

    async def permission_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not has_permission(current_user, permission):
            raise ForbiddenError(message_key="errors.permission_required", permission=permission.value)
        return current_user

    return permission_checker
