"""Authentication service."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.core.exceptions import ConflictError, UnauthorizedError
from taskhub.core.security import DEFAULT_ROLE
from taskhub.crud.user import user as user_crud
from taskhub.db.types import utcnow
from taskhub.models.user import User
from taskhub.schemas.user import UserCreate
from taskhub.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service."""

    @staticmethod
    async def register_user(db: AsyncSession, user_in: UserCreate) -> User:
        """Create an account with the default role."""
        if await user_crud.get_by_email(db, email=user_in.email):
            raise ConflictError(message_key="errors.email_taken")
        if await user_crud.get_by_username(db, username=user_in.username):
            raise ConflictError(message_key="errors.username_taken")

        new_user = await user_crud.create_with_roles(db, obj_in=user_in, role_names=[DEFAULT_ROLE])
        logger.info(f"User {new_user.id} registered ({new_user.username})")
        return new_user

    @staticmethod
    async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password and record the login."""
        found = await user_crud.get_by_email(db, email=email)

        if not found or not found.is_active:
            return None

        if not verify_password(password, found.password_hash):
            return None

        found.last_login_at = utcnow()
        await db.commit()
        return found

    @staticmethod
    def _access_token(found: User) -> str:
        return create_access_token(data={"sub": str(found.id), "email": found.email})

    @staticmethod
    async def create_tokens(found: User) -> dict:
        """Create access and refresh tokens for a user."""
        return {
            "access_token": AuthService._access_token(found),
            "refresh_token": create_refresh_token(data={"sub": str(found.id)}),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    @staticmethod
    async def refresh_access_token(db: AsyncSession, refresh_token: str) -> dict:
        """Issue a new access token from a refresh token."""
        try:
            payload = decode_token(refresh_token)
        except ValueError:
            raise UnauthorizedError(message_key="errors.invalid_token")

        if payload.get("type") != "refresh":
            raise UnauthorizedError(message_key="errors.invalid_token")

        user_id = payload.get("sub")
        if not user_id or not str(user_id).isdigit():
            raise UnauthorizedError(message_key="errors.invalid_token")

        found = await user_crud.get(db, id=int(user_id))
        if not found or not found.is_active:
            raise UnauthorizedError(message_key="errors.user_inactive")

        return {
            "access_token": AuthService._access_token(found),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    @staticmethod
    def hash_password(password: str) -> str:
        return get_password_hash(password)
