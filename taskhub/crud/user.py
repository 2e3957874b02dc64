"""User CRUD operations."""
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from taskhub.crud.base import CRUDBase
from taskhub.models.user import User, Role
from taskhub.schemas.user import UserCreate
from taskhub.utils.security import get_password_hash


class CRUDUser(CRUDBase[User, UserCreate, dict]):
    """CRUD operations for User."""

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[User]:
        """Get user by email."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, db: AsyncSession, *, username: str) -> Optional[User]:
        """Get user by username."""
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create_with_roles(
        self,
        db: AsyncSession,
        *,
        obj_in: UserCreate,
        role_names: Iterable[str],
    ) -> User:
        """Create a user with a hashed password and the named roles."""
        user_data = obj_in.model_dump(exclude={"password"})
        db_obj = User(**user_data, password_hash=get_password_hash(obj_in.password))

        names = list(role_names)
        if names:
            result = await db.execute(select(Role).where(Role.name.in_(names)))
            db_obj.roles = list(result.scalars().all())

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj, ["roles"])
        return db_obj



user = CRUDUser(User)
