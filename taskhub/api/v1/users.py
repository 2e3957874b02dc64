"""Users API endpoints."""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from taskhub.database import get_db
from taskhub.dependencies import require_permission
from taskhub.models.user import User
from taskhub.core.security import Permission
from taskhub.crud.user import user
from taskhub.schemas.user import UserResponse

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.USER_VIEW)),
):
    """List all users."""
    return await user.get_multi(db, skip=skip, limit=limit)
