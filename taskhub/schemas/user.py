"""User schemas."""
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime


class RoleResponse(BaseModel):
    """Role response schema."""

    id: int
    name: str
    permissions: List[str]
    description: Optional[str] = None

    class Config:
        from_attributes = True


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    full_name: Optional[str] = None


class UserCreate(UserBase):
    """Self-registration payload."""

    password: str = Field(..., min_length=6)


class UserResponse(UserBase):
    """User response schema."""

    id: int
    is_active: bool
    roles: List[RoleResponse] = []
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True
