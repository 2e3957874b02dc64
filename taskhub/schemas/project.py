"""Project schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskhub.models.project import ProjectRole, ProjectStatus


class ProjectBase(BaseModel):
    """Base project schema."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    team_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)
    status: ProjectStatus = ProjectStatus.ACTIVE
    priority: int = Field(3, ge=1, le=4)
    is_public: bool = False
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    """Partial project update."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    team_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)
    status: Optional[ProjectStatus] = None
    priority: Optional[int] = Field(None, ge=1, le=4)
    is_public: Optional[bool] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class ProjectResponse(ProjectBase):
    """Project response schema."""

    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectMemberCreate(BaseModel):
    user_id: int
    role: ProjectRole = ProjectRole.EDITOR


class ProjectMemberResponse(BaseModel):
    id: int
    project_id: int
    user_id: int
    role: ProjectRole
    added_at: datetime

    class Config:
        from_attributes = True
