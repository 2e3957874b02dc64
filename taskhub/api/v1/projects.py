"""Project endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.core.security import Permission
from taskhub.database import get_db
from taskhub.dependencies import get_current_active_user, require_permission
from taskhub.engine import TaskPriority, TaskStatus
from taskhub.models.user import User
from taskhub.schemas.common import PaginatedResponse
from taskhub.schemas.project import (
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdate,
)
from taskhub.schemas.task import TaskResponse
from taskhub.services.project_service import project_service
from taskhub.services.task_service import task_service

router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PROJECT_CREATE)),
):
    """Create a project owned by the caller."""
    return await project_service.create_project(db, project_in=payload, actor_id=current_user.id)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Projects the caller owns, belongs to, or that are public."""
    return await project_service.list_projects(db, actor_id=current_user.id, skip=skip, limit=limit)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await project_service.get_project(db, project_id=project_id, actor_id=current_user.id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await project_service.update_project(
        db, project_id=project_id, project_in=payload, actor_id=current_user.id
    )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Soft-delete a project."""
    await project_service.delete_project(db, project_id=project_id, actor_id=current_user.id)


@router.get("/{project_id}/members", response_model=List[ProjectMemberResponse])
async def list_members(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await project_service.list_members(db, project_id=project_id, actor_id=current_user.id)


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    project_id: int,
    payload: ProjectMemberCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await project_service.add_member(
        db, project_id=project_id, member_in=payload, actor_id=current_user.id
    )


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    await project_service.remove_member(
        db, project_id=project_id, user_id=user_id, actor_id=current_user.id
    )


@router.get("/{project_id}/tasks", response_model=PaginatedResponse[TaskResponse])
async def list_project_tasks(
    project_id: int,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    assignee_id: Optional[int] = None,
    search: Optional[str] = None,
    blocked: Optional[bool] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|priority|due_date|title|order_index)$"),
    sort_desc: bool = True,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Filtered, sorted and paginated task listing of a project."""
    effective_size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    items, total = await task_service.list_project_tasks(
        db,
        project_id=project_id,
        actor_id=current_user.id,
        status=status_filter,
        priority=priority,
        assignee_id=assignee_id,
        search=search,
        blocked=blocked,
        sort_by=sort_by,
        descending=sort_desc,
        page=page,
        page_size=effective_size,
    )
    return PaginatedResponse[TaskResponse](
        total=total,
        page=page,
        page_size=effective_size,
        items=[TaskResponse.model_validate(item) for item in items],
    )
