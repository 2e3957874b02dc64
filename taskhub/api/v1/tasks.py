"""Task endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database import get_db
from taskhub.dependencies import get_current_active_user
from taskhub.engine import TaskStatus
from taskhub.models.user import User
from taskhub.schemas.task import (
    TaskAssign,
    TaskBlock,
    TaskCreate,
    TaskHistoryResponse,
    TaskProgressUpdate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskhub.services.task_service import task_service

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a task in a project the caller can access."""
    return await task_service.create_task(db, task_in=payload, actor_id=current_user.id)


@router.get("/assigned-to-me", response_model=List[TaskResponse])
async def list_assigned_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.list_assigned_tasks(
        db, actor_id=current_user.id, status=status_filter, skip=skip, limit=limit
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.get_task(db, task_id=task_id, actor_id=current_user.id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Partial update; fields absent from the body are left alone."""
    return await task_service.update_task(
        db,
        task_id=task_id,
        changes=payload.to_changes(),
        actor_id=current_user.id,
        parent_task_id=payload.parent_task_id,
        set_parent="parent_task_id" in payload.model_fields_set,
        expected_version=payload.expected_version,
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Soft-delete a task."""
    await task_service.delete_task(db, task_id=task_id, actor_id=current_user.id)


@router.post("/{task_id}/restore", response_model=TaskResponse)
async def restore_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.restore_task(db, task_id=task_id, actor=current_user)


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def change_status(
    task_id: int,
    payload: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.change_status(
        db,
        task_id=task_id,
        new_status=payload.status,
        actor_id=current_user.id,
        expected_version=payload.expected_version,
    )


@router.patch("/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: int,
    payload: TaskAssign,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Assign the task, or unassign it with a null ``assignee_id``."""
    return await task_service.assign_task(
        db,
        task_id=task_id,
        assignee_id=payload.assignee_id,
        actor_id=current_user.id,
        expected_version=payload.expected_version,
    )


@router.patch("/{task_id}/progress", response_model=TaskResponse)
async def update_progress(
    task_id: int,
    payload: TaskProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.update_progress(
        db,
        task_id=task_id,
        progress=payload.progress,
        actor_id=current_user.id,
        expected_version=payload.expected_version,
    )


@router.post("/{task_id}/block", response_model=TaskResponse)
async def block_task(
    task_id: int,
    payload: TaskBlock,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.block_task(
        db,
        task_id=task_id,
        reason=payload.reason,
        actor_id=current_user.id,
        expected_version=payload.expected_version,
    )


@router.post("/{task_id}/unblock", response_model=TaskResponse)
async def unblock_task(
    task_id: int,
    expected_version: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.unblock_task(
        db, task_id=task_id, actor_id=current_user.id, expected_version=expected_version
    )


@router.get("/{task_id}/history", response_model=List[TaskHistoryResponse])
async def get_task_history(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Audit history of a task, oldest first."""
    return await task_service.get_history(db, task_id=task_id, actor_id=current_user.id)


@router.get("/{task_id}/subtasks", response_model=List[TaskResponse])
async def list_subtasks(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await task_service.list_subtasks(db, task_id=task_id, actor_id=current_user.id)
