"""Task comment and attachment endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database import get_db
from taskhub.dependencies import get_current_active_user
from taskhub.models.user import User
from taskhub.schemas.comment import (
    AttachmentCreate,
    AttachmentResponse,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
)
from taskhub.services.comment_service import comment_service

router = APIRouter()


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Comment on a task, optionally replying to another comment."""
    return await comment_service.add_comment(db, task_id=task_id, comment_in=payload, actor_id=current_user.id)


@router.get("/{task_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await comment_service.list_comments(db, task_id=task_id, actor_id=current_user.id)


@router.put("/{task_id}/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    task_id: int,
    comment_id: int,
    payload: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await comment_service.edit_comment(
        db, task_id=task_id, comment_id=comment_id, comment_in=payload, actor_id=current_user.id
    )


@router.delete("/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    task_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    await comment_service.delete_comment(db, task_id=task_id, comment_id=comment_id, actor_id=current_user.id)


@router.post(
    "/{task_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_attachment(
    task_id: int,
    payload: AttachmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Register a file already stored elsewhere."""
    return await comment_service.add_attachment(
        db, task_id=task_id, attachment_in=payload, actor_id=current_user.id
    )


@router.get("/{task_id}/attachments", response_model=List[AttachmentResponse])
async def list_attachments(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return await comment_service.list_attachments(db, task_id=task_id, actor_id=current_user.id)


@router.delete("/{task_id}/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    task_id: int,
    attachment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    await comment_service.delete_attachment(
        db, task_id=task_id, attachment_id=attachment_id, actor_id=current_user.id
    )
