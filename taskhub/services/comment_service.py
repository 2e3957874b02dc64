"""Comments and attachment metadata on tasks."""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from taskhub.crud.comment import attachment as attachment_crud, comment as comment_crud
from taskhub.db.types import utcnow
from taskhub.models.task import TaskAttachment, TaskComment
from taskhub.schemas.comment import AttachmentCreate, CommentCreate, CommentUpdate
from taskhub.services.task_service import task_service

logger = logging.getLogger(__name__)


class CommentService:
    """Comment and attachment use cases; all go through the task access gate."""

    @staticmethod
    async def add_comment(
        db: AsyncSession, *, task_id: int, comment_in: CommentCreate, actor_id: int
    ) -> TaskComment:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        content = comment_in.content.strip()
        if not content:
            raise ValidationError("Content", "comment cannot be empty")
        if comment_in.parent_comment_id is not None:
            parent = await comment_crud.get_active(
                db, task_id=task_id, comment_id=comment_in.parent_comment_id
            )
            if parent is None:
                raise ValidationError("ParentComment", "reply must target a comment on the same task")

        comment_obj = await comment_crud.create(
            db,
            obj_in={
                "task_id": task_id,
                "author_id": actor_id,
                "content": content,
                "parent_comment_id": comment_in.parent_comment_id,
            },
        )
        logger.info(f"Comment {comment_obj.id} added to task {task_id} by user {actor_id}")
        return comment_obj

    @staticmethod
    async def list_comments(db: AsyncSession, *, task_id: int, actor_id: int) -> List[TaskComment]:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        return await comment_crud.list_for_task(db, task_id=task_id)

    @staticmethod
    async def _own_comment(db: AsyncSession, task_id: int, comment_id: int, actor_id: int) -> TaskComment:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        comment_obj = await comment_crud.get_active(db, task_id=task_id, comment_id=comment_id)
        if comment_obj is None:
            raise NotFoundError("Comment", comment_id)
        if comment_obj.author_id != actor_id:
            raise ForbiddenError(message_key="errors.comment_author_only")
        return comment_obj

    @staticmethod
    async def edit_comment(
        db: AsyncSession, *, task_id: int, comment_id: int, comment_in: CommentUpdate, actor_id: int
    ) -> TaskComment:
        comment_obj = await CommentService._own_comment(db, task_id, comment_id, actor_id)
        content = comment_in.content.strip()
        if not content:
            raise ValidationError("Content", "comment cannot be empty")
        return await comment_crud.update(
            db,
            db_obj=comment_obj,
            obj_in={"content": content, "is_edited": True, "updated_at": utcnow()},
        )

    @staticmethod
    async def delete_comment(db: AsyncSession, *, task_id: int, comment_id: int, actor_id: int) -> None:
        comment_obj = await CommentService._own_comment(db, task_id, comment_id, actor_id)
        await comment_crud.update(db, db_obj=comment_obj, obj_in={"deleted_at": utcnow()})
        logger.info(f"Comment {comment_id} on task {task_id} deleted by user {actor_id}")

    @staticmethod
    async def add_attachment(
        db: AsyncSession, *, task_id: int, attachment_in: AttachmentCreate, actor_id: int
    ) -> TaskAttachment:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        attachment_obj = await attachment_crud.create(
            db,
            obj_in={**attachment_in.model_dump(), "task_id": task_id, "uploaded_by": actor_id},
        )
        logger.info(f"Attachment {attachment_obj.id} ({attachment_obj.file_name}) added to task {task_id}")
        return attachment_obj

    @staticmethod
    async def list_attachments(db: AsyncSession, *, task_id: int, actor_id: int) -> List[TaskAttachment]:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        return await attachment_crud.list_for_task(db, task_id=task_id)

    @staticmethod
    async def delete_attachment(
        db: AsyncSession, *, task_id: int, attachment_id: int, actor_id: int
    ) -> None:
        await task_service.get_task(db, task_id=task_id, actor_id=actor_id)
        attachment_obj = await attachment_crud.get_active(db, task_id=task_id, attachment_id=attachment_id)
        if attachment_obj is None:
            raise NotFoundError("Attachment", attachment_id)
        if attachment_obj.uploaded_by != actor_id:
            raise ForbiddenError(message_key="errors.attachment_uploader_only")
        await attachment_crud.update(db, db_obj=attachment_obj, obj_in={"deleted_at": utcnow()})


comment_service = CommentService()
