"""Comment and attachment CRUD operations."""
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from taskhub.crud.base import CRUDBase
from taskhub.models.task import TaskAttachment, TaskComment


class CRUDComment(CRUDBase[TaskComment, dict, dict]):
    """CRUD operations for TaskComment."""

    async def get_active(self, db: AsyncSession, *, task_id: int, comment_id: int) -> Optional[TaskComment]:
        """Get a live comment belonging to the task."""
        result = await db.execute(
            select(TaskComment).where(
                TaskComment.id == comment_id,
                TaskComment.task_id == task_id,
                TaskComment.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def list_for_task(self, db: AsyncSession, *, task_id: int) -> List[TaskComment]:
        """Live comments of a task, oldest first."""
        result = await db.execute(
            select(TaskComment)
            .where(TaskComment.task_id == task_id, TaskComment.deleted_at.is_(None))
            .order_by(TaskComment.created_at, TaskComment.id)
        )
        return list(result.scalars().all())


class CRUDAttachment(CRUDBase[TaskAttachment, dict, dict]):
    """CRUD operations for TaskAttachment."""

    async def get_active(
        self, db: AsyncSession, *, task_id: int, attachment_id: int
    ) -> Optional[TaskAttachment]:
        result = await db.execute(
            select(TaskAttachment).where(
                TaskAttachment.id == attachment_id,
                TaskAttachment.task_id == task_id,
                TaskAttachment.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def list_for_task(self, db: AsyncSession, *, task_id: int) -> List[TaskAttachment]:
        result = await db.execute(
            select(TaskAttachment)
            .where(TaskAttachment.task_id == task_id, TaskAttachment.deleted_at.is_(None))
            .order_by(TaskAttachment.uploaded_at, TaskAttachment.id)
        )
        return list(result.scalars().all())


comment = CRUDComment(TaskComment)
attachment = CRUDAttachment(TaskAttachment)
