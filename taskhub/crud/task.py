"""Task CRUD operations.

Maps ``Task`` rows to the engine's ``TaskState`` and back, and writes a task
together with its history rows in a single transaction.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import asc, case, desc, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from taskhub.core.exceptions import StaleTaskError
from taskhub.crud.base import CRUDBase
from taskhub.engine.audit import as_utc
from taskhub.engine.models import AuditStamp, HistoryEntry, TaskPriority, TaskState, TaskStatus
from taskhub.models.project import Project
from taskhub.models.task import Task, TaskHistory

# Columns copied verbatim between the row and the engine state
_STATE_COLUMNS = (
    "title",
    "description",
    "project_id",
    "assignee_id",
    "status",
    "priority",
    "progress",
    "estimated_hours",
    "actual_hours",
    "tags",
    "order_index",
    "is_blocked",
    "blocked_reason",
    "parent_task_id",
)
_DATE_COLUMNS = ("due_date", "start_date", "completed_at")
_AUDIT_COLUMNS = ("created_at", "created_by", "updated_at", "updated_by", "deleted_at", "deleted_by")

SORT_FIELDS = ("created_at", "priority", "due_date", "title", "order_index")

_PRIORITY_RANK = case(
    (Task.priority == TaskPriority.CRITICAL, 1),
    (Task.priority == TaskPriority.HIGH, 2),
    (Task.priority == TaskPriority.MEDIUM, 3),
    else_=4,
)


class CRUDTask(CRUDBase[Task, dict, dict]):
    """CRUD operations for Task."""

    async def get_active(self, db: AsyncSession, *, task_id: int) -> Optional[Task]:
        """Get a task unless it is soft-deleted."""
        result = await db.execute(
            select(Task).where(Task.id == task_id, Task.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def list_for_project(
        self,
        db: AsyncSession,
        *,
        project_id: int,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assignee_id: Optional[int] = None,
        search: Optional[str] = None,
        blocked: Optional[bool] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Task], int]:
        """Filtered, sorted page of a project's active tasks plus the total count."""
        conditions = [Task.project_id == project_id, Task.deleted_at.is_(None)]
        if status is not None:
            conditions.append(Task.status == status)
        if priority is not None:
            conditions.append(Task.priority == priority)
        if assignee_id is not None:
            conditions.append(Task.assignee_id == assignee_id)
        if blocked is not None:
            conditions.append(Task.is_blocked == blocked)
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

        total = await db.scalar(select(func.count(Task.id)).where(*conditions))

        if sort_by == "priority":
            sort_column = _PRIORITY_RANK
        elif sort_by in SORT_FIELDS:
            sort_column = getattr(Task, sort_by)
        else:
            sort_column = Task.created_at
        direction = desc if descending else asc

        result = await db.execute(
            select(Task)
            .where(*conditions)
            .order_by(direction(sort_column), direction(Task.id))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_assigned(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Task]:
        """Active tasks assigned to the user in live projects, nearest due date first."""
        query = (
            select(Task)
            .join(Project, Project.id == Task.project_id)
            .where(
                Task.assignee_id == user_id,
                Task.deleted_at.is_(None),
                Project.deleted_at.is_(None),
            )
        )
        if status is not None:
            query = query.where(Task.status == status)
        result = await db.execute(
            query.order_by(Task.due_date.is_(None), Task.due_date, Task.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def list_subtasks(self, db: AsyncSession, *, parent_id: int) -> List[Task]:
        result = await db.execute(
            select(Task)
            .where(Task.parent_task_id == parent_id, Task.deleted_at.is_(None))
            .order_by(Task.order_index, Task.id)
        )
        return list(result.scalars().all())

    async def has_subtasks(self, db: AsyncSession, *, task_id: int) -> bool:
        return bool(
            await db.scalar(
                select(
                    exists().where(Task.parent_task_id == task_id, Task.deleted_at.is_(None))
                )
            )
        )

    async def get_history(self, db: AsyncSession, *, task_id: int) -> List[TaskHistory]:
        """History rows of a task, oldest first."""
        result = await db.execute(
            select(TaskHistory)
            .where(TaskHistory.task_id == task_id)
            .order_by(TaskHistory.changed_at, TaskHistory.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def to_state(db_obj: Task) -> TaskState:
        """Snapshot a row as engine state."""
        values = {name: getattr(db_obj, name) for name in _STATE_COLUMNS}
        values.update({name: as_utc(getattr(db_obj, name)) for name in _DATE_COLUMNS})
        audit = {name: getattr(db_obj, name) for name in _AUDIT_COLUMNS}
        for name in ("created_at", "updated_at", "deleted_at"):
            audit[name] = as_utc(audit[name])
        return TaskState(
            id=db_obj.id,
            audit=AuditStamp(**audit),
            version=db_obj.version or 1,
            **values,
        )

    @staticmethod
    def apply_state(db_obj: Task, state: TaskState) -> Task:
        """Copy engine state onto a row. ``version`` is left to the mapper."""
        for name in _STATE_COLUMNS + _DATE_COLUMNS:
            setattr(db_obj, name, getattr(state, name))
        for name in _AUDIT_COLUMNS:
            setattr(db_obj, name, getattr(state.audit, name))
        return db_obj

    async def save(
        self,
        db: AsyncSession,
        *,
        db_obj: Optional[Task],
        state: TaskState,
        history: Sequence[HistoryEntry],
    ) -> Task:
        """Persist the task row and its history entries atomically.

        Pass ``db_obj=None`` to insert a new task. Raises ``StaleTaskError``
        when the row was changed by someone else since it was loaded.
        """
        task_id = state.id
        try:
            if db_obj is None:
                db_obj = self.apply_state(Task(), state)
                db.add(db_obj)
                await db.flush()
                task_id = db_obj.id
            else:
                self.apply_state(db_obj, state)

            for entry in history:
                db.add(
                    TaskHistory(
                        task_id=task_id,
                        field_name=entry.field_name,
                        old_value=entry.old_value,
                        new_value=entry.new_value,
                        changed_by=entry.changed_by,
                        changed_at=entry.changed_at,
                    )
                )
            await db.commit()
        except StaleDataError as exc:
            await db.rollback()
            raise StaleTaskError(task_id) from exc

        await db.refresh(db_obj)
        return db_obj


task = CRUDTask(Task)
