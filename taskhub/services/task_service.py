"""Task service: orchestrates loading, access checks, the task engine and persistence."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from taskhub import engine
from taskhub.config import settings
from taskhub.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StaleTaskError,
    ValidationError,
)
from taskhub.core.security import Permission
from taskhub.crud.task import task as task_crud
from taskhub.crud.user import user as user_crud
from taskhub.engine import MutationResult, TaskChanges, TaskEvent, TaskPriority, TaskState, TaskStatus
from taskhub.middleware.metrics import task_events_total
from taskhub.models.task import Task, TaskHistory
from taskhub.models.user import User
from taskhub.schemas.task import TaskCreate
from taskhub.services.access_service import access_service
from taskhub.utils.permissions import has_permission

logger = logging.getLogger(__name__)

Operation = Callable[[TaskState], MutationResult]

# Fields of a create payload applied after the task itself is built
_CREATE_EXTRAS = ("assignee_id", "due_date", "start_date", "estimated_hours", "tags")


def publish_events(events: Sequence[TaskEvent], task_id: int) -> None:
    """Log and count emitted facts. Nothing is delivered beyond the process."""
    for event in events:
        if event.task_id is None:
            event = event.with_task_id(task_id)
        task_events_total.labels(event=event.event_type).inc()
        logger.info(
            f"{event.event_type} task={event.task_id} actor={event.actor_id}",
            extra={"event": event.model_dump(mode="json")},
        )


class TaskService:
    """Task use cases. Every call carries the acting user's id explicitly."""

    @staticmethod
    async def _load(db: AsyncSession, task_id: int, *, include_deleted: bool = False) -> Task:
        if include_deleted:
            task_obj = await task_crud.get(db, id=task_id)
        else:
            task_obj = await task_crud.get_active(db, task_id=task_id)
        if task_obj is None:
            raise NotFoundError("Task", task_id)
        return task_obj

    @staticmethod
    async def _ensure_access(db: AsyncSession, task_obj: Task, actor_id: int) -> None:
        if not await access_service.project_exists(db, task_obj.project_id):
            raise NotFoundError("Project", task_obj.project_id)
        if not await access_service.has_access(db, task_obj.project_id, actor_id):
            raise AccessDeniedError()

    @staticmethod
    async def _check_assignee(db: AsyncSession, assignee_id: Optional[int]) -> None:
        if assignee_id is None:
            return
        assignee = await user_crud.get(db, id=assignee_id)
        if assignee is None or not assignee.is_active:
            raise ValidationError("Assignee", f"user {assignee_id} does not exist")

    @staticmethod
    @retry(
        retry=retry_if_exception_type(StaleTaskError),
        stop=stop_after_attempt(settings.TASK_CONFLICT_RETRIES),
        wait=wait_exponential(multiplier=0.05, max=0.5),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _mutate(
        db: AsyncSession,
        task_id: int,
        actor_id: int,
        operation: Operation,
        *,
        expected_version: Optional[int] = None,
        include_deleted: bool = False,
    ) -> Task:
        """Load, check, run one engine operation and persist it.

        A stale write is retried from a fresh read; a mismatch with the
        caller's ``expected_version`` is reported straight away.
        """
        task_obj = await TaskService._load(db, task_id, include_deleted=include_deleted)
        await TaskService._ensure_access(db, task_obj, actor_id)

        if expected_version is not None and expected_version != task_obj.version:
            raise ConflictError(
                message_key="errors.version_mismatch",
                id=task_id,
                current=task_obj.version,
                expected=expected_version,
            )

        result = operation(task_crud.to_state(task_obj))
        task_obj = await task_crud.save(db, db_obj=task_obj, state=result.task, history=result.history)
        logger.info(
            f"Task {task_id} changed by user {actor_id}: "
            f"{', '.join(entry.field_name for entry in result.history) or 'no tracked fields'}"
        )
        publish_events(result.events, task_obj.id)
        return task_obj

    @staticmethod
    async def create_task(db: AsyncSession, *, task_in: TaskCreate, actor_id: int) -> Task:
        """Create a task in Todo, then apply the optional fields of the payload."""
        await access_service.ensure_access(db, task_in.project_id, actor_id)

        provided = task_in.model_fields_set
        if "assignee_id" in provided:
            await TaskService._check_assignee(db, task_in.assignee_id)

        parent_state = None
        if task_in.parent_task_id is not None:
            parent_obj = await task_crud.get_active(db, task_id=task_in.parent_task_id)
            if parent_obj is None:
                raise ValidationError("ParentTask", f"task {task_in.parent_task_id} does not exist")
            parent_state = task_crud.to_state(parent_obj)

        created = engine.create_task(
            task_in.title,
            task_in.project_id,
            actor_id,
            description=task_in.description,
            priority=task_in.priority,
        )
        now = created.task.audit.created_at
        state = created.task
        history = list(created.history)
        events = list(created.events)

        extras = TaskChanges(**{name: getattr(task_in, name) for name in _CREATE_EXTRAS if name in provided})
        if extras.model_fields_set:
            updated = engine.apply_update(state, extras, actor_id, now=now)
            state = updated.task
            history.extend(updated.history)
            events.extend(updated.events)
        if parent_state is not None:
            parented = engine.set_parent(state, parent_state, actor_id, now=now)
            state = parented.task
            history.extend(parented.history)

        # A freshly created task has never been updated
        state = state.model_copy(update={"audit": created.task.audit})

        task_obj = await task_crud.save(db, db_obj=None, state=state, history=history)
        logger.info(f"Task {task_obj.id} created in project {task_obj.project_id} by user {actor_id}")
        publish_events(events, task_obj.id)
        return task_obj

    @staticmethod
    async def get_task(db: AsyncSession, *, task_id: int, actor_id: int) -> Task:
        task_obj = await TaskService._load(db, task_id)
        await TaskService._ensure_access(db, task_obj, actor_id)
        return task_obj

    @staticmethod
    async def list_project_tasks(
        db: AsyncSession,
        *,
        project_id: int,
        actor_id: int,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assignee_id: Optional[int] = None,
        search: Optional[str] = None,
        blocked: Optional[bool] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Tuple[List[Task], int]:
        """One page of a project's tasks and the total number of matches."""
        await access_service.ensure_access(db, project_id, actor_id)
        page = max(page, 1)
        page_size = min(max(page_size or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)
        return await task_crud.list_for_project(
            db,
            project_id=project_id,
            status=status,
            priority=priority,
            assignee_id=assignee_id,
            search=search,
            blocked=blocked,
            sort_by=sort_by,
            descending=descending,
            skip=(page - 1) * page_size,
            limit=page_size,
        )

    @staticmethod
    async def list_assigned_tasks(
        db: AsyncSession,
        *,
        actor_id: int,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Task]:
        return await task_crud.list_assigned(db, user_id=actor_id, status=status, skip=skip, limit=limit)

    @staticmethod
    async def list_subtasks(db: AsyncSession, *, task_id: int, actor_id: int) -> List[Task]:
        await TaskService.get_task(db, task_id=task_id, actor_id=actor_id)
        return await task_crud.list_subtasks(db, parent_id=task_id)

    @staticmethod
    async def get_history(db: AsyncSession, *, task_id: int, actor_id: int) -> List[TaskHistory]:
        await TaskService.get_task(db, task_id=task_id, actor_id=actor_id)
        return await task_crud.get_history(db, task_id=task_id)

    @staticmethod
    async def update_task(
        db: AsyncSession,
        *,
        task_id: int,
        changes: TaskChanges,
        actor_id: int,
        parent_task_id: Optional[int] = None,
        set_parent: bool = False,
        expected_version: Optional[int] = None,
    ) -> Task:
        """Apply a partial update as one unit.

        ``set_parent`` moves the task under ``parent_task_id`` (or to the top
        level when it is None) in the same write.
        """
        if "assignee_id" in changes.model_fields_set:
            await TaskService._check_assignee(db, changes.assignee_id)

        parent_state = None
        has_subtasks = False
        if set_parent:
            if parent_task_id is not None:
                parent_obj = await task_crud.get_active(db, task_id=parent_task_id)
                if parent_obj is None:
                    raise ValidationError("ParentTask", f"task {parent_task_id} does not exist")
                parent_state = task_crud.to_state(parent_obj)
                has_subtasks = await task_crud.has_subtasks(db, task_id=task_id)

        def operation(state: TaskState) -> MutationResult:
            now = datetime.now(timezone.utc)
            result = engine.apply_update(state, changes, actor_id, now=now)
            if not set_parent:
                return result
            parented = engine.set_parent(
                result.task,
                parent_state,
                actor_id,
                has_subtasks=has_subtasks,
                now=now,
            )
            return MutationResult(
                task=parented.task,
                history=result.history + parented.history,
                events=result.events + parented.events,
            )

        return await TaskService._mutate(
            db, task_id, actor_id, operation, expected_version=expected_version
        )

    @staticmethod
    async def change_status(
        db: AsyncSession,
        *,
        task_id: int,
        new_status: TaskStatus,
        actor_id: int,
        expected_version: Optional[int] = None,
    ) -> Task:
        return await TaskService._mutate(
            db,
            task_id,
            actor_id,
            lambda state: engine.change_status(state, new_status, actor_id),
            expected_version=expected_version,
        )

    @staticmethod
    async def update_progress(
        db: AsyncSession,
        *,
        task_id: int,
        progress: float,
        actor_id: int,
        expected_version: Optional[int] = None,
    ) -> Task:
        return await TaskService._mutate(
            db,
            task_id,
            actor_id,
            lambda state: engine.update_progress(state, progress, actor_id),
            expected_version=expected_version,
        )

    @staticmethod
    async def assign_task(
        db: AsyncSession,
        *,
        task_id: int,
        assignee_id: Optional[int],
        actor_id: int,
        expected_version: Optional[int] = None,
    ) -> Task:
        await TaskService._check_assignee(db, assignee_id)
        return await TaskService._mutate(
            db,
            task_id,
            actor_id,
            lambda state: engine.assign_to(state, assignee_id, actor_id),
            expected_version=expected_version,
        )

    @staticmethod
    async def block_task(
        db: AsyncSession,
        *,
        task_id: int,
        reason: str,
        actor_id: int,
        expected_version: Optional[int] = None,
    ) -> Task:
        return await TaskService._mutate(
            db,
            task_id,
            actor_id,
            lambda state: engine.block(state, reason, actor_id),
            expected_version=expected_version,
        )

    @staticmethod
    async def unblock_task(
        db: AsyncSession,
        *,
        task_id: int,
        actor_id: int,
        expected_version: Optional[int] = None,
    ) -> Task:
        return await TaskService._mutate(
            db,
            task_id,
            actor_id,
            lambda state: engine.unblock(state, actor_id),
            expected_version=expected_version,
        )

    @staticmethod
    async def delete_task(db: AsyncSession, *, task_id: int, actor_id: int) -> Task:
        """Soft-delete a task. Its subtasks stay in place."""
        return await TaskService._mutate(
            db, task_id, actor_id, lambda state: engine.soft_delete(state, actor_id)
        )

    @staticmethod
    async def restore_task(db: AsyncSession, *, task_id: int, actor: User) -> Task:
        """Bring back a soft-deleted task. Requires the restore permission."""
        if not has_permission(actor, Permission.TASK_RESTORE):
            raise ForbiddenError(
                message_key="errors.permission_required", permission=Permission.TASK_RESTORE.value
            )
        return await TaskService._mutate(
            db,
            task_id,
            actor.id,
            lambda state: engine.restore(state, actor.id),
            include_deleted=True,
        )


task_service = TaskService()
