"""Task mutation operations.

Each operation takes a ``TaskState`` and returns a ``MutationResult`` holding
the new state, the history entries to append and the emitted facts. Inputs are
never modified: when an operation raises, the caller's task is untouched.
All operations accept ``now`` so the clock can be pinned.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from taskhub.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from taskhub.engine.audit import TRACKED_FIELDS, as_utc, diff
from taskhub.engine.events import (
    TaskAssigned,
    TaskCompleted,
    TaskCreated,
    TaskDeleted,
    TaskEvent,
    TaskRestored,
    TaskStatusChanged,
)
from taskhub.engine.models import (
    AuditStamp,
    HistoryEntry,
    MutationResult,
    TaskChanges,
    TaskPriority,
    TaskState,
    TaskStatus,
)
from taskhub.engine.transitions import AUTO_COMPLETABLE_STATES, can_transition

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 5000
TAGS_MAX_LENGTH = 500
MAX_HOURS = 1000
FULL_PROGRESS = 100.0


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def _ensure_active(task: TaskState) -> None:
    if task.is_deleted:
        raise NotFoundError("Task", task.id)


def _clean_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title", "title cannot be empty")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise ValidationError("Title", f"title cannot exceed {TITLE_MAX_LENGTH} characters")
    return cleaned


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    cleaned = description.strip()
    if len(cleaned) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "Description", f"description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
        )
    return cleaned or None


def _coerce_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError("Status", f"unknown status {value!r}")


def _coerce_priority(value: Any) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise ValidationError("Priority", f"unknown priority {value!r}")


def _check_hours(field_name: str, hours: Optional[int]) -> Optional[int]:
    if hours is None:
        return None
    if isinstance(hours, bool) or not isinstance(hours, int):
        raise ValidationError(field_name, "hours must be a whole number")
    if hours < 0:
        raise ValidationError(field_name, "hours cannot be negative")
    if hours > MAX_HOURS:
        raise ValidationError(field_name, f"hours cannot exceed {MAX_HOURS}")
    return hours


def _commit(
    task: TaskState,
    actor_id: int,
    now: datetime,
    updates: Dict[str, Any],
    fields: Iterable[str],
    events: Optional[List[TaskEvent]] = None,
    audit_updates: Optional[Dict[str, Any]] = None,
) -> MutationResult:
    """Apply ``updates``, stamp the audit block and diff the listed fields."""
    stamp: Dict[str, Any] = {"updated_at": now, "updated_by": actor_id}
    if audit_updates:
        stamp.update(audit_updates)
    new_task = task.model_copy(update={**updates, "audit": task.audit.model_copy(update=stamp)})
    history = diff(task, new_task, actor_id, fields, now=now)
    return MutationResult(task=new_task, history=history, events=list(events or []))


def create_task(
    title: str,
    project_id: int,
    creator_id: int,
    description: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    *,
    now: Optional[datetime] = None,
) -> MutationResult:
    """Create a new task in Todo."""
    now = _now(now)
    cleaned_title = _clean_title(title)
    task = TaskState(
        title=cleaned_title,
        description=_clean_description(description),
        project_id=project_id,
        status=TaskStatus.TODO,
        priority=_coerce_priority(priority),
        progress=None,
        order_index=0,
        audit=AuditStamp(created_at=now, created_by=creator_id),
    )
    history = [
        HistoryEntry(
            field_name="Status",
            old_value=None,
            new_value=TaskStatus.TODO.value,
            changed_by=creator_id,
            changed_at=now,
        )
    ]
    events = [
        TaskCreated(
            actor_id=creator_id,
            occurred_at=now,
            project_id=project_id,
            title=cleaned_title,
        )
    ]
    return MutationResult(task=task, history=history, events=events)


def rename(task: TaskState, new_title: str, actor_id: int, *, now: Optional[datetime] = None) -> MutationResult:
    _ensure_active(task)
    return _commit(task, actor_id, _now(now), {"title": _clean_title(new_title)}, ["Title"])


def set_description(
    task: TaskState, description: Optional[str], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    return _commit(
        task, actor_id, _now(now), {"description": _clean_description(description)}, ["Description"]
    )


def _move_to_status(
    task: TaskState,
    new_status: TaskStatus,
    actor_id: int,
    now: datetime,
    updates: Optional[Dict[str, Any]] = None,
) -> MutationResult:
    """Status change side effects, shared by explicit and progress-driven changes."""
    updates = dict(updates or {})
    updates["status"] = new_status
    fields = ["Status", "Progress"]
    events: List[TaskEvent] = []

    if new_status != task.status:
        events.append(
            TaskStatusChanged(
                task_id=task.id,
                actor_id=actor_id,
                occurred_at=now,
                previous_status=task.status.value,
                new_status=new_status.value,
            )
        )

    if new_status == TaskStatus.DONE and task.status != TaskStatus.DONE:
        updates["completed_at"] = now
        updates["progress"] = FULL_PROGRESS
        events.append(
            TaskCompleted(
                task_id=task.id,
                actor_id=actor_id,
                occurred_at=now,
                actual_hours=task.actual_hours,
            )
        )
    elif task.status == TaskStatus.DONE and new_status != TaskStatus.DONE:
        updates["completed_at"] = None

    return _commit(task, actor_id, now, updates, fields, events)


def change_status(
    task: TaskState, new_status: TaskStatus, actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    """Move the task along the transition table."""
    _ensure_active(task)
    target = _coerce_status(new_status)
    if not can_transition(task.status, target):
        raise InvalidTransitionError(task.status, target)
    return _move_to_status(task, target, actor_id, _now(now))


def update_progress(
    task: TaskState, value: float, actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    """Set progress; reaching 100 auto-completes the task.

    Auto-completion skips the transition table for Todo, InProgress and
    InReview. Archived and Cancelled tasks cannot be completed this way.
    """
    _ensure_active(task)
    try:
        progress = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Progress", "progress must be a number")
    if math.isnan(progress) or progress < 0 or progress > FULL_PROGRESS:
        raise ValidationError("Progress", "progress must be between 0 and 100")

    now = _now(now)
    if progress >= FULL_PROGRESS and task.status != TaskStatus.DONE:
        if task.status not in AUTO_COMPLETABLE_STATES:
            raise InvalidTransitionError(task.status, TaskStatus.DONE)
        return _move_to_status(task, TaskStatus.DONE, actor_id, now, {"progress": progress})

    return _commit(task, actor_id, now, {"progress": progress}, ["Progress"])


def assign_to(
    task: TaskState, assignee_id: Optional[int], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    """Assign the task to a user, or unassign it with ``None``."""
    _ensure_active(task)
    now = _now(now)
    events: List[TaskEvent] = []
    if assignee_id != task.assignee_id:
        events.append(
            TaskAssigned(
                task_id=task.id,
                actor_id=actor_id,
                occurred_at=now,
                previous_assignee_id=task.assignee_id,
                new_assignee_id=assignee_id,
            )
        )
    return _commit(task, actor_id, now, {"assignee_id": assignee_id}, ["Assignee"], events)


def set_priority(
    task: TaskState, priority: TaskPriority, actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    if priority is None:
        raise ValidationError("Priority", "priority is required")
    return _commit(task, actor_id, _now(now), {"priority": _coerce_priority(priority)}, ["Priority"])


def set_due_date(
    task: TaskState, due_date: Optional[datetime], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    """Set or clear the due date. A due date before today (UTC) is rejected."""
    _ensure_active(task)
    now = _now(now)
    due = as_utc(due_date)
    if due is not None and due.date() < now.date():
        raise ValidationError("DueDate", "due date cannot be in the past")
    return _commit(task, actor_id, now, {"due_date": due}, ["DueDate"])


def set_start_date(
    task: TaskState, start_date: Optional[datetime], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    return _commit(task, actor_id, _now(now), {"start_date": as_utc(start_date)}, ["StartDate"])


def set_estimated_hours(
    task: TaskState, hours: Optional[int], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    checked = _check_hours("EstimatedHours", hours)
    return _commit(task, actor_id, _now(now), {"estimated_hours": checked}, ["EstimatedHours"])


def set_actual_hours(
    task: TaskState, hours: Optional[int], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    checked = _check_hours("ActualHours", hours)
    return _commit(task, actor_id, _now(now), {"actual_hours": checked}, ["ActualHours"])


def set_tags(
    task: TaskState, tags: Optional[str], actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    cleaned = tags.strip() if tags is not None else None
    if cleaned is not None and len(cleaned) > TAGS_MAX_LENGTH:
        raise ValidationError("Tags", f"tags cannot exceed {TAGS_MAX_LENGTH} characters")
    return _commit(task, actor_id, _now(now), {"tags": cleaned or None}, ["Tags"])


def set_order_index(
    task: TaskState, order_index: int, actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    _ensure_active(task)
    if order_index is None or order_index < 0:
        raise ValidationError("OrderIndex", "order index must be zero or positive")
    return _commit(task, actor_id, _now(now), {"order_index": order_index}, [])


def set_parent(
    task: TaskState,
    parent: Optional[TaskState],
    actor_id: int,
    *,
    has_subtasks: bool = False,
    now: Optional[datetime] = None,
) -> MutationResult:
    """Make the task a subtask of ``parent`` (or a top-level task with ``None``).

    Only one level of nesting exists, which keeps a task from ever being its
    own ancestor.
    """
    _ensure_active(task)
    parent_id = None
    if parent is not None:
        if parent.id is None or parent.id == task.id:
            raise ValidationError("ParentTask", "a task cannot be its own parent")
        if parent.is_deleted:
            raise ValidationError("ParentTask", "parent task is deleted")
        if parent.project_id != task.project_id:
            raise ValidationError("ParentTask", "parent task must belong to the same project")
        if parent.parent_task_id is not None:
            raise ValidationError("ParentTask", "a subtask cannot have subtasks")
        if has_subtasks:
            raise ValidationError("ParentTask", "a task with subtasks cannot become a subtask")
        parent_id = parent.id
    return _commit(task, actor_id, _now(now), {"parent_task_id": parent_id}, ["ParentTask"])


def block(task: TaskState, reason: str, actor_id: int, *, now: Optional[datetime] = None) -> MutationResult:
    _ensure_active(task)
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("BlockedReason", "block reason is required")
    return _commit(
        task,
        actor_id,
        _now(now),
        {"is_blocked": True, "blocked_reason": cleaned},
        ["IsBlocked", "BlockedReason"],
    )


def unblock(task: TaskState, actor_id: int, *, now: Optional[datetime] = None) -> MutationResult:
    _ensure_active(task)
    return _commit(
        task,
        actor_id,
        _now(now),
        {"is_blocked": False, "blocked_reason": None},
        ["IsBlocked", "BlockedReason"],
    )


def soft_delete(task: TaskState, actor_id: int, *, now: Optional[datetime] = None) -> MutationResult:
    """Mark the task deleted. Subtasks are left alone."""
    _ensure_active(task)
    now = _now(now)
    events = [TaskDeleted(task_id=task.id, actor_id=actor_id, occurred_at=now)]
    return _commit(
        task,
        actor_id,
        now,
        {},
        ["IsDeleted"],
        events,
        audit_updates={"deleted_at": now, "deleted_by": actor_id},
    )


def restore(task: TaskState, actor_id: int, *, now: Optional[datetime] = None) -> MutationResult:
    if not task.is_deleted:
        raise ValidationError("IsDeleted", "task is not deleted")
    now = _now(now)
    events = [TaskRestored(task_id=task.id, actor_id=actor_id, occurred_at=now)]
    return _commit(
        task,
        actor_id,
        now,
        {},
        ["IsDeleted"],
        events,
        audit_updates={"deleted_at": None, "deleted_by": None},
    )


def apply_update(
    task: TaskState, changes: TaskChanges, actor_id: int, *, now: Optional[datetime] = None
) -> MutationResult:
    """Apply a partial update as one unit, with one history entry per changed field.

    Status is applied before progress so that a request moving a task to Done
    and setting progress in the same call behaves the same as two calls.
    An unchanged status in the payload is ignored rather than treated as a
    self-transition.
    """
    _ensure_active(task)
    now = _now(now)
    provided = changes.model_fields_set
    current = task
    events: List[TaskEvent] = []

    def run(result: MutationResult) -> None:
        nonlocal current
        current = result.task
        events.extend(result.events)

    if "title" in provided:
        run(rename(current, changes.title, actor_id, now=now))
    if "description" in provided:
        run(set_description(current, changes.description, actor_id, now=now))
    if "priority" in provided:
        run(set_priority(current, changes.priority, actor_id, now=now))
    if "assignee_id" in provided:
        run(assign_to(current, changes.assignee_id, actor_id, now=now))
    if "status" in provided:
        if changes.status is None:
            raise ValidationError("Status", "status is required")
        if changes.status != current.status:
            run(change_status(current, changes.status, actor_id, now=now))
    if "progress" in provided:
        if changes.progress is None:
            raise ValidationError("Progress", "progress cannot be cleared")
        run(update_progress(current, changes.progress, actor_id, now=now))
    if "due_date" in provided:
        run(set_due_date(current, changes.due_date, actor_id, now=now))
    if "start_date" in provided:
        run(set_start_date(current, changes.start_date, actor_id, now=now))
    if "estimated_hours" in provided:
        run(set_estimated_hours(current, changes.estimated_hours, actor_id, now=now))
    if "actual_hours" in provided:
        run(set_actual_hours(current, changes.actual_hours, actor_id, now=now))
    if "tags" in provided:
        run(set_tags(current, changes.tags, actor_id, now=now))
    if "order_index" in provided:
        run(set_order_index(current, changes.order_index, actor_id, now=now))

    if "is_blocked" in provided:
        if changes.is_blocked:
            reason = changes.blocked_reason if "blocked_reason" in provided else current.blocked_reason
            run(block(current, reason, actor_id, now=now))
        else:
            run(unblock(current, actor_id, now=now))
    elif "blocked_reason" in provided:
        if not current.is_blocked:
            raise ValidationError("BlockedReason", "task is not blocked")
        run(block(current, changes.blocked_reason, actor_id, now=now))

    history = diff(task, current, actor_id, TRACKED_FIELDS.keys(), now=now)
    return MutationResult(task=current, history=history, events=events)
