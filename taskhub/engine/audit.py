"""Audit-history diffing for task state."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from taskhub.engine.models import HistoryEntry, TaskState

UNASSIGNED = "Unassigned"

# History field name -> accessor on TaskState. OrderIndex is deliberately absent.
TRACKED_FIELDS: Dict[str, Callable[[TaskState], Any]] = {
    "Title": lambda task: task.title,
    "Description": lambda task: task.description,
    "Status": lambda task: task.status,
    "Priority": lambda task: task.priority,
    "Assignee": lambda task: task.assignee_id,
    "Progress": lambda task: task.progress,
    "DueDate": lambda task: task.due_date,
    "StartDate": lambda task: task.start_date,
    "EstimatedHours": lambda task: task.estimated_hours,
    "ActualHours": lambda task: task.actual_hours,
    "Tags": lambda task: task.tags,
    "IsBlocked": lambda task: task.is_blocked,
    "BlockedReason": lambda task: task.blocked_reason,
    "ParentTask": lambda task: task.parent_task_id,
    "IsDeleted": lambda task: task.audit.is_deleted,
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise a timestamp to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def render_value(field_name: str, value: Any) -> Optional[str]:
    """Render a field value the way it is stored in history rows."""
    if field_name == "Assignee":
        return UNASSIGNED if value is None else str(value)
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return str(value)


def diff(
    old: TaskState,
    new: TaskState,
    actor_id: int,
    changed_fields: Iterable[str],
    *,
    now: Optional[datetime] = None,
) -> List[HistoryEntry]:
    """Build one history entry per listed field whose value differs.

    Fields are reported in ``TRACKED_FIELDS`` order; names that are not
    tracked are ignored.
    """
    requested = set(changed_fields)
    changed_at = as_utc(now) or as_utc(new.audit.updated_at) or datetime.now(timezone.utc)

    entries: List[HistoryEntry] = []
    for field_name, accessor in TRACKED_FIELDS.items():
        if field_name not in requested:
            continue
        old_value = render_value(field_name, accessor(old))
        new_value = render_value(field_name, accessor(new))
        if old_value == new_value:
            continue
        entries.append(
            HistoryEntry(
                task_id=new.id if new.id is not None else old.id,
                field_name=field_name,
                old_value=old_value,
                new_value=new_value,
                changed_by=actor_id,
                changed_at=changed_at,
            )
        )
    return entries
