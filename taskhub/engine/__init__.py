"""Task state engine: pure task mutations, transition rules and audit diffing."""
from taskhub.engine.audit import TRACKED_FIELDS, diff, render_value
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
from taskhub.engine.operations import (
    apply_update,
    assign_to,
    block,
    change_status,
    create_task,
    rename,
    restore,
    set_actual_hours,
    set_description,
    set_due_date,
    set_estimated_hours,
    set_order_index,
    set_parent,
    set_priority,
    set_start_date,
    set_tags,
    soft_delete,
    unblock,
    update_progress,
)
from taskhub.engine.transitions import TERMINAL_STATES, VALID_TRANSITIONS, can_transition

__all__ = [
    "TRACKED_FIELDS",
    "diff",
    "render_value",
    "TaskAssigned",
    "TaskCompleted",
    "TaskCreated",
    "TaskDeleted",
    "TaskEvent",
    "TaskRestored",
    "TaskStatusChanged",
    "AuditStamp",
    "HistoryEntry",
    "MutationResult",
    "TaskChanges",
    "TaskPriority",
    "TaskState",
    "TaskStatus",
    "apply_update",
    "assign_to",
    "block",
    "change_status",
    "create_task",
    "rename",
    "restore",
    "set_actual_hours",
    "set_description",
    "set_due_date",
    "set_estimated_hours",
    "set_order_index",
    "set_parent",
    "set_priority",
    "set_start_date",
    "set_tags",
    "soft_delete",
    "unblock",
    "update_progress",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "can_transition",
]
