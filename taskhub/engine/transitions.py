"""Task status transition table."""
from typing import Dict, FrozenSet

from taskhub.engine.models import TaskStatus

VALID_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset(
        {TaskStatus.IN_REVIEW, TaskStatus.TODO, TaskStatus.CANCELLED}
    ),
    TaskStatus.IN_REVIEW: frozenset(
        {TaskStatus.DONE, TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}
    ),
    # Reopen, archive or cancel a finished task
    TaskStatus.DONE: frozenset(
        {TaskStatus.IN_PROGRESS, TaskStatus.ARCHIVED, TaskStatus.CANCELLED}
    ),
    TaskStatus.ARCHIVED: frozenset({TaskStatus.CANCELLED}),
    TaskStatus.CANCELLED: frozenset({TaskStatus.CANCELLED}),
}

TERMINAL_STATES: FrozenSet[TaskStatus] = frozenset({TaskStatus.CANCELLED})

# Statuses from which reaching 100% progress may force the task to Done
# without following the table.
AUTO_COMPLETABLE_STATES: FrozenSet[TaskStatus] = frozenset(
    {TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW}
)


def can_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """Return True if the table allows moving from ``from_status`` to ``to_status``."""
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())
