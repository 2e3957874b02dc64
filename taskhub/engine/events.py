"""Facts emitted by task mutations.

The engine only produces these; delivering them (logging, metrics, a queue)
is up to the caller.
"""
from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict


class TaskEvent(BaseModel):
    """Base emitted fact."""

    model_config = ConfigDict(frozen=True)

    event_type: ClassVar[str] = "task.event"

    task_id: Optional[int] = None
    actor_id: int
    occurred_at: datetime

    def with_task_id(self, task_id: int) -> "TaskEvent":
        """Return a copy bound to the persisted task id."""
        return self.model_copy(update={"task_id": task_id})


class TaskCreated(TaskEvent):
    event_type: ClassVar[str] = "task.created"

    project_id: int
    title: str


class TaskStatusChanged(TaskEvent):
    event_type: ClassVar[str] = "task.status_changed"

    previous_status: str
    new_status: str


class TaskAssigned(TaskEvent):
    event_type: ClassVar[str] = "task.assigned"

    previous_assignee_id: Optional[int] = None
    new_assignee_id: Optional[int] = None


class TaskCompleted(TaskEvent):
    event_type: ClassVar[str] = "task.completed"

    actual_hours: Optional[int] = None


class TaskDeleted(TaskEvent):
    event_type: ClassVar[str] = "task.deleted"


class TaskRestored(TaskEvent):
    event_type: ClassVar[str] = "task.restored"
