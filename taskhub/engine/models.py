"""Task engine records.

Task state is an immutable pydantic record: operations in
``taskhub.engine.operations`` return a new copy instead of assigning fields, so
every change can be paired with its history entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from taskhub.engine.events import TaskEvent


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    IN_REVIEW = "InReview"
    DONE = "Done"
    ARCHIVED = "Archived"
    CANCELLED = "Cancelled"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AuditStamp(BaseModel):
    """Who created, last changed and soft-deleted a record, and when."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    created_by: int
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class TaskState(BaseModel):
    """In-memory snapshot of one task."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    title: str
    description: Optional[str] = None
    project_id: int
    assignee_id: Optional[int] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    progress: Optional[float] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_hours: Optional[int] = None
    actual_hours: Optional[int] = None
    tags: Optional[str] = None
    order_index: int = 0
    is_blocked: bool = False
    blocked_reason: Optional[str] = None
    parent_task_id: Optional[int] = None
    audit: AuditStamp
    version: int = 1

    @property
    def is_deleted(self) -> bool:
        return self.audit.is_deleted


class HistoryEntry(BaseModel):
    """One observed field change. Never updated once produced."""

    model_config = ConfigDict(frozen=True)

    task_id: Optional[int] = None
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: int
    changed_at: datetime


class TaskChanges(BaseModel):
    """Partial update of a task; only explicitly provided fields are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    progress: Optional[float] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_hours: Optional[int] = None
    actual_hours: Optional[int] = None
    tags: Optional[str] = None
    order_index: Optional[int] = None
    is_blocked: Optional[bool] = None
    blocked_reason: Optional[str] = Field(default=None)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one engine operation, to be persisted as a single unit."""

    task: TaskState
    history: List[HistoryEntry] = field(default_factory=list)
    events: List[TaskEvent] = field(default_factory=list)
