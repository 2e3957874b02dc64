"""Task schemas.

Field limits (title length, hour ranges...) are enforced by the task engine,
which answers 400 with the offending field; these schemas only check shapes.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskhub.engine.models import TaskChanges, TaskPriority, TaskStatus


class VersionedRequest(BaseModel):
    """Optional optimistic-concurrency guard sent by the client."""

    expected_version: Optional[int] = Field(None, ge=1)


class TaskCreate(BaseModel):
    """Task creation schema."""

    title: str
    project_id: int
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_hours: Optional[int] = None
    tags: Optional[str] = None
    parent_task_id: Optional[int] = None


class TaskUpdate(VersionedRequest):
    """Partial task update; only fields present in the payload are applied."""

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
    blocked_reason: Optional[str] = None
    parent_task_id: Optional[int] = None

    def to_changes(self) -> TaskChanges:
        """Engine change set carrying only the explicitly provided fields."""
        return TaskChanges(**self.model_dump(exclude_unset=True, exclude={"expected_version", "parent_task_id"}))


class TaskStatusUpdate(VersionedRequest):
    status: TaskStatus


class TaskAssign(VersionedRequest):
    assignee_id: Optional[int] = None


class TaskProgressUpdate(VersionedRequest):
    progress: float


class TaskBlock(VersionedRequest):
    reason: str


class TaskResponse(BaseModel):
    """Task response schema."""

    id: int
    title: str
    description: Optional[str] = None
    project_id: int
    assignee_id: Optional[int] = None
    status: TaskStatus
    priority: TaskPriority
    progress: Optional[float] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_hours: Optional[int] = None
    actual_hours: Optional[int] = None
    tags: Optional[str] = None
    order_index: int
    is_blocked: bool
    blocked_reason: Optional[str] = None
    parent_task_id: Optional[int] = None
    created_at: datetime
    created_by: int
    updated_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    version: int

    class Config:
        from_attributes = True


class TaskHistoryResponse(BaseModel):
    id: int
    task_id: int
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: Optional[int] = None
    changed_at: datetime

    class Config:
        from_attributes = True
