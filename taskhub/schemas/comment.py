"""Comment and attachment schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)
    parent_comment_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class CommentResponse(BaseModel):
    """Comment response schema."""

    id: int
    task_id: int
    author_id: int
    content: str
    is_edited: bool
    parent_comment_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AttachmentCreate(BaseModel):
    """Metadata of a file already stored at ``file_url``."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1024)
    content_type: str = Field("application/octet-stream", max_length=100)
    file_size: int = Field(0, ge=0)


class AttachmentResponse(AttachmentCreate):
    id: int
    task_id: int
    uploaded_by: int
    uploaded_at: datetime

    class Config:
        from_attributes = True
