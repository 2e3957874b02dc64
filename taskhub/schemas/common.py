"""Common schemas."""
from typing import Generic, List, TypeVar
from pydantic import BaseModel

ItemType = TypeVar("ItemType")


class PaginatedResponse(BaseModel, Generic[ItemType]):
    """One page of a filtered listing."""

    total: int
    page: int
    page_size: int
    items: List[ItemType]

    class Config:
        from_attributes = True
