"""
app/core/schemas.py

Pydantic models shared across domains:
- PaginatedResponse: one page of a skip/limit listing
- MessageResponse: plain informational reply
"""

from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    total_count: int = Field(..., description="Rows matching the filters across all pages")
    has_next_page: bool = Field(..., description="True when rows remain after this page")
    items: list[T] = Field(..., description="Rows on this page")

    @classmethod
    def from_page(
        cls, items: Sequence[T], total: int, skip: int, limit: int
    ) -> "PaginatedResponse[T]":
        return cls(total_count=total, has_next_page=(skip + limit) < total, items=list(items))


class MessageResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
