"""Collection and concept aggregate views."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .item import CamelModel


class Collection(CamelModel):
    """Named group of items (process-wide, not user-scoped)."""

    id: str
    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    item_ids: list[str] = Field(default_factory=list)
    color: Optional[str] = None
    created_at: int = Field(..., description="Creation time, epoch millis")


class CollectionCreate(CamelModel):
    """Request payload to create a collection."""

    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    item_ids: list[str] = Field(default_factory=list)
    color: Optional[str] = None


class Concept(CamelModel):
    """A named idea that recurs across items."""

    id: str
    name: str
    item_ids: list[str] = Field(default_factory=list)
    related_concepts: list[str] = Field(default_factory=list)


__all__ = ["Collection", "CollectionCreate", "Concept"]
