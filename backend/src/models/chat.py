"""Chat assistant models."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .item import CamelModel


class ChatItem(CamelModel):
    """Compact item context the client may send along with a question."""

    id: str
    title: str
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    url: str = ""


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)
    items: Optional[list[ChatItem]] = Field(
        None, description="Items to ground the answer in (defaults to the user's items)"
    )


class ChatResponse(CamelModel):
    response: str


__all__ = ["ChatItem", "ChatRequest", "ChatResponse"]
