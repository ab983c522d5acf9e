"""Saved item Pydantic models."""

from __future__ import annotations

from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_CONTENT_CHARS = 50_000

IntentType = Literal["read_later", "reference", "inspiration", "tutorial"]


def validate_source_url(value: str) -> str:
    """Accept absolute http(s) URLs and synthetic file:// URLs for uploads."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValueError("URL is required")
    if cleaned.startswith("file://"):
        if len(cleaned) == len("file://"):
            raise ValueError("File URL must name a file")
        return cleaned
    parsed = urlparse(cleaned)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("URL must be an absolute http(s) URL")
    return cleaned


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Highlight(CamelModel):
    """A highlighted passage inside an item."""

    text: str
    position: int = Field(0, ge=0)


class SavedItem(CamelModel):
    """Durable unit of captured knowledge."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "0f8b2c1e-2d7a-4c43-9a51-6f0f4c8f2a10",
                "userId": "alice",
                "url": "https://react.dev/learn/thinking-in-react",
                "intent": "tutorial",
                "title": "Thinking in React",
                "summary": "A guide to React's component model.",
                "tags": ["React", "Frontend"],
                "concepts": ["Components", "Data Flow"],
                "domain": "react.dev",
                "connections": [],
                "connectionReasons": {},
                "savedAt": 1736500000000,
                "lastAccessed": 1736500000000,
                "isRead": False,
                "readingProgress": 0,
            }
        },
    )

    id: str = Field(..., description="Opaque unique identifier")
    user_id: str = Field(..., description="Owner user ID")
    url: str
    intent: IntentType = "read_later"
    title: str
    content: str = Field("", max_length=MAX_CONTENT_CHARS)
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    domain: str = ""
    favicon: Optional[str] = None
    image_url: Optional[str] = None
    connections: list[str] = Field(default_factory=list)
    connection_reasons: dict[str, str] = Field(default_factory=dict)
    saved_at: int = Field(..., description="Creation time, epoch millis")
    last_accessed: int = Field(..., description="Last mutation time, epoch millis")
    is_read: bool = False
    reading_progress: int = Field(0, ge=0, le=100)
    notes: str = ""
    highlights: list[Highlight] = Field(default_factory=list)
    expires_at: Optional[int] = None


class ItemCreate(CamelModel):
    """Extracted and analyzed data handed to the store for a new item."""

    url: str
    intent: IntentType = "read_later"
    title: str
    content: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    domain: str = ""
    favicon: Optional[str] = None
    image_url: Optional[str] = None
    expires_at: Optional[int] = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return validate_source_url(value)

    @field_validator("content")
    @classmethod
    def _truncate_content(cls, value: str) -> str:
        return value[:MAX_CONTENT_CHARS]


class ItemUpdate(CamelModel):
    """User-editable fields; only fields present in the payload are applied."""

    title: Optional[str] = None
    intent: Optional[IntentType] = None
    tags: Optional[list[str]] = None
    is_read: Optional[bool] = None
    reading_progress: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None
    highlights: Optional[list[Highlight]] = None
    expires_at: Optional[int] = None


class CaptureRequest(CamelModel):
    """Request payload for the single-capture endpoint."""

    url: str = Field(..., min_length=1, max_length=2048)
    intent: IntentType = "read_later"


__all__ = [
    "MAX_CONTENT_CHARS",
    "IntentType",
    "validate_source_url",
    "CamelModel",
    "Highlight",
    "SavedItem",
    "ItemCreate",
    "ItemUpdate",
    "CaptureRequest",
]
