"""Batch import request, result and stream event models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .item import CamelModel, IntentType, SavedItem

StreamEventType = Literal["start", "item", "connections", "error", "complete"]


class BatchProgress(CamelModel):
    """Running counters attached to every per-input event."""

    success: int = 0
    failed: int = 0
    total: int = 0


class StreamEvent(CamelModel):
    """One server-sent event emitted while a batch runs."""

    type: StreamEventType = Field(..., description="Event type")
    total: Optional[int] = Field(None, description="Expected inputs (start) or final total (complete)")
    index: Optional[int] = Field(None, description="Input position within the batch")
    url: Optional[str] = Field(None, description="Source URL of the input")
    file_name: Optional[str] = Field(None, description="Uploaded file the event belongs to")
    item: Optional[SavedItem] = Field(None, description="Materialized item (item/connections)")
    item_id: Optional[str] = Field(None, description="Item whose links changed (connections)")
    connections: Optional[list[str]] = Field(None, description="Linked item ids (connections)")
    message: Optional[str] = Field(None, description="Human-readable failure (error)")
    progress: Optional[BatchProgress] = Field(None, description="Running counters")
    success: Optional[int] = Field(None, description="Final success count (complete)")
    failed: Optional[int] = Field(None, description="Final failure count (complete)")


class BatchRequest(CamelModel):
    """Request payload for batch URL imports."""

    urls: list[str] = Field(..., min_length=1, description="URLs to import")
    intent: IntentType = "read_later"


class BatchItemResult(CamelModel):
    url: str
    success: bool
    item: Optional[SavedItem] = None
    error: Optional[str] = None


class BatchResponse(CamelModel):
    """Response payload for the non-streaming batch endpoint."""

    total: int
    successful: int
    failed: int
    results: list[BatchItemResult] = Field(default_factory=list)


class UploadFileResult(CamelModel):
    file_name: str
    success: bool
    item: Optional[SavedItem] = None
    items: Optional[list[SavedItem]] = None
    bookmarks_processed: Optional[int] = None
    error: Optional[str] = None


class UploadResponse(CamelModel):
    """Response payload for the non-streaming upload endpoint."""

    total: int
    successful: int
    failed: int
    bookmarks_imported: int = 0
    results: list[UploadFileResult] = Field(default_factory=list)


__all__ = [
    "StreamEventType",
    "BatchProgress",
    "StreamEvent",
    "BatchRequest",
    "BatchItemResult",
    "BatchResponse",
    "UploadFileResult",
    "UploadResponse",
]
