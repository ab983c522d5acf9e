"""Pydantic models for data validation and serialization."""

from .auth import ApiTokenResponse, JWTPayload, TokenResponse
from .chat import ChatItem, ChatRequest, ChatResponse
from .events import (
    BatchItemResult,
    BatchProgress,
    BatchRequest,
    BatchResponse,
    StreamEvent,
    UploadFileResult,
    UploadResponse,
)
from .graph import GraphData, GraphLink, GraphNode
from .item import CaptureRequest, Highlight, ItemCreate, ItemUpdate, SavedItem
from .library import Collection, CollectionCreate, Concept

__all__ = [
    "SavedItem",
    "ItemCreate",
    "ItemUpdate",
    "Highlight",
    "CaptureRequest",
    "Collection",
    "CollectionCreate",
    "Concept",
    "StreamEvent",
    "BatchProgress",
    "BatchRequest",
    "BatchItemResult",
    "BatchResponse",
    "UploadFileResult",
    "UploadResponse",
    "ChatItem",
    "ChatRequest",
    "ChatResponse",
    "GraphData",
    "GraphNode",
    "GraphLink",
    "TokenResponse",
    "JWTPayload",
    "ApiTokenResponse",
]
