"""Service layer for business logic and external integrations."""

from .analyzer import FALLBACK_ANALYSIS, AIAnalyzer, Analysis, get_analyzer
from .auth import ApiTokenService, AuthError, AuthService
from .background import BackgroundTaskRunner, get_background_runner
from .batch_runner import BatchInput, BatchRunner, prepare_urls
from .chat import ChatService, get_chat_service
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .extractor import (
    BookmarkExport,
    ContentExtractor,
    ExtractedContent,
    ExtractionError,
    InvalidSourceError,
    get_extractor,
)
from .item_store import (
    InMemoryItemStore,
    ItemNotFoundError,
    ItemStore,
    SqliteItemStore,
    StoreError,
    get_item_store,
)
from .linker import ConnectionLinker, LinkResult, get_linker
from .llm import LLMClient, LLMError, get_llm_client
from .pipeline import CapturePipeline, get_pipeline
from .streaming import EventStream, serialize_event

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "AuthService",
    "AuthError",
    "ApiTokenService",
    "ItemStore",
    "InMemoryItemStore",
    "SqliteItemStore",
    "StoreError",
    "ItemNotFoundError",
    "get_item_store",
    "ContentExtractor",
    "ExtractedContent",
    "BookmarkExport",
    "ExtractionError",
    "InvalidSourceError",
    "get_extractor",
    "LLMClient",
    "LLMError",
    "get_llm_client",
    "AIAnalyzer",
    "Analysis",
    "FALLBACK_ANALYSIS",
    "get_analyzer",
    "ConnectionLinker",
    "LinkResult",
    "get_linker",
    "CapturePipeline",
    "get_pipeline",
    "BatchRunner",
    "BatchInput",
    "prepare_urls",
    "EventStream",
    "serialize_event",
    "BackgroundTaskRunner",
    "get_background_runner",
    "ChatService",
    "get_chat_service",
]
