"""Capture pipeline - extract, analyze, store and link one input."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from ..models.item import IntentType, ItemCreate, SavedItem
from .analyzer import AIAnalyzer, get_analyzer
from .extractor import ContentExtractor, ExtractedContent, get_extractor, require_http_url
from .item_store import ItemStore, StoreError, get_item_store
from .linker import ConnectionLinker, get_linker

logger = logging.getLogger(__name__)

# Linking only runs once the user has this many items, the new one included.
MIN_ITEMS_FOR_LINKING = 2


class CapturePipeline:
    """
    One input's strictly sequential path through the core.

    ``ingest_*`` runs extract -> analyze -> create and raises on extraction or
    store failures. ``connect`` runs the linker and the symmetric write-back
    and never raises.
    """

    def __init__(
        self,
        store: ItemStore | None = None,
        extractor: ContentExtractor | None = None,
        analyzer: AIAnalyzer | None = None,
        linker: ConnectionLinker | None = None,
    ) -> None:
        self.store = store or get_item_store()
        self.extractor = extractor or get_extractor()
        self.analyzer = analyzer or get_analyzer()
        self.linker = linker or get_linker()

    async def ingest_url(
        self,
        user_id: str,
        url: str,
        *,
        intent: IntentType = "read_later",
        title: Optional[str] = None,
    ) -> SavedItem:
        """Extract, analyze and store a URL. ``title`` overrides the extracted title."""
        url = require_http_url(url)
        extracted = await self.extractor.extract_url(url)
        return await self._store(user_id, url, extracted, intent=intent, title=title)

    async def ingest_document(
        self,
        user_id: str,
        filename: str,
        extracted: ExtractedContent,
        *,
        intent: IntentType = "read_later",
    ) -> SavedItem:
        """Analyze and store an already-extracted uploaded document."""
        file_url = f"file://{quote(filename, safe='')}"
        return await self._store(user_id, file_url, extracted, intent=intent)

    async def _store(
        self,
        user_id: str,
        url: str,
        extracted: ExtractedContent,
        *,
        intent: IntentType,
        title: Optional[str] = None,
    ) -> SavedItem:
        title = (title or "").strip() or extracted.title
        analysis = await self.analyzer.analyze(extracted.content, title)
        data = ItemCreate(
            url=url,
            intent=intent,
            title=title,
            content=extracted.content,
            summary=analysis.summary,
            tags=analysis.tags,
            concepts=analysis.concepts,
            domain=extracted.domain,
            favicon=extracted.favicon,
            image_url=extracted.image_url,
            expires_at=None,
        )
        item = await self.store.create_item(user_id, data)
        logger.info(f"Created item {item.id} for user {user_id} from {url[:120]}")
        return item

    async def connect(self, user_id: str, item: SavedItem) -> Optional[SavedItem]:
        """
        Link ``item`` to related existing items and write both sides.

        Returns the refreshed item when at least one edge was written,
        otherwise None. Linker and write-back failures are logged, not raised.
        """
        try:
            existing = await self.store.get_items_by_user(user_id)
            if len(existing) < MIN_ITEMS_FOR_LINKING:
                return None
            candidates = [candidate for candidate in existing if candidate.id != item.id]
            result = await self.linker.link(item, candidates)
            if not result:
                return None

            written = 0
            for other_id in result.connections:
                if await self.store.add_edge(user_id, item.id, other_id, result.reasons.get(other_id)):
                    written += 1
            if not written:
                return None
            return await self.store.get_item(user_id, item.id)
        except StoreError as e:
            logger.warning(f"Connection write-back failed for item {item.id}: {e.message}")
            return None
        except Exception as e:
            logger.error(f"Linking failed for item {item.id}: {e}", exc_info=True)
            return None

    async def capture_url(
        self,
        user_id: str,
        url: str,
        *,
        intent: IntentType = "read_later",
        title: Optional[str] = None,
    ) -> SavedItem:
        """Full synchronous capture: ingest then link before returning."""
        item = await self.ingest_url(user_id, url, intent=intent, title=title)
        linked = await self.connect(user_id, item)
        return linked or item


# Singleton instance
_pipeline: Optional[CapturePipeline] = None


def get_pipeline() -> CapturePipeline:
    """Get or create the capture pipeline singleton."""
    global _pipeline
    if _pipeline is None:
        _pipeline = CapturePipeline()
    return _pipeline


__all__ = ["CapturePipeline", "MIN_ITEMS_FOR_LINKING", "get_pipeline"]
