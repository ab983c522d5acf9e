"""Concurrency-bounded batch runner for URL and document imports."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from ..models.events import BatchProgress, StreamEvent
from ..models.item import IntentType
from .extractor import ExtractedContent
from .pipeline import CapturePipeline, get_pipeline

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3

EventCallback = Callable[[StreamEvent], Awaitable[None]]


@dataclass
class BatchInput:
    """
    One input to import.

    A URL, with an optional title (bookmark entries carry one), or an
    already-extracted uploaded ``document`` whose ``url`` is its file name.
    """

    url: str
    title: Optional[str] = None
    document: Optional[ExtractedContent] = None


def prepare_urls(urls: Sequence[str], limit: int) -> List[BatchInput]:
    """Trim, drop blanks, then keep the first ``limit`` entries."""
    cleaned = [url.strip() for url in urls if isinstance(url, str) and url.strip()]
    return [BatchInput(url=url) for url in cleaned[:limit]]


def error_message(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or "Failed to process URL"


class BatchRunner:
    """
    Run each input through the capture pipeline with at most ``concurrency``
    pipelines in flight.

    One input's failure is reported and counted but never cancels the others.
    Every per-input event carries the running counters, and exactly one
    ``complete`` event closes the batch.
    """

    def __init__(
        self,
        pipeline: CapturePipeline | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.pipeline = pipeline or get_pipeline()
        self.concurrency = concurrency

    async def run(
        self,
        user_id: str,
        inputs: Sequence[BatchInput],
        on_event: EventCallback,
        *,
        intent: IntentType = "read_later",
        file_name: Optional[str] = None,
    ) -> BatchProgress:
        """Process ``inputs`` and return the final counters."""
        counters = BatchProgress(total=len(inputs))
        semaphore = asyncio.Semaphore(self.concurrency)

        await on_event(StreamEvent(type="start", total=counters.total, file_name=file_name))
        logger.info(
            f"Batch started for user {user_id}: {counters.total} input(s), "
            f"concurrency {self.concurrency}"
        )

        async def process(index: int, entry: BatchInput) -> None:
            async with semaphore:
                try:
                    if entry.document is not None:
                        item = await self.pipeline.ingest_document(
                            user_id, entry.url, entry.document, intent=intent
                        )
                    else:
                        item = await self.pipeline.ingest_url(
                            user_id, entry.url, intent=intent, title=entry.title
                        )
                except Exception as e:
                    counters.failed += 1
                    logger.warning(f"Batch input {index} ({entry.url[:120]}) failed: {e}")
                    await on_event(
                        StreamEvent(
                            type="error",
                            index=index,
                            url=entry.url,
                            file_name=file_name,
                            message=error_message(e),
                            progress=counters.model_copy(),
                        )
                    )
                    return

                counters.success += 1
                await on_event(
                    StreamEvent(
                        type="item",
                        index=index,
                        url=item.url,
                        file_name=file_name,
                        item=item,
                        progress=counters.model_copy(),
                    )
                )

                linked = await self.pipeline.connect(user_id, item)
                if linked is not None:
                    await on_event(
                        StreamEvent(
                            type="connections",
                            index=index,
                            file_name=file_name,
                            item_id=linked.id,
                            connections=list(linked.connections),
                            item=linked,
                            progress=counters.model_copy(),
                        )
                    )

        outcomes = await asyncio.gather(
            *(process(index, entry) for index, entry in enumerate(inputs)),
            return_exceptions=True,
        )
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Batch input {index} aborted after ingest: {outcome}", exc_info=outcome)

        await on_event(
            StreamEvent(
                type="complete",
                file_name=file_name,
                success=counters.success,
                failed=counters.failed,
                total=counters.total,
            )
        )
        logger.info(
            f"Batch complete for user {user_id}: {counters.success} succeeded, "
            f"{counters.failed} failed of {counters.total}"
        )
        return counters


__all__ = [
    "BatchInput",
    "BatchRunner",
    "EventCallback",
    "DEFAULT_CONCURRENCY",
    "prepare_urls",
    "error_message",
]
