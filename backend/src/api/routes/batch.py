"""Batch URL import routes (collected and streamed)."""

from __future__ import annotations

import logging
from typing import Annotated, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sse_starlette.sse import EventSourceResponse

from ...models.events import BatchItemResult, BatchRequest, BatchResponse, StreamEvent
from ...services.batch_runner import BatchInput, BatchRunner, prepare_urls
from ...services.config import AppConfig, get_config
from ...services.streaming import EventStream
from ..dependencies import get_batch_runner
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()


def _batch_inputs(request: BatchRequest, config: AppConfig) -> List[BatchInput]:
    inputs = prepare_urls(request.urls, config.max_batch_urls)
    if not inputs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "URLs array is required"},
        )
    if len(request.urls) > config.max_batch_urls:
        logger.info(f"Batch truncated from {len(request.urls)} to {len(inputs)} URLs")
    return inputs


@router.post("/api/items/batch", response_model=BatchResponse, status_code=201)
async def import_batch(
    request: BatchRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    runner: Annotated[BatchRunner, Depends(get_batch_runner)],
    config: Annotated[AppConfig, Depends(get_config)],
):
    """Import up to the configured number of URLs and report per-URL results."""
    inputs = _batch_inputs(request, config)
    results: Dict[int, BatchItemResult] = {}

    async def collect(event: StreamEvent) -> None:
        if event.index is None:
            return
        url = inputs[event.index].url
        if event.type in ("item", "connections"):
            results[event.index] = BatchItemResult(url=url, success=True, item=event.item)
        elif event.type == "error":
            results[event.index] = BatchItemResult(url=url, success=False, error=event.message)

    progress = await runner.run(auth.user_id, inputs, collect, intent=request.intent)
    return BatchResponse(
        total=progress.total,
        successful=progress.success,
        failed=progress.failed,
        results=[results[index] for index in sorted(results)],
    )


@router.post("/api/items/batch/stream")
async def import_batch_stream(
    request: BatchRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    runner: Annotated[BatchRunner, Depends(get_batch_runner)],
    config: Annotated[AppConfig, Depends(get_config)],
):
    """Import URLs, streaming start/item/connections/error/complete events."""
    inputs = _batch_inputs(request, config)
    stream = EventStream(
        cancel_on_disconnect=config.cancel_on_disconnect,
        name=f"batch-stream:{auth.user_id}",
    )

    async def produce(emit) -> None:
        await runner.run(auth.user_id, inputs, emit, intent=request.intent)

    return EventSourceResponse(stream.stream(produce))
