"""File upload import routes (collected and streamed)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Annotated, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sse_starlette.sse import EventSourceResponse

from ...models.events import BatchProgress, StreamEvent, UploadFileResult, UploadResponse
from ...models.item import SavedItem
from ...services.batch_runner import BatchInput, BatchRunner, EventCallback
from ...services.config import AppConfig, get_config
from ...services.extractor import BookmarkExport, ContentExtractor, ExtractionError, get_extractor
from ...services.streaming import EventStream
from ..dependencies import get_batch_runner
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class UploadPayload:
    """An uploaded file read fully into memory."""

    file_name: str
    content_type: Optional[str]
    data: bytes


async def read_uploads(files: List[UploadFile], config: AppConfig) -> List[UploadPayload]:
    """Read at most ``max_upload_files`` files, dropping the rest."""
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "No files uploaded"},
        )
    if len(files) > config.max_upload_files:
        logger.info(f"Upload truncated from {len(files)} to {config.max_upload_files} files")
    payloads = []
    for upload in files[: config.max_upload_files]:
        payloads.append(
            UploadPayload(
                file_name=upload.filename or "upload",
                content_type=upload.content_type,
                data=await upload.read(),
            )
        )
    return payloads


async def run_file(
    payload: UploadPayload,
    user_id: str,
    runner: BatchRunner,
    extractor: ContentExtractor,
    emit: EventCallback,
) -> Tuple[BatchProgress, bool]:
    """
    Import one uploaded file, emitting its own start/.../complete sequence.

    Bookmark exports expand into a URL sub-batch. Returns the file's final
    counters and whether it was a bookmark export.
    """
    name = payload.file_name
    try:
        extracted = await asyncio.to_thread(
            extractor.extract_file, payload.data, name, payload.content_type
        )
    except ExtractionError as e:
        logger.warning(f"Could not extract uploaded file {name}: {e.message}")
        progress = BatchProgress(failed=1, total=1)
        await emit(StreamEvent(type="start", total=1, file_name=name))
        await emit(
            StreamEvent(type="error", index=0, file_name=name, message=e.message, progress=progress)
        )
        await emit(StreamEvent(type="complete", file_name=name, success=0, failed=1, total=1))
        return progress, False

    if isinstance(extracted, BookmarkExport):
        inputs = [BatchInput(url=entry.url, title=entry.title) for entry in extracted.entries]
        return await runner.run(user_id, inputs, emit, file_name=name), True

    document = BatchInput(url=name, document=extracted)
    return await runner.run(user_id, [document], emit, file_name=name), False


@router.post("/api/items/upload", response_model=UploadResponse, status_code=201)
async def upload_files(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    runner: Annotated[BatchRunner, Depends(get_batch_runner)],
    extractor: Annotated[ContentExtractor, Depends(get_extractor)],
    config: Annotated[AppConfig, Depends(get_config)],
    files: Annotated[List[UploadFile], File(description="Files to import")],
):
    """Import uploaded files and report per-file results."""
    payloads = await read_uploads(files, config)
    results: List[UploadFileResult] = []
    bookmarks_imported = 0

    for payload in payloads:
        items: Dict[int, SavedItem] = {}
        errors: List[str] = []

        async def collect(event: StreamEvent) -> None:
            if event.type in ("item", "connections") and event.item is not None:
                items[event.index] = event.item
            elif event.type == "error" and event.message:
                errors.append(event.message)

        progress, is_bookmarks = await run_file(payload, auth.user_id, runner, extractor, collect)
        ordered = [items[index] for index in sorted(items)]

        if is_bookmarks:
            bookmarks_imported += progress.success
            results.append(
                UploadFileResult(
                    file_name=payload.file_name,
                    success=progress.success > 0,
                    items=ordered,
                    bookmarks_processed=progress.success,
                    error=f"{progress.failed} bookmarks failed to import" if progress.failed else None,
                )
            )
        else:
            results.append(
                UploadFileResult(
                    file_name=payload.file_name,
                    success=progress.success > 0,
                    item=ordered[0] if ordered else None,
                    error=errors[0] if errors else None,
                )
            )

    successful = sum(1 for result in results if result.success)
    return UploadResponse(
        total=len(results),
        successful=successful,
        failed=len(results) - successful,
        bookmarks_imported=bookmarks_imported,
        results=results,
    )


@router.post("/api/items/upload/stream")
async def upload_files_stream(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    runner: Annotated[BatchRunner, Depends(get_batch_runner)],
    extractor: Annotated[ContentExtractor, Depends(get_extractor)],
    config: Annotated[AppConfig, Depends(get_config)],
    files: Annotated[List[UploadFile], File(description="Files to import")],
):
    """Import uploaded files one after another, streaming every file's events."""
    payloads = await read_uploads(files, config)
    stream = EventStream(
        cancel_on_disconnect=config.cancel_on_disconnect,
        name=f"upload-stream:{auth.user_id}",
    )

    async def produce(emit: EventCallback) -> None:
        for payload in payloads:
            await run_file(payload, auth.user_id, runner, extractor, emit)

    return EventSourceResponse(stream.stream(produce))
