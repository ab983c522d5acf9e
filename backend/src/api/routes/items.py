"""HTTP API routes for saved items."""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...models.item import CaptureRequest, ItemUpdate, SavedItem
from ...services.item_store import ItemNotFoundError, ItemStore, get_item_store
from ...services.pipeline import CapturePipeline, get_pipeline
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/items", response_model=list[SavedItem])
async def list_items(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    """List the caller's items, newest first."""
    return await store.get_items_by_user(auth.user_id)


@router.get("/api/items/{item_id}", response_model=SavedItem)
async def get_item(
    item_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    item = await store.get_item(auth.user_id, item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


@router.patch("/api/items/{item_id}", response_model=SavedItem)
async def update_item(
    item_id: str,
    updates: ItemUpdate,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    """Apply reading progress, notes, highlights and other user edits."""
    item = await store.update_item(auth.user_id, item_id, updates)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


@router.delete("/api/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    if not await store.delete_item(auth.user_id, item_id):
        raise ItemNotFoundError(item_id)
    logger.info(f"Deleted item {item_id} for user {auth.user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/search", response_model=list[SavedItem])
async def search_items(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
    q: Optional[str] = Query(None, description="Search query"),
):
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "Query parameter 'q' is required"},
        )
    return await store.search_items(auth.user_id, q)


@router.post("/api/items/capture", response_model=SavedItem, status_code=201)
async def capture_item(
    request: CaptureRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pipeline: Annotated[CapturePipeline, Depends(get_pipeline)],
):
    """
    Capture one URL: extract, analyze, store and link before responding.

    Extraction failures surface through the shared error handlers.
    """
    return await pipeline.capture_url(auth.user_id, request.url, intent=request.intent)
