"""Bookmarklet save endpoint (JSONP, API-token authenticated)."""

from __future__ import annotations

import json
import logging
import re
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...models.auth import ApiTokenResponse
from ...services.auth import ApiTokenService
from ...services.background import BackgroundTaskRunner, get_background_runner
from ...services.batch_runner import error_message
from ...services.extractor import ExtractionError
from ...services.item_store import StoreError
from ...services.pipeline import CapturePipeline, get_pipeline
from ..middleware import AuthContext, get_api_token_service, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()

# Dotted JavaScript identifier, e.g. ``_eden_123`` or ``window.cb``
CALLBACK_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$")


def jsonp_response(callback: str, payload: Dict[str, Any]) -> Response:
    body = f"{callback}({json.dumps(payload)});"
    return Response(content=body, media_type="application/javascript")


@router.get("/api/bookmarklet/token", response_model=ApiTokenResponse)
async def get_bookmarklet_token(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    tokens: Annotated[ApiTokenService, Depends(get_api_token_service)],
):
    """Return the caller's API token for embedding in the bookmarklet."""
    return ApiTokenResponse(token=tokens.get_or_create_api_token(auth.user_id))


@router.get("/api/bookmarklet/save")
async def bookmarklet_save(
    tokens: Annotated[ApiTokenService, Depends(get_api_token_service)],
    pipeline: Annotated[CapturePipeline, Depends(get_pipeline)],
    background: Annotated[BackgroundTaskRunner, Depends(get_background_runner)],
    callback: str = Query(..., description="JavaScript function to invoke"),
    url: Optional[str] = Query(None, description="Page URL to save"),
    title: Optional[str] = Query(None, description="Page title"),
    token: Optional[str] = Query(None, description="Per-user API token"),
):
    """
    Save the current page from a bookmarklet.

    Responds with ``callback({...});``. Linking runs afterwards as a
    background task so the response does not wait on the LLM.
    """
    if not CALLBACK_PATTERN.match(callback):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "message": "Invalid callback name"},
        )

    user_id = tokens.get_user_by_api_token(token or "")
    if not user_id:
        return jsonp_response(callback, {"success": False, "error": "Invalid or missing API token"})
    if not url or not url.strip():
        return jsonp_response(callback, {"success": False, "error": "URL is required"})

    try:
        item = await pipeline.ingest_url(user_id, url, title=title)
    except (ExtractionError, StoreError) as e:
        logger.warning(f"Bookmarklet save failed for {url[:120]}: {e}")
        return jsonp_response(callback, {"success": False, "error": error_message(e)})

    background.schedule(f"link:{item.id}", pipeline.connect(user_id, item))
    return jsonp_response(
        callback, {"success": True, "item": item.model_dump(by_alias=True, mode="json")}
    )
