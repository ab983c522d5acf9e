"""Chat assistant route."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...models.chat import ChatItem, ChatRequest, ChatResponse
from ...services.chat import MAX_CONTEXT_ITEMS, ChatService, get_chat_service
from ...services.item_store import ItemStore, get_item_store
from ..middleware import AuthContext, get_auth_context

router = APIRouter()


@router.post("/api/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    """Answer a question over the given items, or the caller's own items."""
    items = request.items
    if items is None:
        saved = await store.get_items_by_user(auth.user_id)
        items = [
            ChatItem(
                id=item.id,
                title=item.title,
                summary=item.summary,
                tags=item.tags,
                concepts=item.concepts,
                url=item.url,
            )
            for item in saved[:MAX_CONTEXT_ITEMS]
        ]
    response = await chat_service.reply(request.message, items)
    return ChatResponse(response=response)
