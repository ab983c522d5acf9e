"""Chat assistant grounded in the user's saved items."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..models.chat import ChatItem
from .llm import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

MAX_CONTEXT_ITEMS = 20

FALLBACK_REPLY = "I'm having trouble connecting right now. Please try again in a moment."
EMPTY_REPLY = "I couldn't process that request."

CHAT_PROMPT = """You are Eden, an intelligent personal knowledge management assistant. You help users navigate their saved content, find connections, and get insights.

The user has saved these items:
{item_context}

User question: {message}

Provide a helpful, conversational response. If referring to specific saved items, mention them by title. Be concise but thorough."""


class ChatService:
    """Answer questions about saved items. Never raises on LLM failure."""

    def __init__(self, llm: LLMClient | None = None):
        self._llm = llm

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = get_llm_client()
        return self._llm

    @staticmethod
    def build_context(items: Sequence[ChatItem]) -> str:
        lines = [
            f'- "{item.title}" ({", ".join(item.tags)}): {item.summary}'
            for item in items[:MAX_CONTEXT_ITEMS]
        ]
        return "\n".join(lines) or "No items saved yet."

    async def reply(self, message: str, items: Sequence[ChatItem]) -> str:
        prompt = CHAT_PROMPT.format(item_context=self.build_context(items), message=message)
        try:
            text = await self.llm.complete(prompt, max_tokens=1024)
        except Exception as e:
            logger.warning(f"Chat failed: {e}")
            return FALLBACK_REPLY
        return text.strip() or EMPTY_REPLY


_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service


__all__ = ["ChatService", "FALLBACK_REPLY", "MAX_CONTEXT_ITEMS", "get_chat_service"]
