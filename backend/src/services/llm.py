"""LLM client - single-turn completions against the Anthropic Messages API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the LLM call fails or returns nothing usable."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LLMClient:
    """Thin async wrapper over one ``/v1/messages`` request per call."""

    ANTHROPIC_VERSION = "2023-06-01"

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Application config (API key, base URL, model, timeout)
            transport: Optional httpx transport, used by tests to mock the API
        """
        self.config = config or get_config()
        self._transport = transport

    @property
    def model(self) -> str:
        return self.config.llm_model

    async def complete(self, prompt: str, *, max_tokens: int = 512) -> str:
        """
        Send a single user message and return the reply text.

        Raises:
            LLMError: On missing credentials, transport errors, HTTP errors or
                an empty reply
        """
        api_key = self.config.anthropic_api_key
        if not api_key:
            raise LLMError("No LLM API key configured. Set ANTHROPIC_API_KEY.")

        headers = {
            "x-api-key": api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        url = f"{self.config.anthropic_base_url.rstrip('/')}/v1/messages"

        try:
            async with httpx.AsyncClient(
                timeout=self.config.llm_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM request timed out after {self.config.llm_timeout_seconds}s") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM API error: {e.response.status_code}",
                {"status_code": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e
        except ValueError as e:
            raise LLMError("LLM API returned invalid JSON") from e

        for block in data.get("content") or []:
            if block.get("type") == "text" and block.get("text"):
                usage = data.get("usage", {})
                logger.debug(
                    f"LLM reply from {self.model}: "
                    f"{usage.get('input_tokens', 0)} in / {usage.get('output_tokens', 0)} out"
                )
                return block["text"]

        raise LLMError("LLM returned an empty response", {"response": data})


# Singleton instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client singleton."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


__all__ = ["LLMClient", "LLMError", "get_llm_client"]
