"""Tests for the LLM client using a mocked Messages API."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from backend.src.services.config import AppConfig
from backend.src.services.llm import LLMClient, LLMError


def make_client(tmp_path: Path, handler, api_key: str | None = "test-key") -> LLMClient:
    config = AppConfig(data_dir=tmp_path, anthropic_api_key=api_key, llm_model="test-model")
    return LLMClient(config, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_complete_returns_first_text_block(tmp_path: Path) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "content": [{"type": "text", "text": '{"summary": "ok"}'}],
                "usage": {"input_tokens": 10, "output_tokens": 5},
            },
        )

    reply = await make_client(tmp_path, handler).complete("Summarize this", max_tokens=256)

    assert reply == '{"summary": "ok"}'
    assert seen["url"] == "https://api.anthropic.com/v1/messages"
    assert seen["headers"]["x-api-key"] == "test-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["max_tokens"] == 256
    assert seen["body"]["messages"] == [{"role": "user", "content": "Summarize this"}]


@pytest.mark.asyncio
async def test_missing_api_key(tmp_path: Path) -> None:
    client = make_client(tmp_path, lambda request: httpx.Response(200), api_key=None)

    with pytest.raises(LLMError, match="ANTHROPIC_API_KEY"):
        await client.complete("hi")


@pytest.mark.asyncio
async def test_http_error_carries_status(tmp_path: Path) -> None:
    client = make_client(tmp_path, lambda request: httpx.Response(529, text="overloaded"))

    with pytest.raises(LLMError) as excinfo:
        await client.complete("hi")

    assert excinfo.value.details["status_code"] == 529


@pytest.mark.asyncio
async def test_timeout_is_reported(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(LLMError, match="timed out"):
        await make_client(tmp_path, handler).complete("hi")


@pytest.mark.asyncio
async def test_empty_reply_is_an_error(tmp_path: Path) -> None:
    client = make_client(tmp_path, lambda request: httpx.Response(200, json={"content": []}))

    with pytest.raises(LLMError, match="empty"):
        await client.complete("hi")
