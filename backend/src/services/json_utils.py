"""JSON utilities for reading structured data out of LLM replies."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional, Tuple


def clean_json_response(response: str) -> str:
    """Strip Markdown code fences around a JSON reply."""
    response = response.strip()

    if response.startswith("```json"):
        response = response[7:]
    elif response.startswith("```"):
        response = response[3:]

    if response.endswith("```"):
        response = response[:-3]

    return response.strip()


def _balanced_spans(text: str) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) spans of brace-balanced ``{...}`` candidates in order."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            char = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield start, pos + 1
                    break
        start = text.find("{", start + 1)


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Return the first balanced ``{...}`` in free-form text that parses as a JSON object.

    Braces inside JSON strings are ignored while balancing. Returns None when
    no candidate parses.
    """
    if not text:
        return None
    cleaned = clean_json_response(text)
    for begin, end in _balanced_spans(cleaned):
        try:
            value = json.loads(cleaned[begin:end])
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


__all__ = ["clean_json_response", "extract_json_object"]
