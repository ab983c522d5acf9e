"""AI analyzer - summary, tags and concepts for captured content.

The analyzer never fails its caller: any LLM error or unusable reply degrades
to :data:`FALLBACK_ANALYSIS` so capture still succeeds without enrichment.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .json_utils import extract_json_object
from .llm import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

PROMPT_CONTENT_CHARS = 1500

FALLBACK_SUMMARY = "Content captured successfully. AI analysis unavailable."

ANALYSIS_PROMPT = """Analyze: "{title}"
{content}

JSON only: {{"summary":"2 sentences max","tags":["3-5 topic tags"],"concepts":["3-5 key entities/ideas"]}}"""


def _clean_labels(values: List[str]) -> List[str]:
    seen: set[str] = set()
    cleaned: List[str] = []
    for value in values:
        label = value.strip()
        if label and label.lower() not in seen:
            seen.add(label.lower())
            cleaned.append(label)
    return cleaned


class Analysis(BaseModel):
    """Structured enrichment for one item."""

    summary: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    concepts: List[str] = Field(default_factory=list)

    @field_validator("summary")
    @classmethod
    def _strip_summary(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("summary must not be blank")
        return value

    @field_validator("tags", "concepts")
    @classmethod
    def _clean(cls, values: List[str]) -> List[str]:
        return _clean_labels(values)

    @classmethod
    def fallback(cls) -> "Analysis":
        return cls(summary=FALLBACK_SUMMARY, tags=["Uncategorized"], concepts=[])


FALLBACK_ANALYSIS = Analysis.fallback()


class AIAnalyzer:
    """Ask the LLM for a summary, tags and concepts."""

    def __init__(self, llm: LLMClient | None = None):
        self._llm = llm

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = get_llm_client()
        return self._llm

    async def analyze(self, content: str, title: str) -> Analysis:
        """Return the LLM analysis, or the fixed fallback on any failure."""
        prompt = ANALYSIS_PROMPT.format(title=title, content=content[:PROMPT_CONTENT_CHARS])
        try:
            reply = await self.llm.complete(prompt, max_tokens=512)
        except Exception as e:
            logger.warning(f"AI analysis failed for '{title[:80]}': {e}")
            return Analysis.fallback()

        parsed = extract_json_object(reply)
        if parsed is None:
            logger.warning(f"AI analysis returned no JSON for '{title[:80]}'")
            return Analysis.fallback()

        try:
            analysis = Analysis.model_validate(parsed)
        except ValidationError as e:
            logger.warning(f"AI analysis returned malformed JSON for '{title[:80]}': {e}")
            return Analysis.fallback()

        if not analysis.tags:
            analysis.tags = ["Uncategorized"]
        return analysis


# Singleton instance
_analyzer: Optional[AIAnalyzer] = None


def get_analyzer() -> AIAnalyzer:
    """Get or create the analyzer singleton."""
    global _analyzer
    if _analyzer is None:
        _analyzer = AIAnalyzer()
    return _analyzer


__all__ = ["AIAnalyzer", "Analysis", "FALLBACK_ANALYSIS", "FALLBACK_SUMMARY", "get_analyzer"]
