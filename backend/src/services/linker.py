"""Connection linker - LLM-inferred relatedness between a new item and existing ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..models.item import SavedItem
from .json_utils import extract_json_object
from .llm import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 10
MAX_CONNECTIONS = 3

CONNECTION_PROMPT = """New: "{title}" [{tags}]
Summary: {summary}
Items:
{item_list}

JSON: {{"connections":{{"id":"why connected"}}}} max {max_connections}"""


@dataclass
class LinkResult:
    """Item ids selected as related, with a short reason per id."""

    connections: List[str] = field(default_factory=list)
    reasons: Dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.connections)


class ConnectionLinker:
    """Pick at most three related items from a bounded candidate window."""

    def __init__(self, llm: LLMClient | None = None, *, max_candidates: int = MAX_CANDIDATES):
        self._llm = llm
        self.max_candidates = max_candidates

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = get_llm_client()
        return self._llm

    def _build_prompt(self, item: SavedItem, pool: Sequence[SavedItem]) -> str:
        item_list = "\n".join(
            f"{candidate.id}|{candidate.title}|{','.join(candidate.tags[:3])}"
            for candidate in pool
        )
        return CONNECTION_PROMPT.format(
            title=item.title,
            tags=",".join(item.tags),
            summary=item.summary,
            item_list=item_list,
            max_connections=MAX_CONNECTIONS,
        )

    async def link(self, item: SavedItem, candidates: Sequence[SavedItem]) -> LinkResult:
        """
        Ask the LLM which candidates relate to ``item``.

        Candidates are considered in the given order, capped at
        ``max_candidates``. Ids the model invents, or the item's own id, are
        dropped. Returns an empty result on an empty pool or any failure.
        """
        pool = [candidate for candidate in candidates if candidate.id != item.id]
        pool = pool[: self.max_candidates]
        if not pool:
            return LinkResult()

        try:
            reply = await self.llm.complete(self._build_prompt(item, pool), max_tokens=256)
        except Exception as e:
            logger.warning(f"Connection finding failed for item {item.id}: {e}")
            return LinkResult()

        parsed = extract_json_object(reply)
        raw = parsed.get("connections") if parsed else None
        if isinstance(raw, list):
            raw = {str(value): "" for value in raw}
        if not isinstance(raw, dict):
            logger.info(f"No usable connections in LLM reply for item {item.id}")
            return LinkResult()

        pool_ids = {candidate.id for candidate in pool}
        result = LinkResult()
        for candidate_id, reason in raw.items():
            candidate_id = str(candidate_id).strip()
            if candidate_id not in pool_ids or candidate_id in result.reasons:
                continue
            result.connections.append(candidate_id)
            result.reasons[candidate_id] = str(reason or "").strip()
            if len(result.connections) >= MAX_CONNECTIONS:
                break

        logger.info(f"Linked item {item.id} to {len(result.connections)} existing item(s)")
        return result


# Singleton instance
_linker: Optional[ConnectionLinker] = None


def get_linker() -> ConnectionLinker:
    """Get or create the linker singleton."""
    global _linker
    if _linker is None:
        _linker = ConnectionLinker()
    return _linker


__all__ = ["ConnectionLinker", "LinkResult", "MAX_CANDIDATES", "MAX_CONNECTIONS", "get_linker"]
