"""Item store - per-user keyed storage of saved items.

Two implementations share one contract:

* ``InMemoryItemStore`` keeps items in a process-local dict (default).
* ``SqliteItemStore`` persists the same records in the ``saved_items`` table.

Connections are an undirected edge set between items of the same user.
Edges are only ever written through :meth:`ItemStore.add_edge`, which updates
both endpoints under a per-user lock so two pipelines linking into the same
target cannot lose each other's writes.
"""

from __future__ import annotations

import abc
import asyncio
import json
import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional

from ..models.item import ItemCreate, ItemUpdate, SavedItem
from ..models.library import Collection, CollectionCreate, Concept
from .config import get_config
from .database import DatabaseService

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the item store cannot complete an operation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ItemNotFoundError(StoreError):
    """Raised when an item does not exist for the requesting user."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


def now_ms() -> int:
    return int(time.time() * 1000)


def _matches(item: SavedItem, needle: str) -> bool:
    return (
        needle in item.title.lower()
        or needle in item.summary.lower()
        or needle in item.content.lower()
        or any(needle in tag.lower() for tag in item.tags)
        or any(needle in concept.lower() for concept in item.concepts)
    )


class ItemStore(abc.ABC):
    """Abstract per-user item store."""

    def __init__(self) -> None:
        self._user_locks: Dict[str, asyncio.Lock] = {}
        self._locks_loop: Optional[asyncio.AbstractEventLoop] = None

    def user_lock(self, user_id: str) -> asyncio.Lock:
        """Return the write lock guarding connection edits for ``user_id``."""
        loop = asyncio.get_running_loop()
        # Locks are bound to the event loop that first contends them.
        if self._locks_loop is not loop:
            self._user_locks = {}
            self._locks_loop = loop
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Item CRUD
    # ------------------------------------------------------------------
    @abc.abstractmethod
    async def create_item(self, user_id: str, data: ItemCreate) -> SavedItem:
        """Persist a new item and return it fully materialized."""

    @abc.abstractmethod
    async def get_item(self, user_id: str, item_id: str) -> Optional[SavedItem]:
        """Return the item if it exists and belongs to ``user_id``."""

    @abc.abstractmethod
    async def get_items_by_user(self, user_id: str) -> List[SavedItem]:
        """Return the user's items, newest first."""

    @abc.abstractmethod
    async def update_item(
        self, user_id: str, item_id: str, updates: ItemUpdate
    ) -> Optional[SavedItem]:
        """Apply user edits; returns None when the item does not exist."""

    @abc.abstractmethod
    async def _remove_item(self, user_id: str, item_id: str) -> bool:
        """Delete a single record without touching its peers."""

    @abc.abstractmethod
    async def _write_connections(
        self,
        user_id: str,
        item_id: str,
        connections: List[str],
        reasons: Dict[str, str],
    ) -> None:
        """Overwrite an item's connection fields and bump ``last_accessed``."""

    async def delete_item(self, user_id: str, item_id: str) -> bool:
        """Delete an item and drop every edge pointing at it."""
        async with self.user_lock(user_id):
            item = await self.get_item(user_id, item_id)
            if item is None:
                return False
            for peer_id in item.connections:
                peer = await self.get_item(user_id, peer_id)
                if peer is None:
                    continue
                reasons = {k: v for k, v in peer.connection_reasons.items() if k != item_id}
                await self._write_connections(
                    user_id,
                    peer_id,
                    [cid for cid in peer.connections if cid != item_id],
                    reasons,
                )
            return await self._remove_item(user_id, item_id)

    async def search_items(self, user_id: str, query: str) -> List[SavedItem]:
        """Case-insensitive substring search over text, tags and concepts."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [item for item in await self.get_items_by_user(user_id) if _matches(item, needle)]

    async def add_edge(
        self,
        user_id: str,
        item_id: str,
        other_id: str,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Connect two items symmetrically.

        Idempotent: re-adding an existing edge only fills in a missing reason.
        Returns False when either endpoint is missing or both ids are equal.
        """
        if item_id == other_id:
            return False
        async with self.user_lock(user_id):
            item = await self.get_item(user_id, item_id)
            other = await self.get_item(user_id, other_id)
            if item is None or other is None:
                logger.debug(f"Skipping edge {item_id} <-> {other_id}: endpoint missing")
                return False
            for source, target in ((item, other), (other, item)):
                connections = list(source.connections)
                reasons = dict(source.connection_reasons)
                changed = False
                if target.id not in connections:
                    connections.append(target.id)
                    changed = True
                if reason and not reasons.get(target.id):
                    reasons[target.id] = reason
                    changed = True
                if changed:
                    await self._write_connections(user_id, source.id, connections, reasons)
            return True

    # ------------------------------------------------------------------
    # Process-wide aggregate views
    # ------------------------------------------------------------------
    @abc.abstractmethod
    async def get_all_collections(self) -> List[Collection]:
        ...

    @abc.abstractmethod
    async def get_collection(self, collection_id: str) -> Optional[Collection]:
        ...

    @abc.abstractmethod
    async def create_collection(self, data: CollectionCreate) -> Collection:
        ...

    @abc.abstractmethod
    async def get_all_concepts(self) -> List[Concept]:
        ...

    @abc.abstractmethod
    async def save_concept(self, concept: Concept) -> Concept:
        ...

    @staticmethod
    def _new_item(user_id: str, data: ItemCreate) -> SavedItem:
        now = now_ms()
        return SavedItem(
            id=str(uuid.uuid4()),
            user_id=user_id,
            saved_at=now,
            last_accessed=now,
            **data.model_dump(),
        )


class InMemoryItemStore(ItemStore):
    """Item store backed by a process-local dict."""

    def __init__(self) -> None:
        super().__init__()
        self._items: Dict[str, SavedItem] = {}
        self._collections: Dict[str, Collection] = {}
        self._concepts: Dict[str, Concept] = {}

    async def create_item(self, user_id: str, data: ItemCreate) -> SavedItem:
        item = self._new_item(user_id, data)
        self._items[item.id] = item
        return item.model_copy(deep=True)

    async def get_item(self, user_id: str, item_id: str) -> Optional[SavedItem]:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            return None
        return item.model_copy(deep=True)

    async def get_items_by_user(self, user_id: str) -> List[SavedItem]:
        items = [item for item in self._items.values() if item.user_id == user_id]
        items.sort(key=lambda item: item.saved_at, reverse=True)
        return [item.model_copy(deep=True) for item in items]

    async def update_item(
        self, user_id: str, item_id: str, updates: ItemUpdate
    ) -> Optional[SavedItem]:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            return None
        merged = item.model_dump()
        merged.update(updates.model_dump(exclude_unset=True))
        merged["last_accessed"] = now_ms()
        updated = SavedItem.model_validate(merged)
        self._items[item_id] = updated
        return updated.model_copy(deep=True)

    async def _remove_item(self, user_id: str, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            return False
        del self._items[item_id]
        return True

    async def _write_connections(
        self,
        user_id: str,
        item_id: str,
        connections: List[str],
        reasons: Dict[str, str],
    ) -> None:
        item = self._items.get(item_id)
        if item is None or item.user_id != user_id:
            raise ItemNotFoundError(item_id)
        self._items[item_id] = item.model_copy(
            update={
                "connections": list(connections),
                "connection_reasons": dict(reasons),
                "last_accessed": now_ms(),
            }
        )

    async def get_all_collections(self) -> List[Collection]:
        return list(self._collections.values())

    async def get_collection(self, collection_id: str) -> Optional[Collection]:
        return self._collections.get(collection_id)

    async def create_collection(self, data: CollectionCreate) -> Collection:
        collection = Collection(id=str(uuid.uuid4()), created_at=now_ms(), **data.model_dump())
        self._collections[collection.id] = collection
        return collection

    async def get_all_concepts(self) -> List[Concept]:
        return list(self._concepts.values())

    async def save_concept(self, concept: Concept) -> Concept:
        self._concepts[concept.id] = concept
        return concept


_JSON_COLUMNS = ("tags", "concepts", "connections", "connection_reasons", "highlights")


class SqliteItemStore(ItemStore):
    """Item store persisted in SQLite via :class:`DatabaseService`."""

    def __init__(self, db_service: DatabaseService | None = None):
        super().__init__()
        self._db = db_service or DatabaseService()
        self._db.initialize()

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> SavedItem:
        data: Dict[str, Any] = dict(row)
        for column in _JSON_COLUMNS:
            data[column] = json.loads(data[column]) if data[column] else None
        data["is_read"] = bool(data["is_read"])
        return SavedItem.model_validate({k: v for k, v in data.items() if v is not None})

    @staticmethod
    def _item_to_params(item: SavedItem) -> Dict[str, Any]:
        data = item.model_dump()
        for column in _JSON_COLUMNS:
            data[column] = json.dumps(data[column])
        data["is_read"] = int(data["is_read"])
        return data

    async def create_item(self, user_id: str, data: ItemCreate) -> SavedItem:
        item = self._new_item(user_id, data)
        params = self._item_to_params(item)
        columns = ", ".join(params)
        placeholders = ", ".join(f":{name}" for name in params)
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO saved_items ({columns}) VALUES ({placeholders})", params
                )
        except sqlite3.Error as exc:
            logger.error(f"Failed to create item for user {user_id}: {exc}")
            raise StoreError(f"Failed to save item: {exc}") from exc
        finally:
            conn.close()
        return item

    async def get_item(self, user_id: str, item_id: str) -> Optional[SavedItem]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM saved_items WHERE user_id = ? AND id = ?",
                (user_id, item_id),
            ).fetchone()
            return self._row_to_item(row) if row else None
        finally:
            conn.close()

    async def get_items_by_user(self, user_id: str) -> List[SavedItem]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT * FROM saved_items WHERE user_id = ? ORDER BY saved_at DESC",
                (user_id,),
            ).fetchall()
            return [self._row_to_item(row) for row in rows]
        finally:
            conn.close()

    async def update_item(
        self, user_id: str, item_id: str, updates: ItemUpdate
    ) -> Optional[SavedItem]:
        item = await self.get_item(user_id, item_id)
        if item is None:
            return None
        merged = item.model_dump()
        merged.update(updates.model_dump(exclude_unset=True))
        merged["last_accessed"] = now_ms()
        updated = SavedItem.model_validate(merged)

        params = self._item_to_params(updated)
        assignments = ", ".join(
            f"{name} = :{name}" for name in params if name not in ("id", "user_id")
        )
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    f"UPDATE saved_items SET {assignments} WHERE id = :id AND user_id = :user_id",
                    params,
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update item: {exc}") from exc
        finally:
            conn.close()
        return updated

    async def _remove_item(self, user_id: str, item_id: str) -> bool:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM saved_items WHERE user_id = ? AND id = ?",
                    (user_id, item_id),
                )
            return cursor.rowcount > 0
        finally:
            conn.close()

    async def _write_connections(
        self,
        user_id: str,
        item_id: str,
        connections: List[str],
        reasons: Dict[str, str],
    ) -> None:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    """
                    UPDATE saved_items
                    SET connections = ?, connection_reasons = ?, last_accessed = ?
                    WHERE user_id = ? AND id = ?
                    """,
                    (json.dumps(connections), json.dumps(reasons), now_ms(), user_id, item_id),
                )
            if cursor.rowcount == 0:
                raise ItemNotFoundError(item_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update connections: {exc}") from exc
        finally:
            conn.close()

    async def get_all_collections(self) -> List[Collection]:
        conn = self._db.connect()
        try:
            rows = conn.execute("SELECT * FROM collections ORDER BY created_at").fetchall()
            return [self._row_to_collection(row) for row in rows]
        finally:
            conn.close()

    async def get_collection(self, collection_id: str) -> Optional[Collection]:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT * FROM collections WHERE id = ?", (collection_id,)
            ).fetchone()
            return self._row_to_collection(row) if row else None
        finally:
            conn.close()

    async def create_collection(self, data: CollectionCreate) -> Collection:
        collection = Collection(id=str(uuid.uuid4()), created_at=now_ms(), **data.model_dump())
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO collections (id, name, description, item_ids, color, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        collection.id,
                        collection.name,
                        collection.description,
                        json.dumps(collection.item_ids),
                        collection.color,
                        collection.created_at,
                    ),
                )
        finally:
            conn.close()
        return collection

    async def get_all_concepts(self) -> List[Concept]:
        conn = self._db.connect()
        try:
            rows = conn.execute("SELECT * FROM concepts ORDER BY name").fetchall()
            return [
                Concept(
                    id=row["id"],
                    name=row["name"],
                    item_ids=json.loads(row["item_ids"]),
                    related_concepts=json.loads(row["related_concepts"]),
                )
                for row in rows
            ]
        finally:
            conn.close()

    async def save_concept(self, concept: Concept) -> Concept:
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO concepts (id, name, item_ids, related_concepts)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        concept.id,
                        concept.name,
                        json.dumps(concept.item_ids),
                        json.dumps(concept.related_concepts),
                    ),
                )
        finally:
            conn.close()
        return concept

    @staticmethod
    def _row_to_collection(row: sqlite3.Row) -> Collection:
        return Collection(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            item_ids=json.loads(row["item_ids"]),
            color=row["color"],
            created_at=row["created_at"],
        )


# Singleton instance
_item_store: Optional[ItemStore] = None


def get_item_store() -> ItemStore:
    """Get or create the configured item store singleton."""
    global _item_store
    if _item_store is None:
        config = get_config()
        if config.item_store_backend == "sqlite":
            _item_store = SqliteItemStore(DatabaseService(config.database_path))
        else:
            _item_store = InMemoryItemStore()
        logger.info(f"Item store initialized: {type(_item_store).__name__}")
    return _item_store


def reset_item_store() -> None:
    """Drop the singleton (tests)."""
    global _item_store
    _item_store = None


__all__ = [
    "ItemStore",
    "InMemoryItemStore",
    "SqliteItemStore",
    "StoreError",
    "ItemNotFoundError",
    "get_item_store",
    "reset_item_store",
    "now_ms",
]
