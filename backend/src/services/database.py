"""SQLite database helpers for the item store and API tokens."""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Iterable

from .config import get_config

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS saved_items (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        url TEXT NOT NULL,
        intent TEXT NOT NULL DEFAULT 'read_later',
        title TEXT NOT NULL,
        content TEXT NOT NULL DEFAULT '',
        summary TEXT NOT NULL DEFAULT '',
        tags TEXT NOT NULL DEFAULT '[]',
        concepts TEXT NOT NULL DEFAULT '[]',
        domain TEXT NOT NULL DEFAULT '',
        favicon TEXT,
        image_url TEXT,
        connections TEXT NOT NULL DEFAULT '[]',
        connection_reasons TEXT NOT NULL DEFAULT '{}',
        saved_at INTEGER NOT NULL,
        last_accessed INTEGER NOT NULL,
        is_read INTEGER NOT NULL DEFAULT 0,
        reading_progress INTEGER NOT NULL DEFAULT 0,
        notes TEXT NOT NULL DEFAULT '',
        highlights TEXT NOT NULL DEFAULT '[]',
        expires_at INTEGER
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_items_user ON saved_items(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_items_user_saved ON saved_items(user_id, saved_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS collections (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        item_ids TEXT NOT NULL DEFAULT '[]',
        color TEXT,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS concepts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        item_ids TEXT NOT NULL DEFAULT '[]',
        related_concepts TEXT NOT NULL DEFAULT '[]'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_tokens (
        user_id TEXT PRIMARY KEY,
        token TEXT NOT NULL UNIQUE,
        created_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_api_tokens_token ON api_tokens(token)",
)


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else get_config().database_path

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts."""
        conn = self.connect()
        try:
            with conn:  # Transactional apply of DDL
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)
        finally:
            conn.close()
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used at startup and by tests."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "DDL_STATEMENTS"]
