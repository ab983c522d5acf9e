"""HTTP API route handlers."""

from . import auth, batch, bookmarklet, chat, graph, items, library, upload

__all__ = ["auth", "batch", "bookmarklet", "chat", "graph", "items", "library", "upload"]
