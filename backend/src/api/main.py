"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers
from .routes import auth, batch, bookmarklet, chat, graph, items, library, upload
from ..services.background import get_background_runner
from ..services.config import get_config
from ..services.logging_config import setup_logging
from ..services.seed import init_and_seed

config = get_config()
setup_logging(config)

logger = logging.getLogger(__name__)

SHUTDOWN_DRAIN_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed demo data on startup and let background work finish on shutdown."""
    if config.seed_demo_data:
        logger.info("Running startup: initializing database and seeding demo items...")
        try:
            await init_and_seed()
            logger.info("Startup complete: database and demo items ready")
        except Exception as exc:
            logger.exception("Startup failed: %s", exc)
            logger.error("App starting without demo data due to initialization error")

    yield

    runner = get_background_runner()
    if runner.pending:
        logger.info(f"Waiting for {runner.pending} background task(s) before shutdown")
        await runner.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
        runner.cancel_all()


app = FastAPI(
    title="Eden API",
    description="Knowledge capture with AI enrichment and connection discovery",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router, tags=["auth"])
app.include_router(items.router, tags=["items"])
app.include_router(batch.router, tags=["batch"])
app.include_router(upload.router, tags=["upload"])
app.include_router(bookmarklet.router, tags=["bookmarklet"])
app.include_router(library.router, tags=["library"])
app.include_router(graph.router, tags=["graph"])
app.include_router(chat.router, tags=["chat"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
