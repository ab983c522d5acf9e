"""Shared FastAPI dependencies for the capture routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from ..services.batch_runner import BatchRunner
from ..services.config import AppConfig, get_config
from ..services.pipeline import CapturePipeline, get_pipeline


def get_batch_runner(
    pipeline: Annotated[CapturePipeline, Depends(get_pipeline)],
    config: Annotated[AppConfig, Depends(get_config)],
) -> BatchRunner:
    """A runner bound to the request's pipeline and the configured concurrency."""
    return BatchRunner(pipeline, concurrency=config.batch_concurrency)


__all__ = ["get_batch_runner"]
