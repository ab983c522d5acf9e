"""Centralized logging configuration for the application."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import AppConfig, get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """
    Configure the root logger once.

    Args:
        config: AppConfig instance, uses the cached config if None
    """
    config = config or get_config()
    level = getattr(logging, config.log_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(handler, "_eden_handler", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._eden_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # httpx logs every request at INFO; keep it quieter than our own services.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


__all__ = ["setup_logging", "LOG_FORMAT"]
