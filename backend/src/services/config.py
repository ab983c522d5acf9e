"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="HMAC secret for JWT signing (required for JWT auth)",
    )
    enable_local_mode: bool = Field(
        default=True,
        description="Allow local-dev token bypass when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for development",
    )
    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR, description="Directory holding the SQLite database"
    )
    item_store_backend: Literal["memory", "sqlite"] = Field(
        default="memory", description="Item store implementation"
    )
    seed_demo_data: bool = Field(
        default=True, description="Seed demo items for the local-dev user on startup"
    )
    anthropic_api_key: Optional[str] = Field(None, description="LLM API key")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com", description="LLM API base URL"
    )
    llm_model: str = Field(default="claude-sonnet-4-5", description="LLM model identifier")
    llm_timeout_seconds: float = Field(default=60.0, gt=0)
    fetch_timeout_seconds: float = Field(default=20.0, gt=0)
    fetch_pages: bool = Field(
        default=True,
        description="Fetch page content for URL captures (False synthesizes from the URL)",
    )
    batch_concurrency: int = Field(default=3, ge=1, le=32)
    max_batch_urls: int = Field(default=50, ge=1)
    max_bookmarks_per_file: int = Field(default=100, ge=1)
    max_upload_files: int = Field(default=10, ge=1)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    cancel_on_disconnect: bool = Field(
        default=True,
        description="Cancel in-flight batch work when a streaming client disconnects",
    )
    cors_origins: tuple[str, ...] = Field(
        default=("http://localhost:5173", "http://localhost:3000")
    )
    log_level: str = Field(default="INFO")

    @field_validator("data_dir", mode="before")
    @classmethod
    def _normalize_data_dir(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_DATA_DIR
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _ensure_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(
                "JWT_SECRET_KEY cannot be empty; unset the variable to disable JWT auth in local mode"
            )
        if len(cleaned) < 16:
            raise ValueError("JWT_SECRET_KEY must be at least 16 characters")
        return cleaned

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        if isinstance(value, str):
            return tuple(origin.strip() for origin in value.split(",") if origin.strip())
        return tuple(value)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def database_path(self) -> Path:
        return self.data_dir / "eden.db"


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str) -> bool:
    return (_read_env(key, default) or default).lower() not in {"0", "false", "no"}


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    values: dict[str, object] = {
        "jwt_secret_key": _read_env("JWT_SECRET_KEY"),
        "enable_local_mode": _read_flag("ENABLE_LOCAL_MODE", "true"),
        "local_dev_token": _read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        "data_dir": _read_env("DATA_DIR", str(DEFAULT_DATA_DIR)),
        "item_store_backend": _read_env("ITEM_STORE_BACKEND", "memory"),
        "seed_demo_data": _read_flag("SEED_DEMO_DATA", "true"),
        "anthropic_api_key": _read_env("ANTHROPIC_API_KEY"),
        "anthropic_base_url": _read_env("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
        "llm_model": _read_env("LLM_MODEL", "claude-sonnet-4-5"),
        "fetch_pages": _read_flag("FETCH_PAGES", "true"),
        "cancel_on_disconnect": _read_flag("CANCEL_ON_DISCONNECT", "true"),
        "cors_origins": _read_env("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"),
        "log_level": _read_env("LOG_LEVEL", "INFO"),
    }
    # Numeric settings fall back to model defaults when unset.
    numeric_env = {
        "llm_timeout_seconds": "LLM_TIMEOUT_SECONDS",
        "fetch_timeout_seconds": "FETCH_TIMEOUT_SECONDS",
        "batch_concurrency": "BATCH_CONCURRENCY",
        "max_batch_urls": "MAX_BATCH_URLS",
        "max_bookmarks_per_file": "MAX_BOOKMARKS_PER_FILE",
        "max_upload_files": "MAX_UPLOAD_FILES",
        "max_upload_bytes": "MAX_UPLOAD_BYTES",
    }
    for field, env_key in numeric_env.items():
        raw = _read_env(env_key)
        if raw is not None and raw.strip():
            values[field] = raw.strip()

    config = AppConfig(**values)
    # Ensure the data directory exists for downstream services.
    config.data_dir.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DATA_DIR"]
