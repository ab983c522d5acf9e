from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache(restore_config_cache):
    yield


def test_get_config_allows_missing_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    cfg = config_module.reload_config()

    assert cfg.jwt_secret_key is None
    assert cfg.data_dir == tmp_path.resolve()
    assert cfg.database_path == tmp_path.resolve() / "eden.db"


def test_get_config_rejects_short_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_get_config_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    for key in ("BATCH_CONCURRENCY", "MAX_BATCH_URLS", "ITEM_STORE_BACKEND", "LLM_MODEL"):
        monkeypatch.delenv(key, raising=False)

    cfg = config_module.reload_config()

    assert cfg.batch_concurrency == 3
    assert cfg.max_batch_urls == 50
    assert cfg.max_bookmarks_per_file == 100
    assert cfg.max_upload_files == 10
    assert cfg.item_store_backend == "memory"
    assert cfg.llm_model == "claude-sonnet-4-5"
    assert cfg.cancel_on_disconnect is True


def test_get_config_reads_numeric_and_flag_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BATCH_CONCURRENCY", "5")
    monkeypatch.setenv("FETCH_PAGES", "false")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = config_module.reload_config()

    assert cfg.batch_concurrency == 5
    assert cfg.fetch_pages is False
    assert cfg.cors_origins == ("https://a.example", "https://b.example")
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "key,value",
    [("ITEM_STORE_BACKEND", "redis"), ("BATCH_CONCURRENCY", "0")],
)
def test_get_config_rejects_invalid_values(monkeypatch, tmp_path: Path, key, value) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv(key, value)

    with pytest.raises(ValueError):
        config_module.reload_config()
