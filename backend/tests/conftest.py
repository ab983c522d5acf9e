"""Shared fixtures for the capture pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from backend.src.services import config as config_module
from backend.src.services.config import AppConfig
from backend.src.services.item_store import InMemoryItemStore
from backend.src.services.pipeline import CapturePipeline
from backend.tests.fakes import FakeAnalyzer, FakeExtractor, FakeLinker


@pytest.fixture
def test_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path,
        fetch_pages=False,
        anthropic_api_key=None,
        jwt_secret_key="a-secure-secret-value-123",
    )


@pytest.fixture
def store() -> InMemoryItemStore:
    return InMemoryItemStore()


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def fake_linker() -> FakeLinker:
    return FakeLinker()


@pytest.fixture
def pipeline(store, fake_extractor, fake_linker) -> CapturePipeline:
    return CapturePipeline(
        store=store,
        extractor=fake_extractor,
        analyzer=FakeAnalyzer(),
        linker=fake_linker,
    )


@pytest.fixture
def restore_config_cache():
    """Ensure configuration cache is cleared around env-driven tests."""
    config_module.reload_config()
    yield
    config_module.reload_config()
