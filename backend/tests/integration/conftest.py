"""API client wired to in-process fakes through dependency overrides."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from backend.src.api.main import app
from backend.src.api.middleware import AuthContext, get_api_token_service, get_auth_context
from backend.src.services.auth import ApiTokenService
from backend.src.services.background import get_background_runner
from backend.src.services.config import get_config
from backend.src.services.database import DatabaseService
from backend.src.services.extractor import ContentExtractor, get_extractor
from backend.src.services.item_store import get_item_store
from backend.src.services.pipeline import get_pipeline


@pytest.fixture
def api_tokens(tmp_path) -> ApiTokenService:
    return ApiTokenService(DatabaseService(tmp_path / "tokens.db"))


@pytest.fixture
def background() -> Mock:
    runner = Mock()
    runner.schedule = Mock(side_effect=lambda name, coro: coro.close())
    return runner


@pytest.fixture
def client(test_config, pipeline, store, api_tokens, background):
    mock_auth = Mock(spec=AuthContext)
    mock_auth.user_id = "test-user"

    app.dependency_overrides[get_auth_context] = lambda: mock_auth
    app.dependency_overrides[get_config] = lambda: test_config
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_item_store] = lambda: store
    app.dependency_overrides[get_extractor] = lambda: ContentExtractor(test_config)
    app.dependency_overrides[get_api_token_service] = lambda: api_tokens
    app.dependency_overrides[get_background_runner] = lambda: background

    yield TestClient(app)

    # Clean up overrides
    app.dependency_overrides = {}
