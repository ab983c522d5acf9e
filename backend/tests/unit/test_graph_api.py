import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient
from backend.src.api.main import app
from backend.src.api.routes.graph import build_graph
from backend.src.models.item import SavedItem
from backend.src.services.item_store import get_item_store
from backend.src.api.middleware import AuthContext, get_auth_context

client = TestClient(app)


def make_item(item_id, tags=None, connections=None, reasons=None):
    return SavedItem(
        id=item_id,
        user_id="test-user",
        url=f"https://example.com/{item_id}",
        title=f"Title {item_id}",
        tags=tags if tags is not None else ["React"],
        connections=connections or [],
        connection_reasons=reasons or {},
        saved_at=1,
        last_accessed=1,
    )


@pytest.fixture
def mock_store():
    store = Mock()
    store.get_items_by_user = AsyncMock()
    app.dependency_overrides[get_item_store] = lambda: store

    mock_auth = Mock(spec=AuthContext)
    mock_auth.user_id = "test-user"
    app.dependency_overrides[get_auth_context] = lambda: mock_auth

    yield store

    # Clean up overrides
    app.dependency_overrides = {}


def test_build_graph_deduplicates_symmetric_edges():
    items = [
        make_item("a", connections=["b"], reasons={"b": "Shared topic"}),
        make_item("b", tags=[], connections=["a"], reasons={"a": "Shared topic"}),
        make_item("c"),
    ]

    graph = build_graph(items)

    assert len(graph.links) == 1
    assert graph.links[0].reason == "Shared topic"
    nodes = {node.id: node for node in graph.nodes}
    assert nodes["a"].val == 2
    assert nodes["c"].val == 1
    assert nodes["b"].group == "Uncategorized"
    assert nodes["a"].group == "React"


def test_build_graph_skips_dangling_ids():
    graph = build_graph([make_item("a", connections=["deleted", "a"])])

    assert graph.links == []
    assert graph.nodes[0].val == 1


def test_get_graph_data_success(mock_store):
    """Test successful retrieval of graph data."""
    mock_store.get_items_by_user.return_value = [
        make_item("a", connections=["b"]),
        make_item("b", connections=["a"]),
    ]

    response = client.get("/api/graph")

    assert response.status_code == 200
    data = response.json()
    assert "nodes" in data
    assert "links" in data
    assert len(data["nodes"]) == 2
    assert len(data["links"]) == 1
    assert data["nodes"][0]["id"] == "a"
    mock_store.get_items_by_user.assert_awaited_once_with("test-user")


def test_get_graph_data_error(mock_store):
    """Test error handling when the store fails."""
    mock_store.get_items_by_user.side_effect = Exception("Database error")

    response = TestClient(app, raise_server_exceptions=False).get("/api/graph")

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"
