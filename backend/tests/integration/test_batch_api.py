"""Integration tests for batch URL import endpoints."""

from __future__ import annotations

from backend.tests.streams import parse_sse, reset_sse_state


def post_stream(client, payload):
    reset_sse_state()
    response = client.post("/api/items/batch/stream", json=payload)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    return parse_sse(response.text)


def test_stream_mixed_batch(client, store) -> None:
    events = post_stream(
        client,
        {"urls": ["https://react.dev/learn", "not-a-url", "https://web.dev/vitals/"]},
    )

    assert events[0] == {"type": "start", "total": 3}
    assert events[-1] == {"type": "complete", "success": 2, "failed": 1, "total": 3}
    assert [e["type"] for e in events].count("complete") == 1

    errors = [e for e in events if e["type"] == "error"]
    assert len(errors) == 1
    assert errors[0]["index"] == 1
    assert errors[0]["url"] == "not-a-url"
    assert errors[0]["progress"]["total"] == 3

    items = [e for e in events if e["type"] == "item"]
    assert {e["index"] for e in items} == {0, 2}
    assert all("savedAt" in e["item"] for e in items)


def test_stream_caps_batch_size(client, fake_extractor) -> None:
    urls = [f"https://site{i}.test/" for i in range(75)]

    events = post_stream(client, {"urls": urls, "intent": "reference"})

    assert events[0]["total"] == 50
    assert events[-1] == {"type": "complete", "success": 50, "failed": 0, "total": 50}
    assert len(fake_extractor.calls) == 50
    assert "https://site50.test/" not in fake_extractor.calls


def test_stream_reports_connections(client, store) -> None:
    events = post_stream(client, {"urls": ["https://a.test/", "https://b.test/"]})

    connections = [e for e in events if e["type"] == "connections"]
    assert connections
    for event in connections:
        assert event["itemId"] == event["item"]["id"]
        assert event["connections"] == event["item"]["connections"]


def test_blank_batch_is_rejected(client) -> None:
    response = client.post("/api/items/batch/stream", json={"urls": ["", "   "]})

    assert response.status_code == 400
    assert response.json()["message"] == "URLs array is required"


def test_empty_or_missing_urls_are_rejected(client) -> None:
    assert client.post("/api/items/batch", json={"urls": []}).status_code == 400
    assert client.post("/api/items/batch", json={}).status_code == 400


def test_collected_batch(client) -> None:
    response = client.post(
        "/api/items/batch",
        json={"urls": ["https://react.dev/learn", "https://fail.test/"]},
    )

    assert response.status_code == 201
    data = response.json()
    assert (data["total"], data["successful"], data["failed"]) == (2, 1, 1)
    assert data["results"][0]["success"] is True
    assert data["results"][0]["item"]["domain"] == "react.dev"
    assert data["results"][1] == {
        "url": "https://fail.test/",
        "success": False,
        "item": None,
        "error": "Could not fetch https://fail.test/: HTTP 404",
    }


def test_capture_and_item_routes(client) -> None:
    created = client.post("/api/items/capture", json={"url": "https://react.dev/learn"})
    assert created.status_code == 201
    item_id = created.json()["id"]

    assert client.get(f"/api/items/{item_id}").json()["title"] == "Page on react.dev"
    patched = client.patch(f"/api/items/{item_id}", json={"readingProgress": 60, "isRead": False})
    assert patched.json()["readingProgress"] == 60
    assert [i["id"] for i in client.get("/api/search", params={"q": "react"}).json()] == [item_id]
    assert client.get("/api/search", params={"q": " "}).status_code == 400

    assert client.delete(f"/api/items/{item_id}").status_code == 204
    missing = client.get(f"/api/items/{item_id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_capture_invalid_url(client) -> None:
    response = client.post("/api/items/capture", json={"url": "not-a-url"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_source"
