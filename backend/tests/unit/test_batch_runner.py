"""Tests for the concurrency-bounded batch runner."""

from __future__ import annotations

import sqlite3
from typing import List

import pytest

from backend.src.models.events import StreamEvent
from backend.src.services.batch_runner import BatchInput, BatchRunner, prepare_urls
from backend.src.services.extractor import ExtractedContent
from backend.src.services.item_store import InMemoryItemStore
from backend.src.services.pipeline import CapturePipeline
from backend.tests.fakes import FakeAnalyzer, FakeExtractor, FakeLinker


class LockedReadStore(InMemoryItemStore):
    """Creates items but fails every listing, like a locked SQLite file."""

    async def get_items_by_user(self, user_id: str):
        raise sqlite3.OperationalError("database is locked")


class Recorder:
    def __init__(self) -> None:
        self.events: List[StreamEvent] = []

    async def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[StreamEvent]:
        return [event for event in self.events if event.type == event_type]


def test_prepare_urls_trims_filters_then_caps() -> None:
    urls = ["  https://a.test/  ", "", "   "] + [f"https://site{i}.test/" for i in range(75)]

    inputs = prepare_urls(urls, limit=50)

    assert len(inputs) == 50
    assert inputs[0].url == "https://a.test/"
    assert inputs[-1].url == "https://site48.test/"


def test_runner_rejects_zero_concurrency(pipeline) -> None:
    with pytest.raises(ValueError):
        BatchRunner(pipeline, concurrency=0)


@pytest.mark.asyncio
async def test_concurrency_is_bounded(store) -> None:
    extractor = FakeExtractor(delay=0.02)
    pipeline = CapturePipeline(store, extractor, FakeAnalyzer(), FakeLinker())
    runner = BatchRunner(pipeline, concurrency=3)
    recorder = Recorder()

    inputs = [BatchInput(url=f"https://site{i}.test/") for i in range(10)]
    progress = await runner.run("alice", inputs, recorder)

    assert extractor.max_in_flight == 3
    assert progress.success == 10
    assert len(await store.get_items_by_user("alice")) == 10


@pytest.mark.asyncio
async def test_failures_are_isolated(pipeline, store) -> None:
    runner = BatchRunner(pipeline, concurrency=2)
    recorder = Recorder()
    inputs = prepare_urls(
        ["https://react.dev/learn", "not-a-url", "https://web.dev/vitals/"], limit=50
    )

    progress = await runner.run("alice", inputs, recorder)

    assert recorder.events[0].type == "start"
    assert recorder.events[0].total == 3
    assert recorder.events[-1].type == "complete"
    assert (recorder.events[-1].success, recorder.events[-1].failed) == (2, 1)
    assert recorder.events[-1].total == 3
    assert len(recorder.of_type("complete")) == 1

    errors = recorder.of_type("error")
    assert [(e.index, e.url) for e in errors] == [(1, "not-a-url")]
    assert errors[0].message
    assert {e.index for e in recorder.of_type("item")} == {0, 2}
    assert (progress.success, progress.failed, progress.total) == (2, 1, 3)
    assert len(await store.get_items_by_user("alice")) == 2


@pytest.mark.asyncio
async def test_progress_counters_grow_monotonically(pipeline) -> None:
    runner = BatchRunner(pipeline, concurrency=1)
    recorder = Recorder()
    inputs = prepare_urls(
        ["https://a.test/", "https://fail.test/", "https://b.test/"], limit=50
    )

    await runner.run("alice", inputs, recorder)

    counted = [
        e.progress.success + e.progress.failed
        for e in recorder.events
        if e.type in ("item", "error")
    ]
    assert counted == [1, 2, 3]
    assert all(e.progress.total == 3 for e in recorder.events if e.progress)


@pytest.mark.asyncio
async def test_linking_after_batch_is_symmetric(pipeline, store) -> None:
    runner = BatchRunner(pipeline, concurrency=1)
    recorder = Recorder()
    inputs = [BatchInput(url=f"https://site{i}.test/") for i in range(3)]

    await runner.run("alice", inputs, recorder)

    connection_events = recorder.of_type("connections")
    assert len(connection_events) == 2
    items = {item.id: item for item in await store.get_items_by_user("alice")}
    for item in items.values():
        for other_id in item.connections:
            assert item.id in items[other_id].connections
            assert items[other_id].connection_reasons[item.id] == "Same topic"
    for event in connection_events:
        assert event.item_id == event.item.id
        assert event.connections == items[event.item_id].connections


@pytest.mark.asyncio
async def test_documents_and_titles(pipeline, store) -> None:
    runner = BatchRunner(pipeline)
    recorder = Recorder()
    document = ExtractedContent(title="notes", content="Meeting notes", domain="local")
    inputs = [
        BatchInput(url="notes.txt", document=document),
        BatchInput(url="https://react.dev/learn", title="React Docs"),
    ]

    await runner.run("alice", inputs, recorder, intent="reference", file_name="upload")

    items = {item.url: item for item in await store.get_items_by_user("alice")}
    assert items["file://notes.txt"].title == "notes"
    assert items["https://react.dev/learn"].title == "React Docs"
    assert all(item.intent == "reference" for item in items.values())
    assert all(event.file_name == "upload" for event in recorder.events)


@pytest.mark.asyncio
async def test_empty_batch_still_completes(pipeline) -> None:
    recorder = Recorder()

    await BatchRunner(pipeline).run("alice", [], recorder)

    assert [e.type for e in recorder.events] == ["start", "complete"]
    assert recorder.events[-1].total == 0


@pytest.mark.asyncio
async def test_linking_failure_does_not_break_the_batch() -> None:
    store = LockedReadStore()
    pipeline = CapturePipeline(store, FakeExtractor(), FakeAnalyzer(), FakeLinker())
    recorder = Recorder()
    inputs = prepare_urls(["https://react.dev/learn", "https://web.dev/vitals/"], limit=50)

    progress = await BatchRunner(pipeline, concurrency=2).run("alice", inputs, recorder)

    assert [e.type for e in recorder.events].count("complete") == 1
    assert recorder.events[-1].type == "complete"
    assert (recorder.events[-1].success, recorder.events[-1].failed) == (2, 0)
    assert (progress.success, progress.failed) == (2, 0)
    assert recorder.of_type("connections") == []


@pytest.mark.asyncio
async def test_connection_events_carry_progress(pipeline) -> None:
    runner = BatchRunner(pipeline, concurrency=1)
    recorder = Recorder()
    inputs = [BatchInput(url=f"https://site{i}.test/") for i in range(3)]

    await runner.run("alice", inputs, recorder)

    connection_events = recorder.of_type("connections")
    assert [e.progress.success for e in connection_events] == [2, 3]
    assert all(e.progress.total == 3 for e in connection_events)
    assert all(e.progress.failed == 0 for e in connection_events)
