"""Adapt batch runner events onto a server-sent event body."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

from ..models.events import StreamEvent
from .background import BackgroundTaskRunner, get_background_runner
from .batch_runner import EventCallback, error_message

logger = logging.getLogger(__name__)

Producer = Callable[[EventCallback], Awaitable[Any]]

_DONE = object()


def serialize_event(event: StreamEvent) -> str:
    """One event as the JSON payload of an SSE ``data:`` line."""
    return json.dumps(event.model_dump(by_alias=True, mode="json", exclude_none=True))


class EventStream:
    """
    Run a producer as its own task and relay its events in emission order.

    The producer receives :meth:`emit` as its callback. When the consumer goes
    away (client disconnect closes the generator) the producer is cancelled,
    or, with ``cancel_on_disconnect`` off, handed to the background runner to
    finish on its own.
    """

    def __init__(
        self,
        *,
        cancel_on_disconnect: bool = True,
        background: BackgroundTaskRunner | None = None,
        name: str = "event-stream",
    ) -> None:
        self.cancel_on_disconnect = cancel_on_disconnect
        self.name = name
        self._background = background
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    async def emit(self, event: StreamEvent) -> None:
        await self._queue.put(event)

    async def _run(self, producer: Producer) -> None:
        try:
            await producer(self.emit)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Stream producer {self.name} failed")
            await self.emit(StreamEvent(type="error", message=error_message(e)))
        finally:
            self._queue.put_nowait(_DONE)

    async def stream(self, producer: Producer) -> AsyncGenerator[str, None]:
        """Yield serialized events until the producer finishes."""
        self._task = asyncio.create_task(self._run(producer), name=self.name)
        try:
            while True:
                event = await self._queue.get()
                if event is _DONE:
                    break
                yield serialize_event(event)
        finally:
            task = self._task
            if task is not None and not task.done():
                if self.cancel_on_disconnect:
                    logger.info(f"Client disconnected; cancelling {self.name}")
                    task.cancel()
                else:
                    logger.info(f"Client disconnected; {self.name} continues in background")
                    (self._background or get_background_runner()).track(task)


__all__ = ["EventStream", "Producer", "serialize_event"]
