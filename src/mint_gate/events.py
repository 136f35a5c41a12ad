"""Server-sent event broadcaster for connected frontends."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator

log = logging.getLogger(__name__)


def format_event(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class EventBroadcaster:
    """Fans out events to every open ``/api/events`` stream.

    Each subscriber gets its own bounded queue; a subscriber that stops
    reading has new events dropped rather than blocking publishers.
    """

    def __init__(self, heartbeat_interval: float = 15.0, queue_size: int = 100) -> None:
        self._heartbeat_interval = heartbeat_interval
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue[str]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, data: dict) -> None:
        message = format_event(event, data)
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                log.warning("Dropping %s event for slow SSE subscriber", event)

    async def stream(self) -> AsyncIterator[str]:
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        log.debug("SSE client connected (%d total)", len(self._subscribers))
        try:
            yield ": connected\n\n"
            while True:
                try:
                    message = await asyncio.wait_for(
                        queue.get(), timeout=self._heartbeat_interval,
                    )
                except asyncio.TimeoutError:
                    yield ": heartbeat\n\n"
                    continue
                yield message
        finally:
            self._subscribers.discard(queue)
            log.debug("SSE client disconnected (%d total)", len(self._subscribers))
