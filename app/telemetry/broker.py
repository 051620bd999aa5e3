"""In-process pub/sub of analysis events, grouped by analysis id."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict

_logger = logging.getLogger(__name__)


class ProgressBroker:
    """Fans events out to every live subscriber of an analysis id.

    Subscribers receive events on an ``asyncio.Queue`` bound to the loop they
    subscribed from; publishing is safe from any thread.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: dict[str, list[tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, analysis_id: str) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers[analysis_id].append((loop, queue))
        return queue

    def unsubscribe(self, analysis_id: str, queue: asyncio.Queue) -> None:
        with self._lock:
            entries = self._subscribers.get(analysis_id, [])
            self._subscribers[analysis_id] = [entry for entry in entries if entry[1] is not queue]
            if not self._subscribers[analysis_id]:
                del self._subscribers[analysis_id]

    def subscriber_count(self, analysis_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(analysis_id, []))

    def publish(self, analysis_id: str, event: dict) -> None:
        with self._lock:
            targets = list(self._subscribers.get(analysis_id, []))
        for loop, queue in targets:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                self._offer(analysis_id, queue, event)
            else:
                loop.call_soon_threadsafe(self._offer, analysis_id, queue, event)

    @staticmethod
    def _offer(analysis_id: str, queue: asyncio.Queue, event: dict) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            _logger.warning("Dropping event for slow subscriber of analysis %s", analysis_id)
