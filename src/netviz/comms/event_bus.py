"""EventBus — thread-safe pub/sub for feed and layer notifications.

The layer store, the poll scheduler and the controller publish here;
the HTTP layer and tests subscribe. Subscribers get a bounded queue; when
a slow subscriber's queue is full the oldest message is dropped so the
latest layer/error state always gets through.
"""

from __future__ import annotations

import queue
import threading


class EventBus:
    """Simple thread-safe pub/sub for pushing events to subscribers."""

    def __init__(self, maxsize: int = 100) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[queue.Queue] = []

    def subscribe(self) -> queue.Queue:
        """Subscribe to all events. Returns the queue they arrive on."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            try:
                self._subscribers.remove(q)
            except ValueError:
                pass

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            subscribers = list(self._subscribers)
        for q in subscribers:
            _put_dropping_oldest(q, msg)


def _put_dropping_oldest(q: queue.Queue, msg: dict) -> None:
    try:
        q.put_nowait(msg)
        return
    except queue.Full:
        pass
    try:
        q.get_nowait()
    except queue.Empty:
        pass
    try:
        q.put_nowait(msg)
    except queue.Full:
        pass
