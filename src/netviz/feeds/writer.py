"""Single-writer execution context.

Every mutation of the layer store and the poll session runs on one
writer, one task at a time. User actions submit their mutation and wait
for it; timer ticks do their fetch/parse elsewhere and submit only the
swap. ``SerialWriter`` is the threaded writer used by the service;
``InlineWriter`` runs tasks immediately on the caller's thread and is
what tests and single-threaded embedders use.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

logger = logging.getLogger("netviz.writer")

_STOP = object()


class SerialWriter:
    """Runs submitted callables one at a time on a dedicated thread."""

    def __init__(self, name: str = "netviz-writer") -> None:
        self._name = name
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._running = False
        # held across the running check and the enqueue, so no task lands behind _STOP
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()
        logger.info("Writer thread %s started", self._name)

    def stop(self, timeout: float = 2.0) -> None:
        """Drain queued tasks, then stop the thread."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._queue.put(_STOP)
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._running

    def in_writer(self) -> bool:
        return self._thread is not None and self._thread is threading.current_thread()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``fn`` for the writer. Returns a Future for its result."""
        future: Future = Future()
        with self._lock:
            if self._running:
                self._queue.put((future, fn, args, kwargs))
                return future
        future.set_exception(RuntimeError(f"Writer {self._name} is not running"))
        return future

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run ``fn`` on the writer and wait for its result.

        Called from the writer itself, ``fn`` runs immediately; queueing
        it would deadlock.
        """
        if self.in_writer():
            return fn(*args, **kwargs)
        return self.submit(fn, *args, **kwargs).result()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._fail_pending()
                break
            future, fn, args, kwargs = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                logger.exception("Writer task %s failed", getattr(fn, "__name__", fn))
                future.set_exception(e)
            else:
                future.set_result(result)

    def _fail_pending(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is _STOP:
                continue
            future = item[0]
            if future.set_running_or_notify_cancel():
                future.set_exception(RuntimeError(f"Writer {self._name} stopped"))


class InlineWriter:
    """Writer that runs every task synchronously on the calling thread."""

    running = True

    def start(self) -> None:
        pass

    def stop(self, timeout: float = 2.0) -> None:
        pass

    def in_writer(self) -> bool:
        return True

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            logger.exception("Writer task %s failed", getattr(fn, "__name__", fn))
            future.set_exception(e)
        return future

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return fn(*args, **kwargs)
