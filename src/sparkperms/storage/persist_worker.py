from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable

logger = logging.getLogger(__name__)

_Job = tuple[Callable[[], Any], "Future[Any]"]


class PersistWorker:
    """Single background thread that runs file I/O jobs in submission order.

    One worker per store keeps saves from racing each other on the same file,
    while callers return as soon as the job is queued.
    """

    def __init__(self, *, name: str = "sparkperms-persist", poll_interval: float = 0.25):
        self._name = name
        self._poll_interval = poll_interval
        self._queue: "queue.Queue[_Job]" = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        # Held while deciding queue-or-inline and while retiring the thread.
        self._lifecycle = threading.Lock()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lifecycle:
            if self.is_running():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def stop(self, *, timeout: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self.flush(timeout=timeout)
        with self._lifecycle:
            self._stop.set()
            thread.join(timeout=timeout)
            self._thread = None
        # Anything queued after the final flush still runs.
        self._drain_inline()

    def submit(self, fn: Callable[[], Any]) -> "Future[Any]":
        future: Future[Any] = Future()
        with self._lifecycle:
            queued = self.is_running()
            if queued:
                self._queue.put_nowait((fn, future))
        if not queued:
            self._execute(fn, future)
        return future

    def flush(self, *, timeout: float | None = None) -> bool:
        """Wait until every job queued so far has finished."""
        if not self.is_running():
            self._drain_inline()
            return True
        marker = self.submit(lambda: None)
        try:
            marker.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                fn, future = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            try:
                self._execute(fn, future)
            finally:
                self._queue.task_done()

    def _drain_inline(self) -> None:
        while True:
            try:
                fn, future = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self._execute(fn, future)
            finally:
                self._queue.task_done()

    def _execute(self, fn: Callable[[], Any], future: "Future[Any]") -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except Exception as exc:
            logger.error("Persist job %r failed: %s", fn, exc)
            future.set_exception(exc)
        else:
            future.set_result(result)
