"""A bounded in-memory task queue served by a pool of worker threads."""

from __future__ import annotations

import queue
import threading
import time
import traceback
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager

PUSH_WAIT = 3.0
_POLL = 0.05
_STOP = object()

Task = Callable[[], object]


class QueueStoppedError(RuntimeError):
    """The queue no longer accepts tasks."""

    def __init__(self, message: str = "push failed: queue is stopped") -> None:
        super().__init__(message)


class QueueFullError(RuntimeError):
    """The queue had no room for the task."""

    def __init__(self, message: str = "push failed: queue is full") -> None:
        super().__init__(message)


class QueueCancelledError(RuntimeError):
    """A push was cancelled; ``pushed`` tasks had been accepted before that."""

    def __init__(self, pushed: int = 0) -> None:
        super().__init__("push cancelled")
        self.pushed = pushed


class MemoryQueue:
    """Runs pushed callables on ``worker_count`` threads, buffering up to ``buffer_size``."""

    def __init__(self, worker_count: int, buffer_size: int) -> None:
        if worker_count < 1 or buffer_size < 1:
            raise ValueError("worker_count and buffer_size must be greater than 0")
        self._tasks: queue.Queue = queue.Queue(maxsize=buffer_size)
        self._state = threading.Lock()
        self._stopped = False
        self._pending = 0
        self._workers = [
            threading.Thread(target=self._run, daemon=True) for _ in range(worker_count)
        ]
        for worker in self._workers:
            worker.start()

    def _run(self) -> None:
        while True:
            task = self._tasks.get()
            if task is _STOP:
                return
            try:
                task()
            except Exception:
                traceback.print_exc()

    @contextmanager
    def _pushing(self) -> Iterator[None]:
        with self._state:
            self._pending += 1
            stopped = self._stopped
        try:
            if stopped:
                raise QueueStoppedError()
            yield
        finally:
            with self._state:
                self._pending -= 1

    def push(self, task: Task) -> None:
        """Queue ``task``, waiting up to a few seconds for room."""
        with self._pushing():
            try:
                self._tasks.put(task, timeout=PUSH_WAIT)
            except queue.Full:
                raise QueueFullError() from None

    def _put_until(self, task: Task, cancel: threading.Event) -> bool:
        while True:
            try:
                self._tasks.put(task, timeout=_POLL)
                return True
            except queue.Full:
                if cancel.is_set():
                    return False

    def push_until(self, task: Task, cancel: threading.Event) -> None:
        """Queue ``task``, waiting for room until ``cancel`` is set."""
        with self._pushing():
            if not self._put_until(task, cancel):
                raise QueueCancelledError(0)

    def batch_push_until(self, tasks: Iterable[Task], cancel: threading.Event) -> int:
        """Queue every task in order; return how many were queued."""
        with self._pushing():
            count = 0
            for task in tasks:
                if not self._put_until(task, cancel):
                    raise QueueCancelledError(count)
                count += 1
            return count

    def not_wait_push(self, task: Task) -> None:
        """Queue ``task`` only if there is room right now."""
        with self._pushing():
            try:
                self._tasks.put_nowait(task)
            except queue.Full:
                raise QueueFullError() from None

    def stop(self) -> None:
        """Refuse new tasks, run what is queued, and wait for the workers."""
        with self._state:
            if self._stopped:
                return
            self._stopped = True
        while True:
            with self._state:
                if self._pending == 0:
                    break
            time.sleep(0.1)
        for _ in self._workers:
            self._tasks.put(_STOP)
        for worker in self._workers:
            worker.join()