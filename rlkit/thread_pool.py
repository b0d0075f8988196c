"""A fixed-size worker pool with optional task priorities and statistics."""

from __future__ import annotations

import heapq
import itertools
import os
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Callable


class TaskPriority(IntEnum):
    """Priority of a queued task; higher values run first."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


def _default_thread_count() -> int:
    return (os.cpu_count() or 1) * 2


@dataclass
class ThreadPoolConfig:
    """Settings for a :class:`ThreadPool`."""

    num_threads: int = field(default_factory=_default_thread_count)
    # Kept for configuration compatibility; the queue itself is unbounded.
    max_queue_size: int = 10000
    enable_priority_queue: bool = True
    enable_statistics: bool = True


@dataclass
class ThreadPoolStats:
    """Counters collected by a :class:`ThreadPool`."""

    tasks_submitted: int = 0
    tasks_completed: int = 0
    tasks_failed: int = 0
    current_queue_size: int = 0
    peak_queue_size: int = 0
    active_threads: int = 0
    average_task_time: float = 0.0


@dataclass
class _Task:
    run: Callable[[], None]
    priority: TaskPriority


class ThreadPool:
    """Runs submitted callables on worker threads and returns futures."""

    def __init__(self, config: ThreadPoolConfig | None = None) -> None:
        self._config = config if config is not None else ThreadPoolConfig()
        self._stats = ThreadPoolStats()
        self._heap: list[tuple[int, int, _Task]] = []
        self._fifo: deque[_Task] = deque()
        self._sequence = itertools.count()
        self._condition = threading.Condition()
        self._stopped = False
        self._pending = 0
        self._workers = [
            threading.Thread(target=self._worker_loop, daemon=True)
            for _ in range(self._config.num_threads)
        ]
        for worker in self._workers:
            worker.start()

    @property
    def config(self) -> ThreadPoolConfig:
        return self._config

    def _queue_size(self) -> int:
        return len(self._heap) if self._config.enable_priority_queue else len(self._fifo)

    def _next_task(self) -> _Task | None:
        if self._config.enable_priority_queue:
            if self._heap:
                return heapq.heappop(self._heap)[2]
        elif self._fifo:
            return self._fifo.popleft()
        return None

    def _worker_loop(self) -> None:
        stats_on = self._config.enable_statistics
        while True:
            with self._condition:
                self._condition.wait_for(
                    lambda: self._stopped or self._heap or self._fifo
                )
                task = self._next_task()
                if task is None:
                    if self._stopped:
                        return
                    continue
                if stats_on:
                    self._stats.active_threads += 1

            start = time.perf_counter()
            try:
                task.run()
            except Exception:
                failed = True
            else:
                failed = False
            duration = time.perf_counter() - start

            with self._condition:
                if stats_on:
                    if failed:
                        self._stats.tasks_failed += 1
                    else:
                        self._stats.tasks_completed += 1
                    self._stats.average_task_time = (
                        self._stats.average_task_time + duration
                    ) / 2.0
                    self._stats.active_threads -= 1
                self._pending -= 1
                self._condition.notify_all()

    def enqueue(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Submit ``func(*args, **kwargs)`` at normal priority."""
        return self.enqueue_priority(TaskPriority.NORMAL, func, *args, **kwargs)

    def enqueue_priority(
        self,
        priority: TaskPriority,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Future:
        """Submit ``func(*args, **kwargs)`` with the given priority."""
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = func(*args, **kwargs)
            except BaseException as error:
                future.set_exception(error)
                raise
            future.set_result(result)

        task = _Task(run, TaskPriority(priority))
        with self._condition:
            if self._stopped:
                raise RuntimeError("enqueue on stopped ThreadPool")
            if self._config.enable_priority_queue:
                heapq.heappush(
                    self._heap, (-int(task.priority), next(self._sequence), task)
                )
            else:
                self._fifo.append(task)
            self._pending += 1
            if self._config.enable_statistics:
                self._stats.tasks_submitted += 1
                self._stats.current_queue_size = self._queue_size()
                self._stats.peak_queue_size = max(
                    self._stats.peak_queue_size, self._stats.current_queue_size
                )
            self._condition.notify_all()
        return future

    def wait_all(self) -> None:
        """Block until every submitted task has finished."""
        with self._condition:
            self._condition.wait_for(lambda: self._pending == 0)

    def statistics(self) -> ThreadPoolStats:
        """Return a snapshot of the pool's counters."""
        with self._condition:
            return replace(self._stats)

    def shutdown(self) -> None:
        """Stop accepting tasks, run what is queued and join the workers."""
        with self._condition:
            self._stopped = True
            self._condition.notify_all()
        for worker in self._workers:
            if worker is not threading.current_thread():
                worker.join()

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()