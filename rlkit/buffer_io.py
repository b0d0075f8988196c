"""Persistence, asynchronous access and background upkeep for replay buffers."""

from __future__ import annotations

import os
import pickle
import struct
import threading
from concurrent.futures import Executor, Future
from typing import Any, BinaryIO, Callable, Sequence, Union

from .prioritized_buffer import PrioritizedBuffer, SampleBatch
from .thread_pool import ThreadPool

# size, max_size, alpha, beta, beta_increment, epsilon
_HEADER = struct.Struct("<QQdddd")
_LENGTH = struct.Struct("<Q")
_PRIORITY = struct.Struct("<d")

PathLike = Union[str, "os.PathLike[str]"]
AnyExecutor = Union[Executor, ThreadPool, None]


def save_buffer(buffer: PrioritizedBuffer, path: PathLike) -> None:
    """Write the buffer's settings, experiences and priorities to ``path``."""
    with buffer._lock:
        experiences = list(buffer)
        priorities = buffer.priorities()
        header = _HEADER.pack(
            len(priorities),
            buffer.max_size,
            buffer.alpha,
            buffer.beta,
            buffer.beta_increment,
            buffer.epsilon,
        )
    with open(path, "wb") as stream:
        stream.write(header)
        for experience, priority in zip(experiences, priorities):
            payload = pickle.dumps(experience, protocol=pickle.HIGHEST_PROTOCOL)
            stream.write(_LENGTH.pack(len(payload)))
            stream.write(payload)
            stream.write(_PRIORITY.pack(priority))


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise ValueError("buffer file is truncated")
    return data


def load_buffer(path: PathLike) -> PrioritizedBuffer:
    """Read a buffer written by :func:`save_buffer`."""
    with open(path, "rb") as stream:
        size, max_size, alpha, beta, beta_increment, epsilon = _HEADER.unpack(
            _read_exact(stream, _HEADER.size)
        )
        if size > max_size:
            raise ValueError("buffer file holds more entries than its capacity")
        entries = []
        for _ in range(size):
            (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
            experience = pickle.loads(_read_exact(stream, length))
            (priority,) = _PRIORITY.unpack(_read_exact(stream, _PRIORITY.size))
            entries.append((experience, priority))
    buffer = PrioritizedBuffer(
        max_size,
        alpha=alpha,
        beta=beta,
        beta_increment=beta_increment,
        epsilon=epsilon,
    )
    buffer._restore(entries)
    return buffer


def _submit(executor: AnyExecutor, func: Callable[..., Any], *args: Any) -> Future:
    if isinstance(executor, ThreadPool):
        return executor.enqueue(func, *args)
    if executor is not None:
        return executor.submit(func, *args)

    future: Future = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = func(*args)
        except BaseException as error:
            future.set_exception(error)
        else:
            future.set_result(result)

    threading.Thread(target=run, daemon=True).start()
    return future


def sample_async(
    buffer: PrioritizedBuffer, batch_size: int, executor: AnyExecutor = None
) -> "Future[SampleBatch]":
    """Sample on another thread; the result arrives through a future."""
    return _submit(executor, buffer.sample, batch_size)


def update_priorities_async(
    buffer: PrioritizedBuffer,
    indices: Sequence[int],
    new_priorities: Sequence[float],
    executor: AnyExecutor = None,
) -> "Future[None]":
    """Update priorities on another thread from copies of the given sequences."""
    return _submit(
        executor, buffer.update_priorities, list(indices), list(new_priorities)
    )


class BackgroundMaintainer:
    """Periodically recomputes a buffer's priority sum to correct drift.

    The recomputation only runs while the buffer holds more than one chunk.
    """

    def __init__(self, buffer: PrioritizedBuffer, interval: float = 0.1) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.buffer = buffer
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            if len(self.buffer) > self.buffer.chunk_size:
                self.buffer.recompute_sum()
            self._stop_event.wait(self.interval)

    def start(self) -> None:
        """Start the maintenance thread."""
        if self.running:
            raise RuntimeError("maintainer is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the maintenance thread and wait for it to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> "BackgroundMaintainer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()