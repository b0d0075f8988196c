import struct
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from rlkit.buffer_io import (
    BackgroundMaintainer,
    load_buffer,
    sample_async,
    save_buffer,
    update_priorities_async,
)
from rlkit.prioritized_buffer import Experience, PrioritizedBuffer
from rlkit.thread_pool import ThreadPool, ThreadPoolConfig


def _experiences(count):
    return [
        Experience([float(i), float(i) + 0.5], i % 3, float(i) * 0.25, [float(i + 1)], i % 2 == 0)
        for i in range(count)
    ]


def _filled(count, max_size=100, seed=1):
    buffer = PrioritizedBuffer(max_size, alpha=0.7, beta=0.3, beta_increment=0.05, epsilon=0.02, seed=seed)
    for i, experience in enumerate(_experiences(count)):
        buffer.add(experience, priority=float(i + 1))
    return buffer


def test_round_trip_preserves_contents(tmp_path):
    buffer = _filled(5)
    path = tmp_path / "buffer.bin"
    save_buffer(buffer, path)
    loaded = load_buffer(path)
    assert list(loaded) == list(buffer)
    assert loaded.priorities() == buffer.priorities()
    assert loaded.total_priority == pytest.approx(buffer.total_priority)


def test_round_trip_preserves_settings(tmp_path):
    buffer = _filled(3, max_size=7)
    buffer.sample(2)
    path = tmp_path / "buffer.bin"
    save_buffer(buffer, path)
    loaded = load_buffer(path)
    assert loaded.max_size == 7
    assert loaded.alpha == buffer.alpha
    assert loaded.beta == buffer.beta
    assert loaded.beta_increment == buffer.beta_increment
    assert loaded.epsilon == buffer.epsilon


def test_header_starts_with_entry_count(tmp_path):
    buffer = _filled(3)
    path = tmp_path / "buffer.bin"
    save_buffer(buffer, path)
    data = path.read_bytes()
    assert struct.unpack("<Q", data[:8]) == (3,)


def test_empty_buffer_round_trip(tmp_path):
    buffer = PrioritizedBuffer(4)
    path = tmp_path / "empty.bin"
    save_buffer(buffer, path)
    loaded = load_buffer(path)
    assert len(loaded) == 0
    assert loaded.max_size == 4


def test_truncated_file_raises(tmp_path):
    buffer = _filled(4)
    path = tmp_path / "buffer.bin"
    save_buffer(buffer, path)
    data = path.read_bytes()
    path.write_bytes(data[:-3])
    with pytest.raises(ValueError):
        load_buffer(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_buffer(tmp_path / "missing.bin")


def test_loaded_buffer_is_usable(tmp_path):
    buffer = _filled(4)
    path = tmp_path / "buffer.bin"
    save_buffer(buffer, path)
    loaded = load_buffer(path)
    batch = loaded.sample(6)
    assert len(batch.experiences) == 6
    assert all(0 <= i < 4 for i in batch.indices)


def test_sample_async_with_executor():
    buffer = _filled(10)
    with ThreadPoolExecutor(max_workers=2) as executor:
        batch = sample_async(buffer, 8, executor).result(timeout=5)
    assert len(batch.indices) == 8
    assert max(batch.weights) == pytest.approx(1.0)


def test_sample_async_without_executor():
    buffer = _filled(6)
    batch = sample_async(buffer, 4).result(timeout=5)
    assert len(batch.experiences) == 4
    assert all(buffer_exp in list(buffer) for buffer_exp in batch.experiences)


def test_sample_async_with_thread_pool():
    buffer = _filled(6)
    with ThreadPool(ThreadPoolConfig(num_threads=2)) as pool:
        batch = sample_async(buffer, 3, pool).result(timeout=5)
    assert len(batch.weights) == 3


def test_sample_async_empty_buffer():
    buffer = PrioritizedBuffer(5)
    batch = sample_async(buffer, 3).result(timeout=5)
    assert batch.experiences == []


def test_update_priorities_async_applies_updates():
    buffer = _filled(4)
    expected = PrioritizedBuffer(100, alpha=0.7, epsilon=0.02)
    expected.add(_experiences(1)[0], priority=9.0)
    future = update_priorities_async(buffer, [0], [9.0])
    assert future.result(timeout=5) is None
    assert buffer.priorities()[0] == pytest.approx(expected.priorities()[0])
    assert buffer.total_priority == pytest.approx(sum(buffer.priorities()))


def test_update_priorities_async_copies_inputs():
    buffer = _filled(4)
    before = buffer.priorities()
    indices = [1]
    values = [0.0]
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = update_priorities_async(buffer, indices, values, executor)
        indices.append(2)
        values.append(50.0)
        future.result(timeout=5)
    assert buffer.priorities()[2] == before[2]


def test_update_priorities_async_reports_errors():
    buffer = _filled(4)
    future = update_priorities_async(buffer, [0, 1], [1.0])
    with pytest.raises(ValueError):
        future.result(timeout=5)


def test_maintainer_corrects_drift_on_large_buffer():
    buffer = PrioritizedBuffer(PrioritizedBuffer.chunk_size + 10)
    buffer.add_batch(_experiences(PrioritizedBuffer.chunk_size + 1), 1.0)
    buffer._sum = 0.0
    expected = sum(buffer.priorities())
    with BackgroundMaintainer(buffer, interval=0.01):
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline and buffer.total_priority == 0.0:
            time.sleep(0.01)
    assert buffer.total_priority == pytest.approx(expected)


def test_maintainer_ignores_small_buffer():
    buffer = _filled(5)
    buffer._sum = 0.0
    with BackgroundMaintainer(buffer, interval=0.01) as maintainer:
        assert maintainer.running
        time.sleep(0.05)
    assert buffer.total_priority == 0.0


def test_maintainer_start_twice_raises():
    maintainer = BackgroundMaintainer(PrioritizedBuffer(2), interval=0.01)
    maintainer.start()
    try:
        with pytest.raises(RuntimeError):
            maintainer.start()
    finally:
        maintainer.stop()
    assert not maintainer.running


def test_maintainer_rejects_bad_interval():
    with pytest.raises(ValueError):
        BackgroundMaintainer(PrioritizedBuffer(2), interval=0)