# rlkit

Small building blocks for deep reinforcement learning agents, written in
plain Python with no third-party dependencies.

## Modules

### `rlkit.prioritized_buffer`

- `Experience`: a transition (`state`, `action`, `reward`, `next_state`,
  `done`). Rewards compare equal when they differ by less than `1e-6`.
- `PrioritizedBuffer(max_size, alpha=0.6, beta=0.4, beta_increment=0.001,
  epsilon=0.01, seed=None)`: a fixed-capacity replay buffer.
  - A priority `p` is stored as `(p + epsilon) ** alpha`.
  - `add` stores one experience and `add_batch` stores many. When the buffer
    is full, the entry with the lowest stored priority is replaced.
  - `sample(batch_size)` draws with replacement, in proportion to priority. It
    returns a `SampleBatch` of `experiences`, `indices` and `weights`. The
    weights are importance-sampling weights `(N * P(i)) ** -beta`, divided by
    their maximum. Each call raises `beta` by `beta_increment`, up to 1. An
    empty buffer gives an empty batch.
  - `update_priorities(indices, new_priorities)` rescales and replaces
    priorities. Indices out of range are skipped. Sequences of different
    length raise `ValueError`.
  - `priorities()`, `total_priority`, `len()`, iteration, `clear()`.
  - `rebalance()` reorders storage by descending priority. It does so only
    once the buffer holds at least `chunk_size` (4096) entries.
  - `recompute_sum()` corrects a running sum that has drifted by more than
    `epsilon`.
  - `prefetch_next_batch(batch_size)` draws indices and unnormalized weights
    and keeps them in `prefetched_indices` / `prefetched_weights`.

### `rlkit.buffer_io`

- `save_buffer(buffer, path)` / `load_buffer(path)` write and read a buffer.
  The file holds a binary header with the size, capacity, `alpha`, `beta`,
  `beta_increment` and `epsilon`. Each entry follows as a pickled experience
  and its stored priority. A truncated file raises `ValueError`. Loading
  unpickles data, so only load files you trust.
- `sample_async(buffer, batch_size, executor=None)` and
  `update_priorities_async(buffer, indices, new_priorities, executor=None)`
  return futures. The executor may be a `concurrent.futures.Executor` or an
  `rlkit.thread_pool.ThreadPool`. With no executor, the work runs on a new
  daemon thread.
- `BackgroundMaintainer(buffer, interval=0.1)` calls `recompute_sum()` every
  `interval` seconds while the buffer holds more than `chunk_size` entries.
  Use `start()` / `stop()` or a `with` block.

### `rlkit.exploration`

- `ExplorationMetrics`: a dataclass of exploration and exploitation
  efficiency, entropy level, learning progress and noise level.
- `BoltzmannExploration(start_temp=1.0, min_temp=0.1, decay=0.995)`:
  `exploration_rate(step)` decays the temperature exponentially towards
  `min_temp`. `reset()` sets the temperature back to 1.0.
- `EntropyBasedExploration(weight=0.01, min_weight=0.001, decay=0.995,
  adaptive_factor=1.2)`:
  - `exploration_rate(step, entropy_factor=None)` is clamped to [0, 1].
  - `adapt_to_metrics(metrics)` raises the weight when entropy and progress
    are low. It lowers the weight when either is high.
  - `reset()` and `clone()`.
  - Out-of-range `decay` or `adaptive_factor` values fall back to the
    defaults.

### `rlkit.normalization`

- `NormalizationData` holds the input and output as flat lists in
  batch-major order. `scale_factors` and `offset_factors` are optional, one
  per feature. It has a `NormalizationConfig` (`batch_size`, `feature_size`,
  `epsilon=1e-5`), `resize_for_batch`, `is_valid` and `rows`.
- `normalize_sequence(values, epsilon=1e-5)` returns a list with zero mean
  and unit variance. It computes the population variance with Welford's
  algorithm.
- Strategies share the `NormalizationStrategy` interface (`normalize`,
  `validate_input`, `estimate_complexity`). They raise `ValueError` on
  invalid data.
  - `LayerNormalization`: each row on its own statistics, then scale and
    offset.
  - `InstanceNormalization`: the same as layer normalization on flat rows.
  - `GroupNormalization(num_groups=32)`: each row in equal slices, without
    scale and offset. If the features do not divide into the groups, it
    falls back to layer normalization.
- `NormalizationType` enumerates `BATCH`, `LAYER`, `INSTANCE` and `GROUP`.

### `rlkit.dropout`

- `DropoutData(size, rate=0.5, seed=None)`: values, mask and a
  `scale_factor`. The factor is `1 / (1 - rate)` while training and 1
  otherwise. It is recomputed by `update_scale_factor()`. `resize` grows the
  values and mask with zeros or truncates them.
- `BatchDropoutManager(max_batch_size, feature_size, seed=None)`:
  - `process_batch(rows)` applies inverted dropout in place, row by row.
  - Each row has its own rate (`set_batch_dropout_rate`) and training flag
    (`set_batch_training_mode`).
  - `mask(i)` returns the keep-mask of row `i`.
  - Rates must lie in [0, 1).

### `rlkit.recommendation`

- `get_usage_recommendation(batch_size, feature_size, is_training=True,
  requires_stability=False)` returns a `UsageRecommendation` with a
  `NormalizationType`, a reason and a list of suggested optimizations.
- `format_recommendation(rec)` renders it as text.

### `rlkit.thread_pool`

- `ThreadPool(config=None)` runs callables on worker threads and returns
  `concurrent.futures.Future` objects.
  - `enqueue` submits at `TaskPriority.NORMAL`. `enqueue_priority` takes
    `LOW`, `NORMAL`, `HIGH` or `CRITICAL`. Higher priorities run first, and
    equal priorities run in submission order.
  - With `enable_priority_queue=False`, tasks run in plain FIFO order.
  - `wait_all()` blocks until every task has finished.
  - `statistics()` returns a `ThreadPoolStats` snapshot.
  - `shutdown()`, or leaving a `with` block, runs the queued tasks and joins
    the workers. Later submissions raise `RuntimeError`.
  - `ThreadPoolConfig.max_queue_size` is accepted but not enforced.

## What it does not do

- There is no batch normalization strategy. `NormalizationType.BATCH` is
  only used by the recommendation helper.
- There are no network layers, models, agents, environments or training
  loops. There is no GPU or SIMD acceleration.
- There is no command-line program. Everything is used as a library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from rlkit.prioritized_buffer import Experience, PrioritizedBuffer

buffer = PrioritizedBuffer(max_size=1000, seed=0)
buffer.add(Experience(state=[0.0], action=1, reward=1.0, next_state=[1.0], done=False), 1.0)

batch = buffer.sample(32)
buffer.update_priorities(batch.indices, [0.5] * len(batch.indices))
```

```python
from rlkit.thread_pool import TaskPriority, ThreadPool, ThreadPoolConfig

with ThreadPool(ThreadPoolConfig(num_threads=4)) as pool:
    future = pool.enqueue_priority(TaskPriority.HIGH, pow, 2, 10)
    print(future.result())  # 1024
```