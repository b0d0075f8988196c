"""Prioritized experience replay with importance-sampling weights."""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, NamedTuple, Sequence

_REWARD_TOLERANCE = 1e-6
_ZERO_SUM_GUARD = 1e-8


@dataclass(eq=False)
class Experience:
    """One transition observed by an agent."""

    state: Any
    action: Any
    reward: float
    next_state: Any
    done: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Experience):
            return NotImplemented
        return (
            self.state == other.state
            and self.action == other.action
            and abs(self.reward - other.reward) < _REWARD_TOLERANCE
            and self.next_state == other.next_state
            and self.done == other.done
        )

    __hash__ = None  # type: ignore[assignment]


class SampleBatch(NamedTuple):
    """Experiences drawn from a buffer with their indices and weights."""

    experiences: list[Experience]
    indices: list[int]
    weights: list[float]


class PrioritizedBuffer:
    """Fixed-capacity replay buffer sampling in proportion to priority.

    Stored priorities are ``(priority + epsilon) ** alpha``. When the buffer
    is full, a new experience replaces the one with the lowest priority.
    """

    chunk_size = 4096

    def __init__(
        self,
        max_size: int,
        alpha: float = 0.6,
        beta: float = 0.4,
        beta_increment: float = 0.001,
        epsilon: float = 0.01,
        seed: int | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.alpha = alpha
        self.beta = beta
        self.beta_increment = beta_increment
        self.epsilon = epsilon
        self._experiences: list[Experience] = []
        self._priorities: list[float] = []
        self._sum = 0.0
        self._rng = random.Random(seed)
        self._lock = threading.RLock()
        self.prefetched_indices: list[int] = []
        self.prefetched_weights: list[float] = []

    def _scaled(self, priority: float) -> float:
        return (priority + self.epsilon) ** self.alpha

    def _weight(self, probability: float, size: int) -> float:
        return (size * probability) ** (-self.beta)

    def add(self, experience: Experience, priority: float = 1.0) -> None:
        """Store ``experience``, evicting the lowest-priority one when full."""
        new_priority = self._scaled(priority)
        with self._lock:
            if len(self._priorities) >= self.max_size:
                idx = min(range(len(self._priorities)), key=self._priorities.__getitem__)
                self._sum += new_priority - self._priorities[idx]
                self._experiences[idx] = experience
                self._priorities[idx] = new_priority
            else:
                self._experiences.append(experience)
                self._priorities.append(new_priority)
                self._sum += new_priority

    def add_batch(
        self, experiences: Iterable[Experience], default_priority: float = 1.0
    ) -> None:
        """Store every experience with the same priority."""
        for experience in experiences:
            self.add(experience, default_priority)

    def sample(self, batch_size: int) -> SampleBatch:
        """Draw ``batch_size`` experiences and advance ``beta`` towards 1."""
        with self._lock:
            size = len(self._priorities)
            if size == 0:
                return SampleBatch([], [], [])
            total = self._sum
            probabilities = [p / total for p in self._priorities]
            indices = self._rng.choices(range(size), weights=self._priorities, k=batch_size)
            experiences = [self._experiences[i] for i in indices]
            weights = [self._weight(probabilities[i], size) for i in indices]
            max_weight = max(weights, default=0.0)
            if max_weight > 0:
                weights = [w / max_weight for w in weights]
            self.beta = min(1.0, self.beta + self.beta_increment)
            return SampleBatch(experiences, indices, weights)

    def update_priorities(
        self, indices: Sequence[int], new_priorities: Sequence[float]
    ) -> None:
        """Replace the priorities at ``indices``; indices past the end are skipped."""
        if len(indices) != len(new_priorities):
            raise ValueError("indices and new_priorities differ in length")
        with self._lock:
            size = len(self._priorities)
            for idx, priority in zip(indices, new_priorities):
                if not 0 <= idx < size:
                    continue
                new_priority = self._scaled(priority)
                self._sum += new_priority - self._priorities[idx]
                self._priorities[idx] = new_priority

    def __len__(self) -> int:
        return len(self._priorities)

    def __iter__(self) -> Iterator[Experience]:
        with self._lock:
            return iter(list(self._experiences))

    @property
    def total_priority(self) -> float:
        """Running sum of the stored priorities."""
        return self._sum

    def clear(self) -> None:
        """Remove every experience."""
        with self._lock:
            self._experiences.clear()
            self._priorities.clear()
            self._sum = 0.0

    def rebalance(self) -> None:
        """Reorder storage by descending priority once it holds a full chunk."""
        with self._lock:
            if len(self._priorities) < self.chunk_size:
                return
            order = sorted(
                range(len(self._priorities)),
                key=self._priorities.__getitem__,
                reverse=True,
            )
            self._experiences = [self._experiences[i] for i in order]
            self._priorities = [self._priorities[i] for i in order]

    def recompute_sum(self) -> float:
        """Recompute the priority sum, correcting drift larger than ``epsilon``."""
        with self._lock:
            calculated = sum(self._priorities)
            if abs(self._sum - calculated) > self.epsilon:
                self._sum = calculated
            return calculated

    def prefetch_next_batch(self, batch_size: int) -> tuple[list[int], list[float]]:
        """Draw indices and unnormalized weights ahead of the next sample."""
        with self._lock:
            size = len(self._priorities)
            if size == 0:
                return self.prefetched_indices, self.prefetched_weights
            total = self._sum if self._sum != 0.0 else _ZERO_SUM_GUARD
            probabilities = [p / total for p in self._priorities]
            indices = self._rng.choices(range(size), weights=probabilities, k=batch_size)
            weights = [self._weight(probabilities[i], size) for i in indices]
            self.prefetched_indices = indices
            self.prefetched_weights = weights
            return indices, weights

    def priorities(self) -> list[float]:
        """A copy of the stored (scaled) priorities, in storage order."""
        with self._lock:
            return list(self._priorities)

    def _restore(self, entries: Iterable[tuple[Experience, float]]) -> None:
        """Replace the contents with already-scaled ``(experience, priority)`` pairs."""
        with self._lock:
            self.clear()
            for experience, priority in entries:
                self._experiences.append(experience)
                self._priorities.append(priority)
                self._sum += priority