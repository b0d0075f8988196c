"""Exploration schedules and the metrics that steer them."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class ExplorationMetrics:
    """Measurements of how an agent is exploring."""

    exploration_efficiency: float = 0.5
    exploitation_efficiency: float = 0.5
    entropy_level: float = 1.0
    learning_progress: float = 0.0
    noise_level: float = 0.0


class BoltzmannExploration:
    """Temperature-based exploration that cools exponentially with steps."""

    def __init__(
        self, start_temp: float = 1.0, min_temp: float = 0.1, decay: float = 0.995
    ) -> None:
        self.temperature = start_temp
        self.min_temp = min_temp
        self.decay = decay

    def exploration_rate(self, step: int) -> float:
        """Temperature at ``step``, never below ``min_temp``."""
        temp = self.min_temp + (self.temperature - self.min_temp) * math.exp(
            -self.decay * step
        )
        return max(temp, self.min_temp)

    def reset(self) -> None:
        """Restore the temperature to 1.0."""
        self.temperature = 1.0


class EntropyBasedExploration:
    """Entropy-weighted exploration whose weight adapts to learning metrics."""

    _DEFAULT_DECAY = 0.995
    _DEFAULT_ADAPTIVE_FACTOR = 1.2

    def __init__(
        self,
        weight: float = 0.01,
        min_weight: float = 0.001,
        decay: float = 0.995,
        adaptive_factor: float = 1.2,
    ) -> None:
        self.entropy_weight = weight
        self.min_entropy_weight = min_weight
        self.initial_weight = weight
        if self.entropy_weight < self.min_entropy_weight:
            self.entropy_weight, self.min_entropy_weight = (
                self.min_entropy_weight,
                self.entropy_weight,
            )
        self.decay = decay if 0 < decay < 1 else self._DEFAULT_DECAY
        self.adaptive_factor = (
            adaptive_factor if adaptive_factor > 1 else self._DEFAULT_ADAPTIVE_FACTOR
        )

    def exploration_rate(self, step: int, entropy_factor: float | None = None) -> float:
        """Rate at ``step``, scaled by ``entropy_factor`` when given, clamped to [0, 1]."""
        rate = self.min_entropy_weight + (
            self.entropy_weight - self.min_entropy_weight
        ) * math.exp(-0.001 * step)
        if entropy_factor is not None:
            rate *= entropy_factor**self.adaptive_factor
        return min(max(rate, 0.0), 1.0)

    def reset(self) -> None:
        """Restore the entropy weight to its initial value."""
        self.entropy_weight = self.initial_weight

    def adapt_to_metrics(self, metrics: ExplorationMetrics) -> None:
        """Raise the weight when entropy and progress are low, lower it when high."""
        if metrics.entropy_level < 0.2 and metrics.learning_progress < 0.5:
            self.entropy_weight = min(
                self.entropy_weight * self.adaptive_factor, self.initial_weight * 3.0
            )
        elif metrics.entropy_level > 0.8 or metrics.learning_progress > 0.8:
            self.entropy_weight = max(
                self.entropy_weight / self.adaptive_factor, self.min_entropy_weight
            )

    def clone(self) -> "EntropyBasedExploration":
        """A new strategy starting from the current weights."""
        return EntropyBasedExploration(
            self.entropy_weight,
            self.min_entropy_weight,
            self.decay,
            self.adaptive_factor,
        )