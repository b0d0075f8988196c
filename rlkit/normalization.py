"""Layer, instance and group normalization over flat batch-major buffers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence


class NormalizationType(IntEnum):
    """Kinds of normalization a strategy can perform."""

    BATCH = 0
    LAYER = 1
    INSTANCE = 2
    GROUP = 3


@dataclass
class NormalizationConfig:
    """Shape of the data and the variance guard."""

    batch_size: int = 0
    feature_size: int = 0
    epsilon: float = 1e-5


@dataclass
class NormalizationData:
    """Batch-major input and output buffers with optional affine factors.

    ``input_data`` and ``output_data`` hold ``batch_size * feature_size``
    values, row after row. ``scale_factors`` and ``offset_factors`` are
    either empty or hold one value per feature.
    """

    config: NormalizationConfig = field(default_factory=NormalizationConfig)
    input_data: list[float] = field(default_factory=list)
    output_data: list[float] = field(default_factory=list)
    scale_factors: list[float] = field(default_factory=list)
    offset_factors: list[float] = field(default_factory=list)

    def resize_for_batch(self, batch_size: int, feature_size: int) -> None:
        """Set the shape and allocate zeroed input and output buffers."""
        if batch_size < 0 or feature_size < 0:
            raise ValueError("batch_size and feature_size must not be negative")
        self.config.batch_size = batch_size
        self.config.feature_size = feature_size
        total = batch_size * feature_size
        self.input_data = [0.0] * total
        self.output_data = [0.0] * total

    def is_valid(self) -> bool:
        """Whether the buffers and affine factors agree with the configured shape."""
        config = self.config
        if config.batch_size <= 0 or config.feature_size <= 0:
            return False
        total = config.batch_size * config.feature_size
        if len(self.input_data) != total or len(self.output_data) != total:
            return False
        for factors in (self.scale_factors, self.offset_factors):
            if factors and len(factors) != config.feature_size:
                return False
        return True

    def rows(self) -> list[list[float]]:
        """The output buffer split into rows of ``feature_size`` values."""
        width = self.config.feature_size
        return [
            self.output_data[start : start + width]
            for start in range(0, len(self.output_data), width)
        ] if width > 0 else []


def _mean_and_variance(values: Sequence[float]) -> tuple[float, float]:
    """Welford's running mean and population variance."""
    mean = 0.0
    m2 = 0.0
    count = 0
    for value in values:
        count += 1
        delta = value - mean
        mean += delta / count
        m2 += delta * (value - mean)
    variance = m2 / count if count > 1 else 0.0
    return mean, variance


def normalize_sequence(values: Sequence[float], epsilon: float = 1e-5) -> list[float]:
    """Return ``values`` shifted to zero mean and scaled to unit variance."""
    if not values:
        return []
    mean, variance = _mean_and_variance(values)
    inv_std = 1.0 / math.sqrt(variance + epsilon)
    return [(value - mean) * inv_std for value in values]


class NormalizationStrategy(ABC):
    """Interface shared by all normalization strategies."""

    name = "NormalizationStrategy"
    supports_inplace = True
    requires_global_stats = False

    @abstractmethod
    def normalize(self, data: NormalizationData) -> None:
        """Normalize ``data.input_data`` into ``data.output_data``."""

    def validate_input(self, data: NormalizationData) -> bool:
        """Whether ``data`` is well formed and has a positive epsilon."""
        return data.is_valid() and data.config.epsilon > 0

    def estimate_complexity(self, data: NormalizationData) -> int:
        """Number of elements the strategy has to touch."""
        return data.config.batch_size * data.config.feature_size

    def _require_valid(self, data: NormalizationData) -> None:
        if not self.validate_input(data):
            raise ValueError(f"invalid input for {self.name}")


class LayerNormalization(NormalizationStrategy):
    """Normalizes each row on its own statistics, then applies the affine factors."""

    name = "LayerNormalizationOptimized"

    def normalize(self, data: NormalizationData) -> None:
        self._require_valid(data)
        width = data.config.feature_size
        epsilon = data.config.epsilon
        scales = data.scale_factors
        offsets = data.offset_factors
        affine = bool(scales or offsets)
        output: list[float] = []
        for start in range(0, data.config.batch_size * width, width):
            row = normalize_sequence(data.input_data[start : start + width], epsilon)
            if affine:
                row = [
                    (scales[i] if scales else 1.0) * value
                    + (offsets[i] if offsets else 0.0)
                    for i, value in enumerate(row)
                ]
            output.extend(row)
        data.output_data[:] = output


class InstanceNormalization(NormalizationStrategy):
    """Per-instance normalization; on flat rows it matches layer normalization."""

    name = "InstanceNormalization"

    def normalize(self, data: NormalizationData) -> None:
        LayerNormalization().normalize(data)


class GroupNormalization(NormalizationStrategy):
    """Normalizes each row in ``num_groups`` equal slices.

    When the feature count does not divide into the groups, the whole row is
    layer-normalized instead. Affine factors are not applied to groups.
    """

    name = "GroupNormalization"

    def __init__(self, num_groups: int = 32) -> None:
        self.num_groups = num_groups

    @property
    def num_groups(self) -> int:
        return self._num_groups

    @num_groups.setter
    def num_groups(self, groups: int) -> None:
        if groups < 1:
            raise ValueError("num_groups must be at least 1")
        self._num_groups = groups

    def normalize(self, data: NormalizationData) -> None:
        self._require_valid(data)
        width = data.config.feature_size
        if width % self.num_groups != 0:
            LayerNormalization().normalize(data)
            return
        group_size = width // self.num_groups
        epsilon = data.config.epsilon
        output: list[float] = []
        for start in range(0, data.config.batch_size * width, group_size):
            output.extend(
                normalize_sequence(data.input_data[start : start + group_size], epsilon)
            )
        data.output_data[:] = output