"""Dropout state and batch-wise dropout application."""

from __future__ import annotations

import random
from typing import MutableSequence, Sequence


def _check_rate(rate: float) -> float:
    if not 0.0 <= rate < 1.0:
        raise ValueError("dropout rate must be in [0, 1)")
    return rate


class DropoutData:
    """Values, mask and scaling state for one dropout layer.

    ``scale_factor`` is ``1 / (1 - dropout_rate)`` while training and ``1``
    otherwise. Call :meth:`update_scale_factor` after changing either.
    """

    def __init__(self, size: int, rate: float = 0.5, seed: int | None = None) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self.values: list[float] = [0.0] * size
        self.mask: list[float] = [0.0] * size
        self.dropout_rate = _check_rate(rate)
        self.is_training = True
        self.scale_factor = 1.0
        self.rng = random.Random(seed)
        self.update_scale_factor()

    def __len__(self) -> int:
        return len(self.values)

    def update_scale_factor(self) -> None:
        """Recompute the scale factor from the rate and the training flag."""
        _check_rate(self.dropout_rate)
        self.scale_factor = (
            1.0 / (1.0 - self.dropout_rate) if self.is_training else 1.0
        )

    def resize(self, new_size: int) -> None:
        """Grow with zeros or truncate the values and the mask."""
        if new_size < 0:
            raise ValueError("new_size must not be negative")
        for name in ("values", "mask"):
            current = getattr(self, name)
            if new_size <= len(current):
                del current[new_size:]
            else:
                current.extend([0.0] * (new_size - len(current)))


class BatchDropoutManager:
    """Applies dropout row by row to a batch, each row with its own rate and mode."""

    def __init__(
        self, max_batch_size: int, feature_size: int, seed: int | None = None
    ) -> None:
        if max_batch_size < 0 or feature_size < 0:
            raise ValueError("max_batch_size and feature_size must not be negative")
        self.max_batch_size = max_batch_size
        self.feature_size = feature_size
        self._masks = [[False] * feature_size for _ in range(max_batch_size)]
        self._rates = [0.5] * max_batch_size
        self._training = [True] * max_batch_size
        self._rng = random.Random(seed)

    def process_batch(self, batch_inputs: Sequence[MutableSequence[float]]) -> None:
        """Apply dropout in place to the rows of ``batch_inputs``.

        Rows past ``max_batch_size`` and rows not in training mode are left
        untouched. Kept values are scaled by ``1 / (1 - rate)``.
        """
        rows = list(batch_inputs[: self.max_batch_size])
        for row in rows:
            if len(row) > self.feature_size:
                raise ValueError("row is longer than feature_size")
        for batch_idx, row in enumerate(rows):
            if not self._training[batch_idx]:
                continue
            rate = self._rates[batch_idx]
            scale = 1.0 / (1.0 - rate)
            mask = self._masks[batch_idx]
            for i, value in enumerate(row):
                if self._rng.random() < rate:
                    row[i] = 0.0
                    mask[i] = False
                else:
                    row[i] = value * scale
                    mask[i] = True

    def set_batch_dropout_rate(self, batch_idx: int, rate: float) -> None:
        """Set the rate for one row; indices outside the batch are ignored."""
        _check_rate(rate)
        if 0 <= batch_idx < self.max_batch_size:
            self._rates[batch_idx] = rate

    def set_batch_training_mode(self, batch_idx: int, training: bool) -> None:
        """Switch dropout on or off for one row; indices outside the batch are ignored."""
        if 0 <= batch_idx < self.max_batch_size:
            self._training[batch_idx] = bool(training)

    def mask(self, batch_idx: int) -> list[bool]:
        """A copy of the keep-mask of one row."""
        if not 0 <= batch_idx < self.max_batch_size:
            raise IndexError("batch index out of range")
        return list(self._masks[batch_idx])