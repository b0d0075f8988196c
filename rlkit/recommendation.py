"""Advice on which normalization to use for a given workload."""

from __future__ import annotations

from dataclasses import dataclass, field

from .normalization import NormalizationType


@dataclass
class UsageRecommendation:
    """A recommended normalization with its reason and suggested optimizations."""

    recommended_type: NormalizationType
    reason: str
    optimizations: list[str] = field(default_factory=list)


def get_usage_recommendation(
    batch_size: int,
    feature_size: int,
    is_training: bool = True,
    requires_stability: bool = False,
) -> UsageRecommendation:
    """Pick a normalization type from the batch shape and the training mode."""
    total_elements = batch_size * feature_size

    if is_training and batch_size > 1 and total_elements > 1000:
        rec = UsageRecommendation(
            NormalizationType.BATCH,
            "Training with large batches benefits from batch statistics.",
            ["Use SIMD", "Enable global statistics caching"],
        )
    elif feature_size > 256 and batch_size <= 64:
        rec = UsageRecommendation(
            NormalizationType.LAYER,
            "Long sequences benefit from layer normalization.",
            ["Use Welford algorithm", "Enable SIMD"],
        )
    elif batch_size == 1 or not is_training:
        rec = UsageRecommendation(
            NormalizationType.INSTANCE,
            "Ideal for single instance or inference.",
            ["Minimize memory allocations", "Use in-place computation"],
        )
    else:
        rec = UsageRecommendation(
            NormalizationType.LAYER,
            "Layer normalization is the most versatile for general use.",
            ["Standard optimizations apply"],
        )

    if requires_stability:
        rec.optimizations.append("Use higher epsilon (1e-6 to 1e-4)")
        rec.optimizations.append("Consider double precision for critical tasks")

    return rec


def format_recommendation(recommendation: UsageRecommendation) -> str:
    """Render a recommendation as a short text report."""
    lines = [
        "=== Usage Recommendation ===",
        f"Recommended Type: {int(recommendation.recommended_type)}",
        f"Reason: {recommendation.reason}",
        "Optimizations:",
    ]
    lines.extend(f"  - {opt}" for opt in recommendation.optimizations)
    return "\n".join(lines) + "\n\n"