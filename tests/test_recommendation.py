from rlkit.normalization import NormalizationType
from rlkit.recommendation import (
    UsageRecommendation,
    format_recommendation,
    get_usage_recommendation,
)


def test_large_training_batch_recommends_batch():
    rec = get_usage_recommendation(32, 128)
    assert rec.recommended_type is NormalizationType.BATCH
    assert rec.reason == "Training with large batches benefits from batch statistics."
    assert rec.optimizations == ["Use SIMD", "Enable global statistics caching"]


def test_long_sequence_recommends_layer():
    rec = get_usage_recommendation(1, 300)
    assert rec.recommended_type is NormalizationType.LAYER
    assert rec.reason == "Long sequences benefit from layer normalization."
    assert rec.optimizations == ["Use Welford algorithm", "Enable SIMD"]


def test_single_instance_recommends_instance():
    rec = get_usage_recommendation(1, 100)
    assert rec.recommended_type is NormalizationType.INSTANCE
    assert rec.optimizations == [
        "Minimize memory allocations",
        "Use in-place computation",
    ]


def test_inference_recommends_instance():
    rec = get_usage_recommendation(8, 100, is_training=False)
    assert rec.recommended_type is NormalizationType.INSTANCE
    assert rec.reason == "Ideal for single instance or inference."


def test_small_training_batch_falls_back_to_layer():
    rec = get_usage_recommendation(2, 100)
    assert rec.recommended_type is NormalizationType.LAYER
    assert rec.optimizations == ["Standard optimizations apply"]


def test_stability_appends_advice():
    plain = get_usage_recommendation(2, 100)
    stable = get_usage_recommendation(2, 100, requires_stability=True)
    assert stable.optimizations[: len(plain.optimizations)] == plain.optimizations
    assert stable.optimizations[-2:] == [
        "Use higher epsilon (1e-6 to 1e-4)",
        "Consider double precision for critical tasks",
    ]


def test_format_recommendation():
    rec = UsageRecommendation(NormalizationType.LAYER, "why", ["a", "b"])
    text = format_recommendation(rec)
    assert text == (
        "=== Usage Recommendation ===\n"
        f"Recommended Type: {int(NormalizationType.LAYER)}\n"
        "Reason: why\n"
        "Optimizations:\n"
        "  - a\n"
        "  - b\n"
        "\n"
    )


def test_format_without_optimizations_ends_with_blank_line():
    rec = UsageRecommendation(NormalizationType.BATCH, "r", [])
    text = format_recommendation(rec)
    assert text.endswith("Optimizations:\n\n")
    assert "  - " not in text