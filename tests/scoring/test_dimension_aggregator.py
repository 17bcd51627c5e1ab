"""
Tests for DimensionAggregator.

Covers normalization of partial analyzer output, the weighted overall
score, quality vector derivation and batch-relative distinctiveness.
"""

import math

import pytest

from fermata.exceptions import ConfigurationError
from fermata.models import SCORE_FIELDS, NameContext
from fermata.scoring import AnalysisBundle, DimensionAggregator, determine_quality_tier


@pytest.fixture
def aggregator():
    return DimensionAggregator()


@pytest.fixture
def context():
    return NameContext(type="band", genre="rock")


class TestNormalization:
    """Test the single normalization pass."""

    def test_full_flat_partial(self, aggregator, make_scores):
        breakdown, missing = aggregator.normalize(make_scores(0.7))

        assert missing == []
        assert breakdown.creativity == 0.7

    def test_missing_fields_get_neutral_defaults(self, aggregator):
        breakdown, missing = aggregator.normalize({"creativity": 0.9})

        assert breakdown.creativity == 0.9
        assert breakdown.memorability == 0.5
        assert len(missing) == len(SCORE_FIELDS) - 1
        assert "creativity" not in missing

    def test_overlapping_analyzers_are_averaged(self, aggregator):
        breakdown, _ = aggregator.normalize({
            "semantic": {"creativity": 0.8},
            "experimental": {"creativity": 0.6},
        })
        assert breakdown.creativity == 0.7

    def test_invalid_values_are_ignored_or_clamped(self, aggregator):
        breakdown, missing = aggregator.normalize({
            "creativity": 1.7,
            "uniqueness": "high",
            "memorability": True,
            "pronunciation": math.nan,
            "not_a_field": 0.9,
        })

        assert breakdown.creativity == 1.0
        assert "uniqueness" in missing
        assert "memorability" in missing
        assert "pronunciation" in missing

    def test_empty_result_is_all_missing(self, aggregator):
        breakdown, missing = aggregator.normalize({})

        assert set(missing) == set(SCORE_FIELDS)
        assert breakdown.phonetic_flow == 0.5


class TestAggregation:
    """Test ScoredCandidate construction."""

    def test_uniform_scores(self, aggregator, context, make_scores):
        candidate = aggregator.aggregate("Velvet Static", context, make_scores(0.7))

        assert candidate.overall_score == 0.7
        assert candidate.vector.balance == 1.0
        assert candidate.vector.magnitude == 0.7
        assert candidate.confidence == 1.0
        assert candidate.missing_fields == []

    def test_lone_candidate_gets_neutral_distinctiveness(self, aggregator, context, make_scores):
        candidate = aggregator.aggregate("Solo", context, make_scores(0.6))
        assert candidate.vector.distinctiveness == 0.5

    def test_missing_data_lowers_confidence(self, aggregator, context):
        candidate = aggregator.aggregate("Sparse", context, {"creativity": 0.9})

        assert candidate.confidence == DimensionAggregator.CONFIDENCE_FLOOR
        assert candidate.overall_score > 0

    def test_failed_analyzers_are_carried(self, aggregator, context, make_scores):
        candidate = aggregator.aggregate(
            "Half Done", context, make_scores(0.6), failed_analyzers=["semantic"]
        )
        assert candidate.failed_analyzers == ["semantic"]

    def test_unbalanced_vector_has_lower_balance(self, aggregator, context, make_scores):
        balanced = aggregator.aggregate("Even", context, make_scores(0.6))
        skewed = aggregator.aggregate("Spiky", context, make_scores(0.3, creativity=1.0))

        assert skewed.vector.balance < balanced.vector.balance

    def test_identical_batch_has_zero_distinctiveness(self, aggregator, context, make_scores):
        bundles = [
            AnalysisBundle(name=f"Twin {i}", context=context, dimension_results=make_scores(0.7))
            for i in range(3)
        ]
        candidates = aggregator.aggregate_batch(bundles)

        assert [c.vector.distinctiveness for c in candidates] == [0.0, 0.0, 0.0]

    def test_batch_preserves_input_order(self, aggregator, context, make_scores):
        bundles = [
            AnalysisBundle(name=name, context=context, dimension_results=make_scores(value))
            for name, value in [("B", 0.4), ("A", 0.9), ("C", 0.6)]
        ]
        assert [c.name for c in aggregator.aggregate_batch(bundles)] == ["B", "A", "C"]

    def test_empty_batch(self, aggregator):
        assert aggregator.aggregate_batch([]) == []

    def test_deterministic(self, aggregator, context, make_scores):
        first = aggregator.aggregate("Repeat", context, make_scores(0.55, creativity=0.8))
        second = aggregator.aggregate("Repeat", context, make_scores(0.55, creativity=0.8))
        assert first == second


class TestFieldWeights:
    """Test weight validation."""

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            DimensionAggregator(field_weights={"creativity": 0.5})

    def test_unknown_weight_fields_are_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            DimensionAggregator(field_weights={"loudness": 1.0})
        assert exc_info.value.field == "field_weights"

    def test_custom_weights(self, context, make_scores):
        aggregator = DimensionAggregator(field_weights={"creativity": 1.0})
        candidate = aggregator.aggregate("Bold", context, make_scores(0.2, creativity=0.9))
        assert candidate.overall_score == 0.9


@pytest.mark.parametrize("score,tier", [
    (0.85, "excellent"),
    (0.80, "very_good"),
    (0.75, "very_good"),
    (0.60, "good"),
    (0.45, "fair"),
    (0.44, "poor"),
])
def test_quality_tiers(score, tier):
    assert determine_quality_tier(score) == tier
