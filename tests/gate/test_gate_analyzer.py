"""
Tests for QualityGateAnalyzer.
"""

import pytest

from fermata.gate import CandidateFilter, GateRequirements, QualityGateAnalyzer, ThresholdCalculator
from fermata.models import ThresholdMode


@pytest.fixture
def analyzer():
    return QualityGateAnalyzer()


@pytest.fixture
def gated_batch(batch_factory, band_context):
    batch = batch_factory([
        ("Alpha", 0.9), ("Bravo", 0.8), ("Charlie", 0.7), ("Delta", 0.55), ("Echo", 0.4),
    ])
    config = ThresholdCalculator().build_config(ThresholdMode.MODERATE, band_context)
    qualified, rejected = CandidateFilter().filter(batch, GateRequirements.from_config(config))
    return batch, qualified, rejected, config


class TestAnalyze:
    """Test full gate analysis."""

    def test_counts_and_rates(self, analyzer, gated_batch):
        batch, qualified, rejected, config = gated_batch

        analysis = analyzer.analyze(batch, qualified, rejected, config.overall_threshold)

        assert analysis["total_processed"] == 5
        assert analysis["qualified_count"] == 3
        assert analysis["rejected_count"] == 2
        assert analysis["pass_rate"] == 0.6
        assert analysis["average_quality"] == pytest.approx(0.67, abs=1e-4)

    def test_sections_are_present(self, analyzer, gated_batch):
        batch, qualified, rejected, config = gated_batch

        analysis = analyzer.analyze(batch, qualified, rejected, config.overall_threshold)

        assert len(analysis["dimensional_performance"]["strongest"]) == 3
        assert len(analysis["dimensional_performance"]["improvement_priorities"]) == 3
        effectiveness = analysis["threshold_effectiveness"]
        assert effectiveness["current_threshold"] == 0.65
        assert 0.0 <= effectiveness["effectiveness_score"] <= 1.0
        assert effectiveness["adjustment"] in {"maintain", "increase", "decrease", "contextualize"}

    def test_analysis_does_not_touch_partition(self, analyzer, gated_batch):
        batch, qualified, rejected, config = gated_batch
        before = [c.name for c in qualified]

        analyzer.analyze(batch, qualified, rejected, config.overall_threshold)

        assert [c.name for c in qualified] == before

    def test_empty_batch(self, analyzer):
        analysis = analyzer.analyze([], [], [], 0.65)

        assert analysis == QualityGateAnalyzer.empty_analysis()
        assert analysis["pass_rate"] == 0.0


class TestThresholdAdvice:
    """Test optimal threshold and adjustment advice."""

    def test_optimal_threshold_keeps_top_sixty_percent(self):
        scores = [0.9, 0.8, 0.7, 0.6, 0.5]
        assert QualityGateAnalyzer.optimal_threshold(scores, 0.7) == 0.7

    def test_optimal_threshold_moves_at_most_fifteen_points(self):
        scores = [0.95, 0.94, 0.93, 0.92, 0.91]
        assert QualityGateAnalyzer.optimal_threshold(scores, 0.5) == 0.65

    def test_optimal_threshold_without_scores(self):
        assert QualityGateAnalyzer.optimal_threshold([], 0.6) == 0.6

    def test_small_difference_is_maintained(self):
        impact = {"quality_improvement": 0.0, "quantity_reduction": 0.0, "user_satisfaction_impact": 0.0}
        assert QualityGateAnalyzer.determine_adjustment(0.65, 0.67, impact) == "maintain"

    def test_increase_when_quality_gain_is_small(self):
        impact = {"quality_improvement": 0.01, "quantity_reduction": 0.1, "user_satisfaction_impact": 0.0}
        assert QualityGateAnalyzer.determine_adjustment(0.5, 0.62, impact) == "increase"

    def test_decrease_when_too_restrictive(self):
        impact = {"quality_improvement": 0.2, "quantity_reduction": 0.8, "user_satisfaction_impact": -0.1}
        assert QualityGateAnalyzer.determine_adjustment(0.8, 0.68, impact) == "decrease"


class TestAdaptationsAndRecommendations:
    """Test adaptation and recommendation generation."""

    def test_lowered_threshold_is_reported(self, band_context):
        config = ThresholdCalculator().build_config(ThresholdMode.STRICT, band_context)

        adaptations = QualityGateAnalyzer.generate_adaptations(config, {"pass_rate": 0.5}, 0.7)

        assert adaptations[0]["type"] == "threshold_lowered"
        assert adaptations[0]["old_value"] == 0.80
        assert adaptations[0]["new_value"] == 0.7

    def test_unchanged_threshold_has_no_adaptation(self, band_context):
        config = ThresholdCalculator().build_config(ThresholdMode.MODERATE, band_context)

        assert QualityGateAnalyzer.generate_adaptations(config, {"pass_rate": 0.5}, 0.65) == []

    def test_low_pass_rate_recommends_source_review(self):
        analysis = QualityGateAnalyzer.empty_analysis()
        analysis.update({"total_processed": 10, "pass_rate": 0.1})

        recommendations = QualityGateAnalyzer.generate_recommendations(analysis)

        assert recommendations[0]["category"] == "process_enhancement"
        assert recommendations[0]["priority"] == "high"

    def test_recommendations_are_sorted_by_priority(self, analyzer, gated_batch):
        batch, qualified, rejected, config = gated_batch
        analysis = analyzer.analyze(batch, qualified, rejected, config.overall_threshold)

        recommendations = QualityGateAnalyzer.generate_recommendations(analysis)
        ranks = [{"high": 3, "medium": 2, "low": 1}[r["priority"]] for r in recommendations]

        assert ranks == sorted(ranks, reverse=True)
