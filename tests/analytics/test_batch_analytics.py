"""
Tests for BatchAnalytics.
"""

from unittest.mock import Mock

import pytest

from fermata.analytics import BatchAnalytics
from fermata.ranking import ComparativeRankingEngine


@pytest.fixture
def analytics():
    return BatchAnalytics()


class TestSummarize:
    """Test the response analytics block."""

    def test_summary_of_ranked_batch(self, analytics, batch_factory):
        batch = batch_factory([("Alpha", 0.9), ("Bravo", 0.7), ("Charlie", 0.4)])
        qualified = batch[:2]
        ranking = ComparativeRankingEngine().rank(qualified)

        summary = analytics.summarize(batch, qualified, ranking.ranked_names, ranking.positioning["clusters"])

        assert summary["counts"] == {"total": 3, "qualified": 2, "ranked": 2}
        assert summary["distribution"]["count"] == 3
        assert summary["qualified_distribution"]["mean"] == 0.8
        assert summary["ranked_average_score"] == 0.8
        assert summary["confidence"] == {"mean": 1.0, "low_confidence": []}
        assert set(summary["dimension_averages"]) == {"sound", "meaning", "creativity", "appeal", "fit"}
        assert summary["cluster_summary"]["count"] >= 1

    def test_empty_batch(self, analytics):
        summary = analytics.summarize([], [], [])

        assert summary["counts"] == {"total": 0, "qualified": 0, "ranked": 0}
        assert summary["correlation"] == {}
        assert summary["dimension_averages"] == {}
        assert summary["cluster_summary"] == {"count": 0, "largest": None, "quadrants": {}}
        assert summary["ranked_average_score"] == 0.0

    def test_single_candidate_has_no_correlation(self, analytics, batch_factory):
        batch = batch_factory([("Solo", 0.7)])

        summary = analytics.summarize(batch, batch, [])

        assert summary["correlation"] == {}
        assert summary["distribution"]["std_dev"] == 0.0

    def test_low_confidence_names_are_listed(self, analytics, band_context):
        from fermata.scoring import DimensionAggregator

        sparse = DimensionAggregator().aggregate("Sparse", band_context, {"creativity": 0.9})

        summary = analytics.summarize([sparse], [], [])

        assert summary["confidence"]["low_confidence"] == ["Sparse"]

    def test_failure_returns_empty_summary(self, analytics):
        broken = Mock()
        broken.overall_score = "not a number"

        summary = analytics.summarize([broken], [], [])

        assert summary == analytics.empty_summary()


class TestClusterSummary:
    """Test cluster roll-up."""

    def test_largest_cluster_and_quadrants(self):
        clusters = [
            {"id": "cluster_1", "size": 1, "quadrant": "underdeveloped"},
            {"id": "cluster_2", "size": 3, "quadrant": "creative-commercial"},
            {"id": "cluster_3", "size": 2, "quadrant": "creative-commercial"},
        ]

        summary = BatchAnalytics.cluster_summary(clusters)

        assert summary["count"] == 3
        assert summary["largest"] == "cluster_2"
        assert summary["quadrants"] == {"underdeveloped": 1, "creative-commercial": 5}
