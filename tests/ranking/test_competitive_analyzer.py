"""
Tests for CompetitiveAnalyzer.
"""

import pytest

from fermata.ranking import CompetitiveAnalyzer


@pytest.fixture
def analyzer():
    return CompetitiveAnalyzer()


class TestCompetitiveAnalyzer:
    """Test percentile and differentiation."""

    def test_percentiles(self, analyzer, batch_factory):
        batch = batch_factory([("High", 0.9), ("Middle", 0.7), ("Low", 0.5)])

        positions = analyzer.analyze(batch)

        assert [p.percentile for p in positions] == [1.0, 0.5, 0.0]
        assert positions[0].outperforms == ["Middle", "Low"]
        assert positions[2].underperforms == ["High", "Middle"]

    def test_ties_do_not_outperform(self, analyzer, batch_factory):
        batch = batch_factory([("Twin A", 0.7), ("Twin B", 0.7), ("Low", 0.5)])

        positions = analyzer.analyze(batch)

        assert positions[0].percentile == positions[1].percentile == 0.5
        assert "Twin B" not in positions[0].outperforms
        assert "Twin B" not in positions[0].underperforms

    def test_lone_candidate_tops_its_batch(self, analyzer, batch_factory):
        positions = analyzer.analyze(batch_factory([("Solo", 0.6)]))

        assert positions[0].percentile == 1.0
        assert positions[0].differentiation_factors == []

    def test_empty_batch(self, analyzer):
        assert analyzer.analyze([]) == []

    def test_differentiation_factors(self, analyzer, scored_batch, make_scores):
        batch = scored_batch([
            ("Inventive", make_scores(0.6, creativity=0.95)),
            ("Plain A", make_scores(0.6, creativity=0.4)),
            ("Plain B", make_scores(0.6, creativity=0.4)),
        ])

        factors = analyzer.analyze(batch)[0].differentiation_factors

        assert len(factors) == 1
        assert factors[0].dimension == "creativity"
        assert factors[0].gap == 0.55
        assert factors[0].strength == "strong"
        assert factors[0].direction == "advantage"

    def test_weakness_direction(self, analyzer, scored_batch, make_scores):
        batch = scored_batch([
            ("Mumbled", make_scores(0.7, pronunciation=0.5)),
            ("Clear", make_scores(0.7)),
        ])

        factors = analyzer.analyze(batch)[0].differentiation_factors

        assert factors[0].dimension == "pronunciation"
        assert factors[0].strength == "moderate"
        assert factors[0].direction == "weakness"
