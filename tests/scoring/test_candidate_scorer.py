"""
Tests for CandidateScorer.

Analyzer collaborators are replaced with small fakes so timeouts, failures
and caching can be exercised without the heuristic analyzers.
"""

import asyncio
from typing import Dict
from unittest.mock import AsyncMock, Mock

import pytest

from fermata.analyzers import BaseAnalyzer
from fermata.exceptions import InternalComputationError
from fermata.models import SCORE_FIELDS, NameContext
from fermata.scoring import CandidateScorer


class FakeAnalyzer(BaseAnalyzer):
    """Returns canned scores, optionally per name, after an optional delay."""

    def __init__(self, name: str, scores: Dict[str, float], per_name=None, delay: float = 0.0, error=None):
        super().__init__()
        self.name = name
        self.scores = scores
        self.per_name = per_name or {}
        self.delay = delay
        self.error = error
        self.calls = 0

    async def analyze(self, name: str, context: NameContext):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.per_name.get(name, self.scores)


@pytest.fixture
def context():
    return NameContext(type="band", genre="indie")


@pytest.fixture
def full_scores():
    return {field_name: 0.7 for field_name in SCORE_FIELDS}


class TestScoreBatch:
    """Test batch scoring."""

    @pytest.mark.asyncio
    async def test_scores_every_name_in_order(self, context, full_scores):
        scorer = CandidateScorer(analyzers=[FakeAnalyzer("fake", full_scores)], max_concurrency=2)

        candidates = await scorer.score_batch(["Glass Attic", "Paper Fox", "Tape Bloom"], context)

        assert [c.name for c in candidates] == ["Glass Attic", "Paper Fox", "Tape Bloom"]
        assert all(c.overall_score == 0.7 for c in candidates)
        assert all(c.confidence == 1.0 for c in candidates)

    @pytest.mark.asyncio
    async def test_partial_analyzers_are_merged(self, context):
        sound = FakeAnalyzer("sound", {"phonetic_flow": 0.9, "pronunciation": 0.8})
        meaning = FakeAnalyzer("meaning", {"creativity": 0.6})
        scorer = CandidateScorer(analyzers=[sound, meaning])

        candidate = (await scorer.score_batch(["Glass Attic"], context))[0]

        assert candidate.breakdown.phonetic_flow == 0.9
        assert candidate.breakdown.creativity == 0.6
        assert "memorability" in candidate.missing_fields

    @pytest.mark.asyncio
    async def test_empty_batch(self, context):
        scorer = CandidateScorer(analyzers=[FakeAnalyzer("fake", {})])
        assert await scorer.score_batch([], context) == []

    @pytest.mark.asyncio
    async def test_empty_analyzer_result_survives_with_lower_confidence(self, context, full_scores):
        analyzer = FakeAnalyzer("fake", full_scores, per_name={"Beta": {}})
        scorer = CandidateScorer(analyzers=[analyzer])

        candidates = await scorer.score_batch(["Alpha", "Beta", "Gamma"], context)
        by_name = {c.name: c for c in candidates}

        assert len(candidates) == 3
        assert by_name["Beta"].confidence < by_name["Alpha"].confidence
        assert by_name["Beta"].confidence < by_name["Gamma"].confidence
        assert set(by_name["Beta"].missing_fields) == set(SCORE_FIELDS)

    @pytest.mark.asyncio
    async def test_failing_analyzer_uses_neutral_defaults(self, context, full_scores):
        good = FakeAnalyzer("good", {"creativity": 0.9})
        broken = FakeAnalyzer("broken", full_scores, error=RuntimeError("boom"))
        scorer = CandidateScorer(analyzers=[good, broken])

        candidate = (await scorer.score_batch(["Riot Kick"], context))[0]

        assert candidate.failed_analyzers == ["broken"]
        assert candidate.breakdown.creativity == 0.9
        assert candidate.breakdown.memorability == 0.5

    @pytest.mark.asyncio
    async def test_slow_analyzer_times_out(self, context, full_scores):
        slow = FakeAnalyzer("slow", full_scores, delay=1.0)
        scorer = CandidateScorer(analyzers=[slow], timeout_seconds=0.05)

        candidate = (await scorer.score_batch(["Slow Tide"], context))[0]

        assert candidate.failed_analyzers == ["slow"]
        assert candidate.confidence < 1.0

    @pytest.mark.asyncio
    async def test_non_mapping_result_is_a_failure(self, context):
        odd = FakeAnalyzer("odd", [0.5, 0.6])
        scorer = CandidateScorer(analyzers=[odd])

        candidate = (await scorer.score_batch(["Odd One"], context))[0]
        assert candidate.failed_analyzers == ["odd"]

    @pytest.mark.asyncio
    async def test_fan_out_failure_raises_internal_error(self, context, full_scores):
        scorer = CandidateScorer(analyzers=[FakeAnalyzer("fake", full_scores)])
        scorer._analyze_name = AsyncMock(side_effect=RuntimeError("pool exploded"))

        with pytest.raises(InternalComputationError) as exc_info:
            await scorer.score_batch(["Anything"], context)
        assert exc_info.value.stage == "analysis"


class TestCaching:
    """Test analyzer result caching."""

    @pytest.mark.asyncio
    async def test_results_are_cached(self, context, full_scores):
        cache_manager = Mock()
        cache_manager.generate_key.return_value = "key"
        cache_manager.get.return_value = None
        analyzer = FakeAnalyzer("fake", full_scores)
        scorer = CandidateScorer(analyzers=[analyzer], cache_manager=cache_manager, cache_ttl=60)

        await scorer.score_batch(["Cached Name"], context)

        cache_manager.set.assert_called_once_with("analysis", "key", full_scores, ttl=60)

    @pytest.mark.asyncio
    async def test_cache_hit_skips_analyzer(self, context, full_scores):
        cache_manager = Mock()
        cache_manager.generate_key.return_value = "key"
        cache_manager.get.return_value = {"creativity": 0.95}
        analyzer = FakeAnalyzer("fake", full_scores)
        scorer = CandidateScorer(analyzers=[analyzer], cache_manager=cache_manager)

        candidate = (await scorer.score_batch(["Cached Name"], context))[0]

        assert analyzer.calls == 0
        assert candidate.breakdown.creativity == 0.95


class TestNeutralBatch:
    """Test the all-neutral fallback batch."""

    def test_neutral_batch(self, context, full_scores):
        scorer = CandidateScorer(analyzers=[FakeAnalyzer("a", full_scores), FakeAnalyzer("b", full_scores)])

        candidates = scorer.neutral_batch(["One", "Two"], context)

        assert [c.name for c in candidates] == ["One", "Two"]
        assert all(c.overall_score == 0.5 for c in candidates)
        assert all(c.failed_analyzers == ["a", "b"] for c in candidates)


class TestReferenceAnalyzers:
    """Run the built-in heuristic analyzers end to end."""

    @pytest.mark.asyncio
    async def test_default_analyzers_cover_every_field(self, context):
        scorer = CandidateScorer()

        candidates = await scorer.score_batch(["Velvet Static", "The Paper Foxes"], context)

        for candidate in candidates:
            assert candidate.missing_fields == []
            assert candidate.failed_analyzers == []
            assert 0.0 <= candidate.overall_score <= 1.0
            assert all(0.0 <= value <= 1.0 for value in candidate.breakdown.as_dict().values())
