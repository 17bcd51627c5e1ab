"""
Tests for QualityRankingService.

Most tests score names through a table-driven analyzer so gate and ranking
outcomes are predictable; a few run the built-in analyzers end to end.
"""

from typing import Dict
from unittest.mock import AsyncMock

import pytest

from fermata.analyzers import BaseAnalyzer
from fermata.exceptions import ConfigurationError, InternalComputationError
from fermata.gate import DiskLearningHistoryStore
from fermata.models import SCORE_FIELDS, NameContext, RankingRequest
from fermata.scoring import CandidateScorer
from fermata.services import QualityRankingService


class TableAnalyzer(BaseAnalyzer):
    """Uniform scores looked up by name."""

    name = "table"
    provided_fields = SCORE_FIELDS

    def __init__(self, table: Dict[str, float], default: float = 0.5):
        super().__init__()
        self.table = table
        self.default = default

    async def analyze(self, name: str, context: NameContext):
        value = self.table.get(name, self.default)
        return {field_name: value for field_name in SCORE_FIELDS}


SCORES = {"Alpha": 0.9, "Bravo": 0.8, "Charlie": 0.7, "Delta": 0.5, "Echo": 0.4}


@pytest.fixture
def service(test_settings):
    scorer = CandidateScorer(analyzers=[TableAnalyzer(SCORES)])
    return QualityRankingService(settings=test_settings, scorer=scorer)


@pytest.fixture
def base_request():
    return {
        "candidate_names": list(SCORES),
        "context": {"type": "band"},
    }


def accounted_names(response):
    ranked = [r.name for r in response.ranked_names]
    rejected = [r.name for r in response.rejected_names]
    return ranked, rejected, list(response.capped_names)


class TestRankNames:
    """Test the full request pipeline."""

    @pytest.mark.asyncio
    async def test_every_name_is_accounted_for_once(self, service, base_request):
        response = await service.rank_names(base_request)
        ranked, rejected, capped = accounted_names(response)

        assert ranked == ["Alpha", "Bravo", "Charlie"]
        assert rejected == ["Delta", "Echo"]
        assert capped == []
        assert sorted(ranked + rejected + capped) == sorted(SCORES)
        assert response.threshold_used == 0.65

    @pytest.mark.asyncio
    async def test_max_results_caps(self, service, base_request):
        base_request["max_results"] = 2

        response = await service.rank_names(base_request)
        ranked, rejected, capped = accounted_names(response)

        assert ranked == ["Alpha", "Bravo"]
        assert capped == ["Charlie"]
        assert [r.rank for r in response.ranked_names] == [1, 2]

    @pytest.mark.asyncio
    async def test_fallback_is_reported(self, service, base_request):
        base_request["quality_threshold"] = "strict"
        base_request["minimum_results"] = 3

        response = await service.rank_names(base_request)

        assert response.metadata["initial_threshold"] == 0.80
        assert response.metadata["fallback_applied"] is True
        assert response.threshold_used < 0.80
        assert len(response.ranked_names) >= 3

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, service):
        request = RankingRequest(candidate_names=["Alpha", "Echo"], context={"type": "song"})

        response = await service.rank_names(request)

        assert [r.name for r in response.ranked_names] == ["Alpha"]

    @pytest.mark.asyncio
    async def test_metadata(self, service, base_request):
        response = await service.rank_names(base_request)
        metadata = response.metadata

        assert metadata["total_candidates"] == 5
        assert metadata["qualified_count"] == 3
        assert metadata["rejected_count"] == 2
        assert metadata["ranked_count"] == 3
        assert metadata["ranking_mode"] == "comprehensive"
        assert metadata["threshold_mode"] == "moderate"
        assert metadata["degraded_stages"] == []
        assert set(metadata["timings"]) == {"scoring_ms", "gate_ms", "ranking_ms"}
        assert metadata["request_id"]

    @pytest.mark.asyncio
    async def test_analytics_block(self, service, base_request):
        response = await service.rank_names(base_request)
        analytics = response.analytics

        assert analytics["counts"] == {"total": 5, "qualified": 3, "ranked": 3}
        assert analytics["gate"]["initial_threshold"] == 0.65
        assert "clusters" in analytics
        assert "gaps" in analytics
        assert 0.0 <= analytics["diversity_index"] <= 1.0

    @pytest.mark.asyncio
    async def test_duplicates_and_whitespace(self, service):
        response = await service.rank_names({
            "candidate_names": ["Alpha", " Alpha ", "Bravo", "", "Alpha"],
            "context": {"type": "band"},
        })

        assert response.metadata["total_candidates"] == 2
        assert response.metadata["duplicates_dropped"] == 2
        assert [r.name for r in response.ranked_names] == ["Alpha", "Bravo"]

    @pytest.mark.asyncio
    async def test_deterministic(self, service, base_request):
        first = await service.rank_names(base_request)
        second = await service.rank_names(base_request)

        assert [(r.name, r.final_score) for r in first.ranked_names] == \
            [(r.name, r.final_score) for r in second.ranked_names]
        assert first.threshold_used == second.threshold_used


class TestRequestValidation:
    """Malformed requests raise ConfigurationError before processing."""

    @pytest.mark.asyncio
    async def test_blank_names(self, service):
        with pytest.raises(ConfigurationError) as exc_info:
            await service.rank_names({"candidate_names": ["  ", ""], "context": {"type": "band"}})
        assert exc_info.value.field == "candidate_names"

    @pytest.mark.asyncio
    async def test_batch_too_large(self, service, test_settings):
        names = [f"Name {i}" for i in range(test_settings.max_batch_size + 1)]

        with pytest.raises(ConfigurationError) as exc_info:
            await service.rank_names({"candidate_names": names, "context": {"type": "band"}})
        assert exc_info.value.field == "candidate_names"

    @pytest.mark.asyncio
    async def test_unknown_ranking_mode(self, service, base_request):
        base_request["ranking_mode"] = "loudest"

        with pytest.raises(ConfigurationError) as exc_info:
            await service.rank_names(base_request)
        assert exc_info.value.field == "ranking_mode"

    @pytest.mark.asyncio
    async def test_missing_context(self, service):
        with pytest.raises(ConfigurationError) as exc_info:
            await service.rank_names({"candidate_names": ["Alpha"]})
        assert exc_info.value.field == "context"

    @pytest.mark.asyncio
    async def test_not_a_mapping(self, service):
        with pytest.raises(ConfigurationError):
            await service.rank_names(["Alpha", "Bravo"])

    @pytest.mark.parametrize("overrides,expected", [
        ({}, 1),
        ({"max_results": 6}, 3),
        ({"max_results": 1}, 1),
        ({"max_results": 6, "minimum_results": 5}, 5),
    ])
    def test_minimum_results(self, overrides, expected):
        request = RankingRequest(candidate_names=["A"], context={"type": "band"}, **overrides)

        assert QualityRankingService.minimum_results(request) == expected


class TestDegradation:
    """Internal failures degrade stages instead of raising."""

    @pytest.mark.asyncio
    async def test_scoring_failure_uses_neutral_batch(self, test_settings, base_request):
        scorer = CandidateScorer(analyzers=[TableAnalyzer(SCORES)])
        scorer.score_batch = AsyncMock(side_effect=InternalComputationError("analysis", "pool exploded"))
        service = QualityRankingService(settings=test_settings, scorer=scorer)

        response = await service.rank_names(base_request)
        ranked, rejected, capped = accounted_names(response)

        assert response.metadata["degraded_stages"] == ["scoring"]
        assert sorted(ranked + rejected + capped) == sorted(SCORES)
        assert all(r.overall_score == 0.5 for r in response.ranked_names)


class TestAdaptiveLearning:
    """Test the adaptive learning round trip."""

    @pytest.mark.asyncio
    async def test_outcome_is_recorded_when_requested(self, service, base_request):
        base_request.update({"quality_threshold": "adaptive", "adaptive_learning": True})

        await service.rank_names(base_request)

        key = service.learner.context_key(NameContext(type="band"))
        assert len(service.learner.store.records(key)) == 1

    @pytest.mark.asyncio
    async def test_nothing_recorded_by_default(self, service, base_request):
        await service.rank_names(base_request)

        key = service.learner.context_key(NameContext(type="band"))
        assert service.learner.store.records(key) == []


class TestConstruction:
    """Test settings-driven wiring."""

    def test_from_settings_with_cache(self, test_settings):
        settings = test_settings.model_copy(update={"cache_enabled": True})

        service = QualityRankingService.from_settings(settings)
        try:
            assert service.cache_manager is not None
            assert isinstance(service.learner.store, DiskLearningHistoryStore)
            assert service.scorer.cache_manager is service.cache_manager
        finally:
            service.close()

    def test_defaults_without_cache(self, test_settings):
        service = QualityRankingService.from_settings(test_settings)

        assert service.cache_manager is None
        assert service.scorer.cache_manager is None


class TestBuiltInAnalyzers:
    """Run real analyzers through the whole pipeline."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, test_settings):
        service = QualityRankingService(settings=test_settings)
        names = ["Velvet Static", "The Paper Foxes", "Glass Harbor", "Xkcdqz Prrt", "Midnight Echo"]

        response = await service.rank_names({
            "candidate_names": names,
            "context": {"type": "band", "genre": "indie", "mood": "dreamy"},
            "ranking_mode": "balanced",
            "quality_threshold": "lenient",
            "diversity_target": 0.3,
        })
        ranked, rejected, capped = accounted_names(response)

        assert sorted(ranked + rejected + capped) == sorted(names)
        assert [r.rank for r in response.ranked_names] == list(range(1, len(ranked) + 1))
        assert all(r.reasons for r in response.rejected_names)


class TestScenarios:
    """Request-level outcomes for uniform and strict batches."""

    @pytest.mark.asyncio
    async def test_identical_candidates_fill_the_cap(self, test_settings):
        names = [f"Same {i}" for i in range(5)]
        scorer = CandidateScorer(analyzers=[TableAnalyzer({}, default=0.8)])
        service = QualityRankingService(settings=test_settings, scorer=scorer)

        response = await service.rank_names({
            "candidate_names": names,
            "context": {"type": "band"},
            "diversity_target": 0.8,
            "max_results": 3,
        })
        ranked, rejected, capped = accounted_names(response)

        assert len(ranked) == 3
        assert len(capped) == 2
        assert rejected == []
        assert sorted(ranked + capped) == names

    @pytest.mark.asyncio
    async def test_strict_fallback_stays_between_initial_and_floor(self, test_settings):
        table = {f"Name {i}": round(0.95 - 0.06 * i, 2) for i in range(10)}
        scorer = CandidateScorer(analyzers=[TableAnalyzer(table)])
        service = QualityRankingService(settings=test_settings, scorer=scorer)

        response = await service.rank_names({
            "candidate_names": list(table),
            "context": {"type": "band"},
            "quality_threshold": "strict",
            "minimum_results": 5,
        })
        metadata = response.metadata

        assert metadata["fallback_applied"] is True
        assert metadata["initial_threshold"] >= response.threshold_used
        assert response.threshold_used >= test_settings.fallback_floor_threshold
        assert len(response.ranked_names) >= 5
