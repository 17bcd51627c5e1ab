"""
Quality Ranking Service

Request-level entry point for the whole pipeline:

    Validate -> Score -> Gate -> Rank -> Summarize

Only a malformed request raises (ConfigurationError). Every other failure
degrades the affected stage and the response stays structurally valid.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from pydantic import ValidationError

from ..analytics import BatchAnalytics
from ..analyzers import default_analyzers
from ..config import FermataSettings, get_settings
from ..exceptions import ConfigurationError, InternalComputationError
from ..gate import (
    AdaptiveThresholdLearner,
    DiskLearningHistoryStore,
    InMemoryLearningHistoryStore,
    LearningHistoryStore,
    QualityThresholdManager,
)
from ..models import QualityGateResult, RankingRequest, RankingResponse, ScoredCandidate
from ..ranking import ComparativeRankingEngine, RankingResult
from ..scoring import CandidateScorer
from ..utils.logging_config import log_error, log_performance, set_request_context, setup_logging
from .cache_manager import CacheManager
from .word_association_service import WordAssociationService

logger = structlog.get_logger(__name__)

# Share of the analyzer timeout the semantic analyzer may spend on concept lookups
LOOKUP_BUDGET_SHARE = 0.75


class QualityRankingService:
    """
    Name quality evaluation service.

    Responsibilities:
    - Validate and normalize ranking requests
    - Score every name, run the quality gate, rank the survivors
    - Assemble analytics and request metadata
    """

    def __init__(
        self,
        settings: Optional[FermataSettings] = None,
        scorer: Optional[CandidateScorer] = None,
        quality_gate: Optional[QualityThresholdManager] = None,
        ranking_engine: Optional[ComparativeRankingEngine] = None,
        analytics: Optional[BatchAnalytics] = None,
        history_store: Optional[LearningHistoryStore] = None,
        cache_manager: Optional[CacheManager] = None,
        word_association_service: Optional[WordAssociationService] = None
    ):
        """
        Initialize the service. Collaborators not supplied are built from
        settings.

        Args:
            settings: Runtime settings (defaults to get_settings())
            scorer: Candidate scorer
            quality_gate: Quality threshold manager
            ranking_engine: Comparative ranking engine
            analytics: Batch analytics
            history_store: Adaptive learning history (in-memory by default)
            cache_manager: Cache for analyzer results (optional)
            word_association_service: Association lookups for the semantic analyzer
        """
        self.logger = logger.bind(service="QualityRankingService")
        self.settings = settings or get_settings()
        self.cache_manager = cache_manager

        self.learner = AdaptiveThresholdLearner(
            history_store or InMemoryLearningHistoryStore(),
            window_days=self.settings.learning_window_days,
            decay=self.settings.learning_decay,
            stability_bias=self.settings.learning_stability_bias,
        )
        self.scorer = scorer or CandidateScorer(
            analyzers=default_analyzers(
                word_association_service,
                lookup_budget_seconds=self.settings.analyzer_timeout_seconds * LOOKUP_BUDGET_SHARE
            ),
            cache_manager=cache_manager if self.settings.cache_enabled else None,
            timeout_seconds=self.settings.analyzer_timeout_seconds,
            max_concurrency=self.settings.max_concurrent_analyses,
            cache_ttl=self.settings.analysis_cache_ttl,
        )
        self.quality_gate = quality_gate or QualityThresholdManager(
            learner=self.learner,
            floor_threshold=self.settings.fallback_floor_threshold,
        )
        self.ranking_engine = ranking_engine or ComparativeRankingEngine()
        self.analytics = analytics or BatchAnalytics()

        self.logger.info(
            "Quality Ranking Service initialized",
            has_cache=self.cache_manager is not None,
            word_association=word_association_service is not None,
            max_batch_size=self.settings.max_batch_size
        )

    @classmethod
    def from_settings(cls, settings: Optional[FermataSettings] = None) -> "QualityRankingService":
        """Build a service with disk-backed caching and learning when enabled."""
        settings = settings or get_settings()
        cache_manager = CacheManager(settings.cache_dir) if settings.cache_enabled else None

        history_store = None
        if cache_manager is not None:
            history_store = DiskLearningHistoryStore.from_cache_manager(cache_manager)

        word_service = None
        if settings.enable_word_association:
            word_service = WordAssociationService.from_settings(settings, cache_manager)

        return cls(
            settings=settings,
            history_store=history_store,
            cache_manager=cache_manager,
            word_association_service=word_service,
        )

    async def rank_names(self, request: Union[RankingRequest, Dict[str, Any]]) -> RankingResponse:
        """
        Evaluate, gate and rank a batch of candidate names.

        Args:
            request: RankingRequest or an equivalent plain dict

        Returns:
            RankingResponse in which every unique input name is ranked,
            rejected or capped

        Raises:
            ConfigurationError: If the request is malformed
        """
        request = self.validate_request(request)
        names, duplicates = self.normalize_names(request.candidate_names)
        if not names:
            raise ConfigurationError("no non-blank candidate names", field="candidate_names")
        if len(names) > self.settings.max_batch_size:
            raise ConfigurationError(
                f"{len(names)} names exceeds the batch limit of {self.settings.max_batch_size}",
                field="candidate_names"
            )

        request_id = str(uuid.uuid4())
        set_request_context(request_id, ranking_mode=request.ranking_mode.value)
        start_time = time.time()
        timings: Dict[str, float] = {}
        degraded: List[str] = []

        # Score
        stage_start = time.time()
        candidates = await self._score(names, request, degraded)
        timings["scoring_ms"] = self._elapsed_ms(stage_start)

        # Gate
        stage_start = time.time()
        gate_result = self.quality_gate.apply_quality_gate(
            candidates,
            request.context,
            mode=request.quality_threshold,
            minimum_results=self.minimum_results(request),
            custom_threshold=request.custom_threshold,
            user_preferences=request.user_preferences,
            record_learning=request.adaptive_learning,
        )
        timings["gate_ms"] = self._elapsed_ms(stage_start)

        # Rank
        stage_start = time.time()
        ranking = self.ranking_engine.rank(
            gate_result.qualified,
            mode=request.ranking_mode,
            max_results=request.max_results,
            diversity_target=request.diversity_target,
            user_preferences=request.user_preferences,
        )
        degraded.extend(ranking.degraded_stages)
        timings["ranking_ms"] = self._elapsed_ms(stage_start)

        # Summarize
        analytics = self.build_analytics(candidates, gate_result, ranking)
        processing_time = time.time() - start_time

        response = RankingResponse(
            ranked_names=ranking.ranked_names,
            rejected_names=gate_result.rejected,
            capped_names=ranking.capped_names,
            threshold_used=gate_result.threshold_used,
            analytics=analytics,
            metadata={
                "request_id": request_id,
                "ranking_mode": request.ranking_mode.value,
                "threshold_mode": request.quality_threshold.value,
                "total_candidates": len(names),
                "duplicates_dropped": duplicates,
                "qualified_count": len(gate_result.qualified),
                "rejected_count": len(gate_result.rejected),
                "ranked_count": len(ranking.ranked_names),
                "initial_threshold": gate_result.initial_threshold,
                "fallback_applied": gate_result.fallback_applied,
                "fallback_steps": gate_result.fallback_steps,
                "degraded_stages": degraded,
                "timings": timings,
                "processing_time_ms": round(processing_time * 1000, 1),
            },
        )

        log_performance(
            "rank_names",
            processing_time,
            batch_size=len(names),
            ranked=len(response.ranked_names)
        )
        self.logger.info(
            "Ranking request complete",
            request_id=request_id,
            total=len(names),
            ranked=len(response.ranked_names),
            rejected=len(response.rejected_names),
            capped=len(response.capped_names),
            threshold=response.threshold_used,
            degraded_stages=degraded
        )
        return response

    async def _score(
        self,
        names: List[str],
        request: RankingRequest,
        degraded: List[str]
    ) -> List[ScoredCandidate]:
        try:
            return await self.scorer.score_batch(names, request.context)
        except InternalComputationError as e:
            self.logger.error("Scoring failed, using neutral scores", stage=e.stage, error=str(e))
            log_error(e, {"stage": e.stage, "batch_size": len(names)})
            degraded.append("scoring")
            return self.scorer.neutral_batch(names, request.context)

    @staticmethod
    def validate_request(request: Union[RankingRequest, Dict[str, Any]]) -> RankingRequest:
        """Coerce a request into a RankingRequest, translating validation errors."""
        if isinstance(request, RankingRequest):
            return request
        if not isinstance(request, dict):
            raise ConfigurationError(f"expected a mapping, got {type(request).__name__}")
        try:
            return RankingRequest.model_validate(request)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(first.get("msg", str(e)), field=location) from e

    @staticmethod
    def normalize_names(raw_names: List[str]) -> Tuple[List[str], int]:
        """
        Strip names and drop blanks and duplicates, keeping first occurrences.

        Returns:
            Tuple of (names, number of duplicates dropped)
        """
        names: List[str] = []
        seen = set()
        duplicates = 0
        for raw in raw_names:
            name = raw.strip()
            if not name:
                continue
            if name in seen:
                duplicates += 1
                continue
            seen.add(name)
            names.append(name)
        return names, duplicates

    @staticmethod
    def minimum_results(request: RankingRequest) -> int:
        if request.minimum_results is not None:
            return request.minimum_results
        if request.max_results:
            return max(1, request.max_results // 2)
        return 1

    def build_analytics(
        self,
        candidates: List[ScoredCandidate],
        gate_result: QualityGateResult,
        ranking: RankingResult
    ) -> Dict[str, Any]:
        summary = self.analytics.summarize(
            candidates,
            gate_result.qualified,
            ranking.ranked_names,
            ranking.positioning.get("clusters", [])
        )
        summary.update({
            "clusters": ranking.positioning.get("clusters", []),
            "gaps": ranking.positioning.get("gaps", []),
            "diversity_index": ranking.diversity_index,
            "gate": {
                "analysis": gate_result.gate_analysis,
                "adaptations": gate_result.adaptations,
                "recommendations": gate_result.recommendations,
                "initial_threshold": gate_result.initial_threshold,
                "fallback_applied": gate_result.fallback_applied,
                "fallback_steps": gate_result.fallback_steps,
            },
        })
        return summary

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.time() - start) * 1000, 1)

    def close(self) -> None:
        if self.cache_manager is not None:
            self.cache_manager.close()


_service_instance: Optional[QualityRankingService] = None


def get_quality_ranking_service() -> QualityRankingService:
    """Get global quality ranking service instance, configuring logging on first use."""
    global _service_instance
    if _service_instance is None:
        settings = get_settings()
        setup_logging(
            log_dir=settings.log_dir,
            log_level=settings.log_level,
            enable_console=settings.log_console
        )
        _service_instance = QualityRankingService.from_settings(settings)
    return _service_instance


def close_quality_ranking_service() -> None:
    """Close the global quality ranking service instance."""
    global _service_instance
    if _service_instance:
        _service_instance.close()
        _service_instance = None
