"""
Comparative Ranking Engine for Fermata

Orders the qualified batch:

    CompetitiveAnalyze -> WeightedRank -> (Diversify) -> Summarize

Ranks are assigned once, after the final ordering, and are always 1..N.
Failures in a stage degrade that stage's output; the ranking itself is
never discarded.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

from ..exceptions import InternalComputationError
from ..models import (
    NEUTRAL_SCORE,
    CompetitivePosition,
    MarketPosition,
    RankedName,
    RankingMode,
    ScoredCandidate,
    UserPreferences,
)
from ..scoring import determine_quality_tier
from .competitive_analyzer import CompetitiveAnalyzer
from .diversity_optimizer import DiversityOptimizer, diversity_index
from .explanation_generator import ExplanationGenerator
from .positioning_analyzer import PositioningAnalyzer
from .ranking_engine import RankingEngine, RankingEntry

logger = structlog.get_logger(__name__)


@dataclass
class RankingResult:
    """Output of one ranking run."""
    ranked_names: List[RankedName] = field(default_factory=list)
    capped_names: List[str] = field(default_factory=list)
    positioning: Dict[str, Any] = field(default_factory=lambda: {"clusters": [], "gaps": []})
    diversity_index: float = 0.0
    degraded_stages: List[str] = field(default_factory=list)


class ComparativeRankingEngine:
    """
    Comparative ranking orchestration.

    Responsibilities:
    - Pairwise competitive analysis of qualified names
    - Mode-weighted ordering
    - Optional greedy diversification and result capping
    - Explanations and market positioning per ranked name
    """

    def __init__(
        self,
        competitive_analyzer: Optional[CompetitiveAnalyzer] = None,
        ranking_engine: Optional[RankingEngine] = None,
        diversity_optimizer: Optional[DiversityOptimizer] = None,
        positioning_analyzer: Optional[PositioningAnalyzer] = None,
        explanation_generator: Optional[ExplanationGenerator] = None
    ):
        self.competitive_analyzer = competitive_analyzer or CompetitiveAnalyzer()
        self.ranking_engine = ranking_engine or RankingEngine()
        self.diversity_optimizer = diversity_optimizer or DiversityOptimizer()
        self.positioning_analyzer = positioning_analyzer or PositioningAnalyzer()
        self.explanation_generator = explanation_generator or ExplanationGenerator()

        self.logger = logger.bind(component="ComparativeRankingEngine")

    def rank(
        self,
        qualified: Sequence[ScoredCandidate],
        mode: RankingMode = RankingMode.COMPREHENSIVE,
        max_results: Optional[int] = None,
        diversity_target: Optional[float] = None,
        user_preferences: Optional[UserPreferences] = None
    ) -> RankingResult:
        """
        Rank qualified candidates.

        Args:
            qualified: Candidates that passed the quality gate
            mode: Ranking weight profile
            max_results: Cap on ranked names
            diversity_target: Diversity weight d in [0, 1]; None or 0 skips
            user_preferences: Optional bounded score corrections

        Returns:
            RankingResult with contiguous ranks
        """
        result = RankingResult()
        if not qualified:
            return result

        start_time = time.time()

        # CompetitiveAnalyze
        try:
            positions = self.competitive_analyzer.analyze(qualified)
            if len(positions) != len(qualified):
                raise InternalComputationError(
                    "competitive_analysis",
                    f"{len(positions)} positions for {len(qualified)} candidates"
                )
        except Exception as e:
            self.logger.warning("Competitive analysis failed, using default positions", error=str(e))
            positions = [CompetitivePosition(percentile=NEUTRAL_SCORE) for _ in qualified]
            result.degraded_stages.append("competitive_analysis")

        # WeightedRank
        try:
            entries = self.ranking_engine.rank(qualified, positions, mode, user_preferences)
        except Exception as e:
            self.logger.warning("Weighted ranking failed, ordering by overall score", error=str(e))
            entries = self.ranking_engine.rank_by_overall(qualified, positions)
            result.degraded_stages.append("weighted_ranking")

        # Diversify
        limit = len(entries) if max_results is None else min(max_results, len(entries))
        selected = entries[:limit]
        if diversity_target:
            try:
                selected = self.diversity_optimizer.optimize(entries, diversity_target, limit)
            except Exception as e:
                self.logger.warning("Diversity optimization failed, keeping quality order", error=str(e))
                result.degraded_stages.append("diversity")

        selected_names = {entry.candidate.name for entry in selected}
        result.capped_names = [e.candidate.name for e in entries if e.candidate.name not in selected_names]

        # Summarize
        result.ranked_names = [
            self._build_ranked_name(entry, rank) for rank, entry in enumerate(selected, start=1)
        ]
        try:
            result.positioning = self.positioning_analyzer.analyze(qualified)
        except Exception as e:
            self.logger.warning("Positioning analysis failed", error=str(e))
            result.degraded_stages.append("positioning")
        try:
            result.diversity_index = diversity_index(selected)
        except Exception as e:
            self.logger.warning("Diversity index failed", error=str(e))

        self.logger.info(
            "Ranking complete",
            mode=mode.value,
            qualified=len(qualified),
            ranked=len(result.ranked_names),
            capped=len(result.capped_names),
            diversity_index=result.diversity_index,
            duration_ms=round((time.time() - start_time) * 1000, 1)
        )
        return result

    def _build_ranked_name(self, entry: RankingEntry, rank: int) -> RankedName:
        candidate = entry.candidate
        generator = self.explanation_generator
        try:
            strengths = generator.strength_areas(candidate)
            improvements = generator.improvement_opportunities(candidate)
            market = generator.market_position(candidate)
            confidence = generator.confidence_score(candidate)
            explanation = generator.explanation(entry, rank, strengths)
        except Exception as e:
            self.logger.warning("Explanation failed, using defaults", name=candidate.name, error=str(e))
            strengths, improvements = [], []
            market = MarketPosition(
                segment=generator.market_segment(candidate.overall_score),
                appeal=candidate.breakdown.market_appeal,
                viability=candidate.overall_score,
            )
            confidence = candidate.confidence
            explanation = ""

        return RankedName(
            name=candidate.name,
            rank=rank,
            overall_score=candidate.overall_score,
            final_score=entry.final_score,
            quality_tier=determine_quality_tier(candidate.overall_score),
            competitive_position=entry.position,
            market_position=market,
            strength_areas=strengths,
            improvement_opportunities=improvements,
            confidence_score=confidence,
            explanation=explanation,
            quality_vector=candidate.vector,
        )
