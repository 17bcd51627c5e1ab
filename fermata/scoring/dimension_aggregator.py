"""
Dimension Aggregator for Fermata

Combines raw per-dimension analyzer outputs into immutable ScoredCandidates:
- Single normalization pass with neutral defaults for missing fields
- Weighted overall score
- Quality vector (sound, meaning, creativity, appeal, fit)
- Balance and magnitude of the vector
- Batch-relative distinctiveness

Aggregation never raises for missing or partial input; it degrades the
candidate's confidence instead.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from ..analytics.statistics import cosine_similarity, variance
from ..exceptions import ConfigurationError
from ..models import (
    DIMENSION_NAMES,
    NEUTRAL_SCORE,
    SCORE_FIELDS,
    NameContext,
    QualityVector,
    ScoreBreakdown,
    ScoredCandidate,
)

logger = structlog.get_logger(__name__)

# Raw analyzer output: analyzer name -> partial breakdown, or one flat partial.
DimensionResults = Mapping[str, Any]


@dataclass
class AnalysisBundle:
    """Everything the analyzers produced for one name."""
    name: str
    context: NameContext
    dimension_results: DimensionResults = field(default_factory=dict)
    analysis_time_ms: float = 0.0
    failed_analyzers: List[str] = field(default_factory=list)


class DimensionAggregator:
    """
    Turns partial analyzer results into ScoredCandidates.

    Responsibilities:
    - Normalize and default partial analyzer output
    - Weighted overall score from the score breakdown
    - Quality vector derivation
    - Distinctiveness relative to the rest of the batch
    """

    # Single dimension at 0 against four at 1 has variance 0.16 -> balance 0.28
    BALANCE_SCALE = 4.5
    CONFIDENCE_FLOOR = 0.2
    SINGLE_BATCH_DISTINCTIVENESS = 0.5

    def __init__(self, field_weights: Optional[Dict[str, float]] = None):
        """
        Initialize the aggregator.

        Args:
            field_weights: Optional override of the overall-score weights.
                Must cover only known fields and sum to 1.

        Raises:
            ConfigurationError: If the weights are not a convex combination
        """
        self.field_weights = field_weights or self._initialize_field_weights()
        self._validate_weights(self.field_weights)

        self.logger = logger.bind(component="DimensionAggregator")

    def _initialize_field_weights(self) -> Dict[str, float]:
        """Overall-score weight per breakdown field."""
        return {
            'phonetic_flow': 0.12,                 # How the name sounds in sequence
            'semantic_coherence': 0.12,            # Whether the words belong together
            'creativity': 0.13,                    # Originality
            'memorability': 0.12,                  # Recall
            'market_appeal': 0.10,                 # Commercial pull
            'appropriateness': 0.10,               # Fit for type and mood
            'uniqueness': 0.08,                    # Rarity
            'pronunciation': 0.08,                 # Ease of saying it
            'cultural_appeal': 0.05,               # Broad acceptability
            'genre_optimization': 0.05,            # Genre fit
            'phonetic_semantic_alignment': 0.05,   # Sound matches meaning
        }

    @staticmethod
    def _validate_weights(weights: Dict[str, float]) -> None:
        unknown = set(weights) - set(SCORE_FIELDS)
        if unknown:
            raise ConfigurationError(f"unknown score fields {sorted(unknown)}", field="field_weights")
        if any(weight < 0 for weight in weights.values()):
            raise ConfigurationError("weights must be non-negative", field="field_weights")
        if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-6):
            raise ConfigurationError("weights must sum to 1", field="field_weights")

    def aggregate(
        self,
        name: str,
        context: NameContext,
        dimension_results: DimensionResults,
        analysis_time_ms: float = 0.0,
        failed_analyzers: Optional[List[str]] = None
    ) -> ScoredCandidate:
        """
        Aggregate one name's analyzer output into a ScoredCandidate.

        Distinctiveness needs peers, so a lone candidate gets the neutral
        single-batch value. Use aggregate_batch for batch-relative scores.
        """
        bundle = AnalysisBundle(
            name=name,
            context=context,
            dimension_results=dimension_results,
            analysis_time_ms=analysis_time_ms,
            failed_analyzers=list(failed_analyzers or []),
        )
        return self.aggregate_batch([bundle])[0]

    def aggregate_batch(self, bundles: Sequence[AnalysisBundle]) -> List[ScoredCandidate]:
        """
        Aggregate a whole batch, computing distinctiveness against peers.

        Args:
            bundles: Analyzer output for every name in the batch

        Returns:
            One ScoredCandidate per bundle, in input order
        """
        if not bundles:
            return []

        try:
            prepared = []
            for bundle in bundles:
                breakdown, missing = self.normalize(bundle.dimension_results)
                prepared.append((bundle, breakdown, missing, self._dimensions(breakdown)))

            vectors = [[dims[name] for name in DIMENSION_NAMES] for _, _, _, dims in prepared]
            distinctiveness = self._batch_distinctiveness(vectors)

            candidates = [
                self._build_candidate(bundle, breakdown, missing, dims, distinctiveness[index])
                for index, (bundle, breakdown, missing, dims) in enumerate(prepared)
            ]

            self.logger.debug(
                "Batch aggregated",
                batch_size=len(candidates),
                low_confidence=sum(1 for c in candidates if c.confidence < 1.0)
            )
            return candidates

        except Exception as e:
            self.logger.error("Batch aggregation failed, scoring names independently", error=str(e))
            return [self._safe_single(bundle) for bundle in bundles]

    def normalize(self, dimension_results: DimensionResults) -> Tuple[ScoreBreakdown, List[str]]:
        """
        Merge partial analyzer results into a fully-populated breakdown.

        Fields reported by several analyzers are averaged; unknown keys and
        non-numeric values are ignored; values are clamped to [0, 1].

        Returns:
            (breakdown, names of fields that fell back to the neutral default)
        """
        collected: Dict[str, List[float]] = {name: [] for name in SCORE_FIELDS}

        for partial in self._iter_partials(dimension_results):
            for field_name, raw_value in partial.items():
                if field_name not in collected:
                    continue
                value = self._coerce(raw_value)
                if value is not None:
                    collected[field_name].append(value)

        values: Dict[str, float] = {}
        missing: List[str] = []
        for field_name, samples in collected.items():
            if samples:
                values[field_name] = round(sum(samples) / len(samples), 4)
            else:
                values[field_name] = NEUTRAL_SCORE
                missing.append(field_name)

        return ScoreBreakdown(**values), missing

    @staticmethod
    def _iter_partials(dimension_results: DimensionResults) -> List[Mapping[str, Any]]:
        if not dimension_results:
            return []
        values = list(dimension_results.values())
        # A flat partial maps field names straight to numbers
        if all(not isinstance(value, Mapping) for value in values):
            return [dimension_results]
        return [value for value in values if isinstance(value, Mapping)]

    @staticmethod
    def _coerce(raw_value: Any) -> Optional[float]:
        if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
            return None
        value = float(raw_value)
        if math.isnan(value) or math.isinf(value):
            return None
        return min(max(value, 0.0), 1.0)

    def calculate_overall_score(self, breakdown: ScoreBreakdown) -> float:
        """Fixed convex combination of the breakdown fields."""
        scores = breakdown.as_dict()
        total = sum(scores[name] * weight for name, weight in self.field_weights.items())
        return round(min(max(total, 0.0), 1.0), 4)

    @staticmethod
    def _dimensions(breakdown: ScoreBreakdown) -> Dict[str, float]:
        b = breakdown
        dimensions = {
            'sound': (b.phonetic_flow + b.pronunciation + b.memorability) / 3,
            'meaning': (b.semantic_coherence + b.cultural_appeal + b.phonetic_semantic_alignment) / 3,
            'creativity': b.creativity,
            'appeal': (b.market_appeal + b.cultural_appeal) / 2,
            'fit': (b.appropriateness + b.genre_optimization) / 2,
        }
        return {name: round(value, 4) for name, value in dimensions.items()}

    def calculate_balance(self, dimension_values: Sequence[float]) -> float:
        """1 - scaled population variance of the dimensions, in [0, 1]."""
        return round(1.0 - min(1.0, variance(dimension_values) * self.BALANCE_SCALE), 4)

    @staticmethod
    def calculate_magnitude(dimension_values: Sequence[float]) -> float:
        if not dimension_values:
            return 0.0
        norm = math.sqrt(sum(value * value for value in dimension_values))
        return round(min(1.0, norm / math.sqrt(len(dimension_values))), 4)

    def _batch_distinctiveness(self, vectors: List[List[float]]) -> List[float]:
        """
        Mean (1 - cosine similarity) against every other vector in the batch.
        O(n^2) in batch size.
        """
        if len(vectors) < 2:
            return [self.SINGLE_BATCH_DISTINCTIVENESS] * len(vectors)

        scores = []
        for i, vector in enumerate(vectors):
            distances = [
                1.0 - cosine_similarity(vector, other)
                for j, other in enumerate(vectors) if j != i
            ]
            scores.append(round(min(max(sum(distances) / len(distances), 0.0), 1.0), 4))
        return scores

    def _build_candidate(
        self,
        bundle: AnalysisBundle,
        breakdown: ScoreBreakdown,
        missing: List[str],
        dimensions: Dict[str, float],
        distinctiveness: float
    ) -> ScoredCandidate:
        dimension_values = [dimensions[name] for name in DIMENSION_NAMES]
        vector = QualityVector(
            dimensions=dimensions,
            balance=self.calculate_balance(dimension_values),
            magnitude=self.calculate_magnitude(dimension_values),
            distinctiveness=distinctiveness,
        )
        confidence = max(self.CONFIDENCE_FLOOR, 1.0 - len(missing) / len(SCORE_FIELDS))

        return ScoredCandidate(
            name=bundle.name,
            context=bundle.context,
            breakdown=breakdown,
            vector=vector,
            overall_score=self.calculate_overall_score(breakdown),
            confidence=round(confidence, 4),
            analysis_time_ms=max(0.0, bundle.analysis_time_ms),
            missing_fields=missing,
            failed_analyzers=list(bundle.failed_analyzers),
        )

    def _safe_single(self, bundle: AnalysisBundle) -> ScoredCandidate:
        """Score one bundle without peers, dropping to all-neutral if needed."""
        try:
            breakdown, missing = self.normalize(bundle.dimension_results)
        except Exception as e:
            self.logger.warning("Normalization failed, using neutral scores", name=bundle.name, error=str(e))
            breakdown, missing = ScoreBreakdown(), list(SCORE_FIELDS)
        return self._build_candidate(
            bundle, breakdown, missing, self._dimensions(breakdown), self.SINGLE_BATCH_DISTINCTIVENESS
        )


def determine_quality_tier(score: float) -> str:
    """Map an overall score to a named quality tier."""
    if score >= 0.85:
        return "excellent"
    elif score >= 0.75:
        return "very_good"
    elif score >= 0.60:
        return "good"
    elif score >= 0.45:
        return "fair"
    else:
        return "poor"
