"""
Batch Analytics for Fermata

Batch-level reporting attached to every ranking response: score
distribution, dimension correlations, cluster summaries and the
diversity of the final selection. Every summary degrades to zeros or
empty structures for degenerate batches and never raises.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog

from ..models import RankedName, ScoredCandidate
from .statistics import correlation_matrix, distribution_stats, mean

logger = structlog.get_logger(__name__)

CORRELATION_FIELDS = ('phonetic_flow', 'semantic_coherence', 'creativity', 'memorability', 'market_appeal')


class BatchAnalytics:
    """Summaries over scored, qualified and ranked candidates."""

    def __init__(self, correlation_fields: Sequence[str] = CORRELATION_FIELDS):
        self.correlation_fields = tuple(correlation_fields)
        self.logger = logger.bind(component="BatchAnalytics")

    def summarize(
        self,
        all_candidates: Sequence[ScoredCandidate],
        qualified: Sequence[ScoredCandidate],
        ranked: Sequence[RankedName],
        clusters: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Build the analytics block of a ranking response.

        Args:
            all_candidates: Every scored candidate in the batch
            qualified: Candidates that passed the gate
            ranked: Final ranked names
            clusters: Positioning clusters over the qualified names

        Returns:
            Analytics dictionary
        """
        try:
            return {
                "distribution": distribution_stats([c.overall_score for c in all_candidates]),
                "qualified_distribution": distribution_stats([c.overall_score for c in qualified]),
                "correlation": self.correlations(all_candidates),
                "dimension_averages": self.dimension_averages(all_candidates),
                "cluster_summary": self.cluster_summary(clusters or []),
                "confidence": {
                    "mean": round(mean([c.confidence for c in all_candidates]), 4),
                    "low_confidence": [c.name for c in all_candidates if c.confidence < 0.5],
                },
                "ranked_average_score": round(mean([r.overall_score for r in ranked]), 4),
                "counts": {
                    "total": len(all_candidates),
                    "qualified": len(qualified),
                    "ranked": len(ranked),
                },
            }
        except Exception as e:
            self.logger.warning("Batch analytics failed, returning empty summary", error=str(e))
            return self.empty_summary()

    def empty_summary(self) -> Dict[str, Any]:
        return {
            "distribution": distribution_stats([]),
            "qualified_distribution": distribution_stats([]),
            "correlation": {},
            "dimension_averages": {},
            "cluster_summary": self.cluster_summary([]),
            "confidence": {"mean": 0.0, "low_confidence": []},
            "ranked_average_score": 0.0,
            "counts": {"total": 0, "qualified": 0, "ranked": 0},
        }

    def correlations(self, candidates: Sequence[ScoredCandidate]) -> Dict[str, Dict[str, float]]:
        if len(candidates) < 2:
            return {}
        return correlation_matrix({
            field_name: [getattr(c.breakdown, field_name) for c in candidates]
            for field_name in self.correlation_fields
        })

    @staticmethod
    def dimension_averages(candidates: Sequence[ScoredCandidate]) -> Dict[str, float]:
        if not candidates:
            return {}
        names = candidates[0].vector.dimensions.keys()
        return {
            name: round(mean([c.vector.dimensions.get(name, 0.0) for c in candidates]), 4)
            for name in names
        }

    @staticmethod
    def cluster_summary(clusters: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        if not clusters:
            return {"count": 0, "largest": None, "quadrants": {}}
        largest = max(clusters, key=lambda c: c["size"])
        quadrants: Dict[str, int] = {}
        for cluster in clusters:
            quadrants[cluster["quadrant"]] = quadrants.get(cluster["quadrant"], 0) + cluster["size"]
        return {"count": len(clusters), "largest": largest["id"], "quadrants": quadrants}
