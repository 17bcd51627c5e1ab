"""
Competitive Analyzer for Fermata

Pairwise comparison of every qualified candidate against its peers:
percentile position on overall score and per-dimension differentiation
against the peer average. O(n^2) in batch size.
"""

from typing import List, Sequence

import structlog

from ..models import CompetitivePosition, DifferentiationFactor, ScoredCandidate

logger = structlog.get_logger(__name__)

TRACKED_FIELDS = (
    'phonetic_flow', 'semantic_coherence', 'creativity', 'memorability',
    'market_appeal', 'appropriateness', 'uniqueness', 'pronunciation',
)

STRONG_GAP = 0.25
MODERATE_GAP = 0.15
REPORTED_GAP = 0.10


class CompetitiveAnalyzer:
    """Positions each candidate relative to the rest of the batch."""

    def __init__(self, tracked_fields: Sequence[str] = TRACKED_FIELDS):
        self.tracked_fields = tuple(tracked_fields)
        self.logger = logger.bind(component="CompetitiveAnalyzer")

    def analyze(self, candidates: Sequence[ScoredCandidate]) -> List[CompetitivePosition]:
        """One CompetitivePosition per candidate, in input order."""
        positions = [self.position_for(index, candidates) for index in range(len(candidates))]
        self.logger.debug("Competitive analysis complete", candidates=len(candidates))
        return positions

    def position_for(self, index: int, candidates: Sequence[ScoredCandidate]) -> CompetitivePosition:
        candidate = candidates[index]
        peers = [other for i, other in enumerate(candidates) if i != index]
        if not peers:
            return CompetitivePosition(percentile=1.0)

        outperforms = [p.name for p in peers if candidate.overall_score > p.overall_score]
        underperforms = [p.name for p in peers if candidate.overall_score < p.overall_score]

        return CompetitivePosition(
            percentile=round(len(outperforms) / len(peers), 4),
            outperforms=outperforms,
            underperforms=underperforms,
            differentiation_factors=self.differentiation_factors(candidate, peers),
        )

    def differentiation_factors(
        self,
        candidate: ScoredCandidate,
        peers: Sequence[ScoredCandidate]
    ) -> List[DifferentiationFactor]:
        """Dimensions where the candidate sits more than 0.1 from the peer average."""
        factors = []
        for field_name in self.tracked_fields:
            peer_average = sum(getattr(p.breakdown, field_name) for p in peers) / len(peers)
            gap = round(getattr(candidate.breakdown, field_name) - peer_average, 4)
            magnitude = abs(gap)
            if magnitude <= REPORTED_GAP:
                continue
            if magnitude > STRONG_GAP:
                strength = 'strong'
            elif magnitude > MODERATE_GAP:
                strength = 'moderate'
            else:
                strength = 'weak'
            factors.append(DifferentiationFactor(
                dimension=field_name,
                gap=gap,
                strength=strength,
                direction='advantage' if gap > 0 else 'weakness',
            ))
        return sorted(factors, key=lambda f: abs(f.gap), reverse=True)
