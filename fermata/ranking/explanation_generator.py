"""
Explanation Generator for Fermata

Per-name narrative for the ranked list: strength profile, improvement
opportunities, market position with risk assessment, a confidence score,
and a one-sentence explanation.
"""

from typing import Dict, List

import structlog

from ..models import MarketPosition, RiskFactor, ScoredCandidate
from ..scoring import determine_quality_tier
from .ranking_engine import RankingEntry

logger = structlog.get_logger(__name__)

PRIMARY_STRENGTH = 0.75
SECONDARY_STRENGTH = 0.65
IMPROVEMENT_CEILING = 0.60
MAX_AREAS = 3

SEVERITY_LEVELS = {'low': 1, 'medium': 2, 'high': 3}


def _profile_scores(candidate: ScoredCandidate) -> Dict[str, float]:
    b = candidate.breakdown
    return {
        'Pronunciation': b.pronunciation,
        'Phonetic Flow': b.phonetic_flow,
        'Semantic Coherence': b.semantic_coherence,
        'Memorability': b.memorability,
        'Cultural Appeal': b.cultural_appeal,
        'Creativity': b.creativity,
        'Uniqueness': b.uniqueness,
        'Market Appeal': b.market_appeal,
        'Genre Fit': b.genre_optimization,
        'Balance': candidate.vector.balance,
        'Distinctiveness': candidate.vector.distinctiveness,
    }


class ExplanationGenerator:
    """Builds the human-facing parts of a RankedName."""

    def __init__(self):
        self.logger = logger.bind(component="ExplanationGenerator")

    def strength_areas(self, candidate: ScoredCandidate) -> List[str]:
        """Up to three primary (>= .75) then up to three secondary (.65-.75) strengths."""
        ordered = sorted(_profile_scores(candidate).items(), key=lambda item: item[1], reverse=True)
        primary = [label for label, score in ordered if score >= PRIMARY_STRENGTH][:MAX_AREAS]
        secondary = [
            label for label, score in ordered
            if SECONDARY_STRENGTH <= score < PRIMARY_STRENGTH
        ][:MAX_AREAS]
        return primary + secondary

    def improvement_opportunities(self, candidate: ScoredCandidate) -> List[str]:
        """Up to three weakest areas below 0.6, weakest first."""
        ordered = sorted(_profile_scores(candidate).items(), key=lambda item: item[1])
        return [label for label, score in ordered if score < IMPROVEMENT_CEILING][:MAX_AREAS]

    @staticmethod
    def market_segment(overall_score: float) -> str:
        if overall_score >= 0.80:
            return 'premium'
        elif overall_score >= 0.65:
            return 'mainstream'
        elif overall_score >= 0.50:
            return 'budget'
        return 'experimental'

    @staticmethod
    def risk_factors(candidate: ScoredCandidate) -> List[RiskFactor]:
        b = candidate.breakdown
        factors = []
        if b.pronunciation < 0.5:
            factors.append(RiskFactor(
                factor='pronunciation_difficulty',
                severity='high' if b.pronunciation < 0.3 else 'medium',
                description='Audiences may struggle to say the name',
            ))
        if b.market_appeal < 0.4:
            factors.append(RiskFactor(
                factor='limited_market_appeal',
                severity='high' if b.market_appeal < 0.2 else 'medium',
                description='Commercial pull is weak',
            ))
        if b.cultural_appeal < 0.5:
            factors.append(RiskFactor(
                factor='cultural_sensitivity',
                severity='high' if b.cultural_appeal < 0.3 else 'medium',
                description='May not translate well across audiences',
            ))
        if b.uniqueness > 0.9:
            factors.append(RiskFactor(
                factor='polarizing_uniqueness',
                severity='medium',
                description='Very unusual names tend to polarize',
            ))
        return factors

    @staticmethod
    def risk_level(factors: List[RiskFactor]) -> str:
        if not factors:
            return 'low'
        average = sum(SEVERITY_LEVELS[f.severity] for f in factors) / len(factors)
        if average >= 2.5:
            return 'high'
        elif average >= 1.5:
            return 'medium'
        return 'low'

    def market_position(self, candidate: ScoredCandidate) -> MarketPosition:
        b = candidate.breakdown
        factors = self.risk_factors(candidate)
        if factors:
            self.logger.debug(
                "Risk factors found",
                name=candidate.name,
                risks=[f.factor for f in factors]
            )
        return MarketPosition(
            segment=self.market_segment(candidate.overall_score),
            appeal=b.market_appeal,
            viability=round((candidate.overall_score + b.market_appeal + b.memorability) / 3, 4),
            risk_level=self.risk_level(factors),
            risk_factors=factors,
        )

    @staticmethod
    def confidence_score(candidate: ScoredCandidate) -> float:
        return round(min(1.0, candidate.confidence * 0.8 + candidate.vector.balance * 0.2), 4)

    def explanation(self, entry: RankingEntry, rank: int, strengths: List[str]) -> str:
        candidate = entry.candidate
        tier = determine_quality_tier(candidate.overall_score).replace('_', ' ')
        lead = ', '.join(s.lower() for s in strengths[:2]) if strengths else 'balanced scores'
        return (
            f"Ranked #{rank}: {tier} quality ({candidate.overall_score:.2f}) led by {lead}, "
            f"ahead of {entry.position.percentile:.0%} of qualified peers."
        )
