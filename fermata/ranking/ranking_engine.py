"""
Ranking Engine for Fermata

Mode-weighted final scores and the stable quality ordering of the
qualified batch.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from ..analytics.statistics import mean
from ..models import (
    CompetitivePosition,
    PreferredLength,
    RankingMode,
    RiskTolerance,
    ScoredCandidate,
    UserPreferences,
)

logger = structlog.get_logger(__name__)

COMPONENTS = ('quality', 'competitiveness', 'creativity', 'marketability', 'contextual_fit', 'uniqueness')
PREFERENCE_RULE_BOUND = 0.05


@dataclass
class RankingEntry:
    """A candidate with its competitive position and mode-weighted score."""
    candidate: ScoredCandidate
    position: CompetitivePosition
    final_score: float
    components: Dict[str, float]


def word_count(name: str) -> int:
    return len(name.split())


def matches_length(name: str, preferred: PreferredLength) -> bool:
    count = word_count(name)
    if preferred == PreferredLength.SHORT:
        return count <= 2
    if preferred == PreferredLength.MEDIUM:
        return count == 3
    return count >= 4


class RankingEngine:
    """
    Weighted ranking.

    Responsibilities:
    - Component scores per candidate
    - Mode weight vectors
    - Bounded user-preference corrections
    - Stable descending sort
    """

    def __init__(self):
        self.mode_weights = self._initialize_mode_weights()
        self.logger = logger.bind(component="RankingEngine")

    def _initialize_mode_weights(self) -> Dict[RankingMode, Dict[str, float]]:
        return {
            RankingMode.COMPREHENSIVE: {
                'quality': 0.35, 'competitiveness': 0.15, 'creativity': 0.125,
                'marketability': 0.125, 'contextual_fit': 0.125, 'uniqueness': 0.125,
            },
            RankingMode.CONTEXTUAL: {
                'quality': 0.25, 'competitiveness': 0.10, 'creativity': 0.10,
                'marketability': 0.10, 'contextual_fit': 0.35, 'uniqueness': 0.10,
            },
            RankingMode.MARKET_FOCUSED: {
                'quality': 0.25, 'competitiveness': 0.15, 'creativity': 0.05,
                'marketability': 0.40, 'contextual_fit': 0.10, 'uniqueness': 0.05,
            },
            RankingMode.CREATIVE_FIRST: {
                'quality': 0.15, 'competitiveness': 0.10, 'creativity': 0.35,
                'marketability': 0.05, 'contextual_fit': 0.05, 'uniqueness': 0.30,
            },
            RankingMode.BALANCED: {
                'quality': 0.20, 'competitiveness': 0.15, 'creativity': 0.1625,
                'marketability': 0.1625, 'contextual_fit': 0.1625, 'uniqueness': 0.1625,
            },
        }

    @staticmethod
    def component_scores(candidate: ScoredCandidate, position: CompetitivePosition) -> Dict[str, float]:
        b = candidate.breakdown
        return {
            'quality': candidate.overall_score,
            'competitiveness': position.percentile,
            'creativity': b.creativity,
            'marketability': mean([b.market_appeal, b.memorability]),
            'contextual_fit': mean([b.appropriateness, b.genre_optimization]),
            'uniqueness': mean([b.uniqueness, candidate.vector.distinctiveness]),
        }

    @staticmethod
    def preference_adjustment(candidate: ScoredCandidate, preferences: Optional[UserPreferences]) -> float:
        """Sum of the matching preference rules, each bounded to +/-0.05."""
        if preferences is None:
            return 0.0

        b = candidate.breakdown
        rules = []
        if preferences.risk_tolerance == RiskTolerance.CONSERVATIVE:
            if b.uniqueness > 0.85:
                rules.append(-0.05)
            if b.pronunciation < 0.6:
                rules.append(-0.03)
        elif preferences.risk_tolerance == RiskTolerance.ADVENTUROUS and b.creativity > 0.8:
            rules.append(0.05)

        if preferences.preferred_length is not None and matches_length(candidate.name, preferences.preferred_length):
            rules.append(0.03)

        return sum(max(-PREFERENCE_RULE_BOUND, min(PREFERENCE_RULE_BOUND, rule)) for rule in rules)

    def final_score(
        self,
        candidate: ScoredCandidate,
        position: CompetitivePosition,
        mode: RankingMode,
        preferences: Optional[UserPreferences] = None
    ) -> RankingEntry:
        weights = self.mode_weights[mode]
        components = self.component_scores(candidate, position)
        score = sum(components[name] * weights[name] for name in COMPONENTS)
        score += self.preference_adjustment(candidate, preferences)

        return RankingEntry(
            candidate=candidate,
            position=position,
            final_score=round(max(0.0, min(1.0, score)), 4),
            components={name: round(value, 4) for name, value in components.items()},
        )

    def rank(
        self,
        candidates: Sequence[ScoredCandidate],
        positions: Sequence[CompetitivePosition],
        mode: RankingMode,
        preferences: Optional[UserPreferences] = None
    ) -> List[RankingEntry]:
        """
        Score and order candidates by final score, descending. The sort is
        stable, so ties keep input order.
        """
        entries = [
            self.final_score(candidate, position, mode, preferences)
            for candidate, position in zip(candidates, positions)
        ]
        entries.sort(key=lambda entry: entry.final_score, reverse=True)

        self.logger.debug(
            "Candidates ranked",
            mode=mode.value,
            count=len(entries),
            top_score=entries[0].final_score if entries else None
        )
        return entries

    @staticmethod
    def rank_by_overall(
        candidates: Sequence[ScoredCandidate],
        positions: Sequence[CompetitivePosition]
    ) -> List[RankingEntry]:
        """Degraded ordering by raw overall score."""
        entries = [
            RankingEntry(
                candidate=candidate,
                position=position,
                final_score=candidate.overall_score,
                components={'quality': candidate.overall_score},
            )
            for candidate, position in zip(candidates, positions)
        ]
        entries.sort(key=lambda entry: entry.final_score, reverse=True)
        return entries
