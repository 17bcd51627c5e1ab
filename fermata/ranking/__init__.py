"""
Comparative Ranking for Fermata

- CompetitiveAnalyzer: percentile and differentiation against peers
- RankingEngine: mode-weighted final scores
- DiversityOptimizer: greedy quality/diversity selection
- PositioningAnalyzer: creativity x market clusters and gaps
- ExplanationGenerator: strengths, market position, explanations
- ComparativeRankingEngine: orchestrates the ranking stage
"""

from .competitive_analyzer import CompetitiveAnalyzer
from .ranking_engine import RankingEngine, RankingEntry
from .diversity_optimizer import DiversityOptimizer, diversity_index
from .positioning_analyzer import PositioningAnalyzer, quadrant_label
from .explanation_generator import ExplanationGenerator
from .comparative_ranking_engine import ComparativeRankingEngine, RankingResult

__all__ = [
    'CompetitiveAnalyzer',
    'RankingEngine',
    'RankingEntry',
    'DiversityOptimizer',
    'diversity_index',
    'PositioningAnalyzer',
    'quadrant_label',
    'ExplanationGenerator',
    'ComparativeRankingEngine',
    'RankingResult',
]
