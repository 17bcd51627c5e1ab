"""
Scoring Components for Fermata

- DimensionAggregator: turns partial analyzer output into ScoredCandidates
- CandidateScorer: concurrent, time-bounded analyzer fan-out for a batch
"""

from .dimension_aggregator import (
    AnalysisBundle,
    DimensionAggregator,
    determine_quality_tier,
)
from .candidate_scorer import CandidateScorer

__all__ = [
    'AnalysisBundle',
    'DimensionAggregator',
    'determine_quality_tier',
    'CandidateScorer',
]
