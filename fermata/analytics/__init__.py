"""
Analytics for Fermata

- statistics: degenerate-safe numeric helpers
- BatchAnalytics: batch-level report for ranking responses
"""

from .statistics import (
    correlation_matrix,
    cosine_similarity,
    distribution_stats,
    pearson_correlation,
)
from .batch_analytics import BatchAnalytics

__all__ = [
    'correlation_matrix',
    'cosine_similarity',
    'distribution_stats',
    'pearson_correlation',
    'BatchAnalytics',
]
