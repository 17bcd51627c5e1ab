"""
Services Module

Caching, word association lookups and the request-level ranking service.
"""

from .cache_manager import CacheManager
from .word_association_service import WordAssociationService
from .quality_ranking_service import (
    QualityRankingService,
    get_quality_ranking_service,
    close_quality_ranking_service,
)

__all__ = [
    "CacheManager",
    "WordAssociationService",
    "QualityRankingService",
    "get_quality_ranking_service",
    "close_quality_ranking_service",
]
