"""
API Module

HTTP clients for the word association backends, sharing request handling,
rate limiting and error translation.
"""

from .base_client import BaseAPIClient
from .rate_limiter import UnifiedRateLimiter
from .datamuse_client import DatamuseClient, DatamuseWord
from .conceptnet_client import ConceptNetClient, ConceptRelation, concept_label

__all__ = [
    "BaseAPIClient",
    "UnifiedRateLimiter",
    "DatamuseClient",
    "DatamuseWord",
    "ConceptNetClient",
    "ConceptRelation",
    "concept_label",
]
