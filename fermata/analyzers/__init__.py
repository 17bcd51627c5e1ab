"""
Reference Analyzers for Fermata

Heuristic analyzer collaborators that feed the Dimension Aggregator:
- PhoneticAnalyzer: flow, pronunciation, memorability, uniqueness
- SemanticAnalyzer: coherence, creativity, cultural appeal, appropriateness, genre fit
- MusicalityAnalyzer: market appeal, phonetic/semantic alignment
"""

from .base_analyzer import BaseAnalyzer
from .phonetic_analyzer import PhoneticAnalyzer
from .semantic_analyzer import SemanticAnalyzer
from .musicality_analyzer import MusicalityAnalyzer

__all__ = [
    'BaseAnalyzer',
    'PhoneticAnalyzer',
    'SemanticAnalyzer',
    'MusicalityAnalyzer',
    'default_analyzers',
]


def default_analyzers(word_association_service=None, lookup_budget_seconds: float = 1.5):
    """The standard analyzer set covering every breakdown field."""
    return [
        PhoneticAnalyzer(),
        SemanticAnalyzer(
            word_association_service=word_association_service,
            lookup_budget_seconds=lookup_budget_seconds
        ),
        MusicalityAnalyzer(),
    ]
