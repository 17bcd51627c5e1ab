"""
Quality Gate for Fermata

- ThresholdCalculator: mode, context and preference driven thresholds
- CandidateFilter: qualified/rejected partition with graded reasons
- EmergencyFallback: bounded relaxation when too few names qualify
- AdaptiveThresholdLearner: context-keyed threshold learning
- QualityGateAnalyzer: post-gate diagnostics
- QualityThresholdManager: orchestrates the gate
"""

from .threshold_calculator import ThresholdCalculator
from .candidate_filter import CandidateFilter, GateRequirements
from .emergency_fallback import EmergencyFallback, FallbackOutcome
from .adaptive_learning import (
    AdaptiveThresholdLearner,
    DiskLearningHistoryStore,
    InMemoryLearningHistoryStore,
    LearningHistoryStore,
)
from .gate_analyzer import QualityGateAnalyzer
from .quality_threshold_manager import QualityThresholdManager

__all__ = [
    'ThresholdCalculator',
    'CandidateFilter',
    'GateRequirements',
    'EmergencyFallback',
    'FallbackOutcome',
    'AdaptiveThresholdLearner',
    'DiskLearningHistoryStore',
    'InMemoryLearningHistoryStore',
    'LearningHistoryStore',
    'QualityGateAnalyzer',
    'QualityThresholdManager',
]
