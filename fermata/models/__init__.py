"""
Data Models for Fermata

Pydantic models shared by the scoring, gate and ranking stages.
"""

from .context_models import (
    NameContext,
    NameType,
    TargetAudience,
    MarketContext,
    Urgency,
    QualityPriority,
    RiskTolerance,
    PreferredLength,
    UserPreferences,
)
from .scoring_models import (
    NEUTRAL_SCORE,
    SCORE_FIELDS,
    DIMENSION_NAMES,
    ScoreBreakdown,
    QualityVector,
    ScoredCandidate,
)
from .threshold_models import (
    MIN_THRESHOLD,
    MAX_THRESHOLD,
    ThresholdMode,
    Severity,
    FallbackAction,
    FallbackStep,
    DimensionalMinimums,
    ExclusionCriteria,
    EmergencyFallbackSettings,
    ThresholdConfig,
    RejectionReason,
    RejectedName,
    QualityGateResult,
    LearningOutcome,
    LearningRecord,
)
from .ranking_models import (
    RankingMode,
    DifferentiationFactor,
    CompetitivePosition,
    RiskFactor,
    MarketPosition,
    RankedName,
    RankingRequest,
    RankingResponse,
)

__all__ = [
    'NameContext',
    'NameType',
    'TargetAudience',
    'MarketContext',
    'Urgency',
    'QualityPriority',
    'RiskTolerance',
    'PreferredLength',
    'UserPreferences',
    'NEUTRAL_SCORE',
    'SCORE_FIELDS',
    'DIMENSION_NAMES',
    'ScoreBreakdown',
    'QualityVector',
    'ScoredCandidate',
    'MIN_THRESHOLD',
    'MAX_THRESHOLD',
    'ThresholdMode',
    'Severity',
    'FallbackAction',
    'FallbackStep',
    'DimensionalMinimums',
    'ExclusionCriteria',
    'EmergencyFallbackSettings',
    'ThresholdConfig',
    'RejectionReason',
    'RejectedName',
    'QualityGateResult',
    'LearningOutcome',
    'LearningRecord',
    'RankingMode',
    'DifferentiationFactor',
    'CompetitivePosition',
    'RiskFactor',
    'MarketPosition',
    'RankedName',
    'RankingRequest',
    'RankingResponse',
]
