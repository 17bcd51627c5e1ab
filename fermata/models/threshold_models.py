"""
Threshold Models for Fermata

Pydantic models for the quality gate: per-request threshold configuration,
rejection explanations, gate results, and adaptive learning records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .context_models import NameContext
from .scoring_models import ScoredCandidate

MIN_THRESHOLD = 0.20
MAX_THRESHOLD = 0.95


class ThresholdMode(str, Enum):
    """Named gate strictness profiles."""
    STRICT = "strict"
    MODERATE = "moderate"
    LENIENT = "lenient"
    CUSTOM = "custom"
    ADAPTIVE = "adaptive"


class Severity(str, Enum):
    """How serious a single rejection reason is."""
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class FallbackAction(str, Enum):
    """Escalation actions available to the emergency fallback."""
    LOWER_THRESHOLD = "lower_threshold"
    EXPAND_CRITERIA = "expand_criteria"


class DimensionalMinimums(BaseModel):
    """Per-dimension score floors a candidate must meet."""
    phonetic_flow: float = Field(..., ge=0, le=1)
    semantic_coherence: float = Field(..., ge=0, le=1)
    creativity: float = Field(..., ge=0, le=1)
    memorability: float = Field(..., ge=0, le=1)
    market_appeal: float = Field(..., ge=0, le=1)
    appropriateness: float = Field(..., ge=0, le=1)
    uniqueness: float = Field(..., ge=0, le=1)
    pronunciation: float = Field(..., ge=0, le=1)

    class Config:
        frozen = True

    def as_dict(self) -> Dict[str, float]:
        return self.model_dump()

    def scaled(self, factor: float, cap: float = 0.90) -> "DimensionalMinimums":
        """Return a copy with every minimum multiplied by factor and capped."""
        return DimensionalMinimums(**{
            field: round(max(0.0, min(cap, value * factor)), 4)
            for field, value in self.as_dict().items()
        })


class ExclusionCriteria(BaseModel):
    """Hard exclusion rules applied in addition to the score floors."""
    max_pronunciation_difficulty: float = Field(
        0.5, ge=0, le=1,
        description="Highest tolerated pronunciation difficulty (1 - pronunciation)."
    )
    min_memorability: float = Field(0.6, ge=0, le=1, description="Memorability floor.")
    cultural_appeal_min: float = Field(0.5, ge=0, le=1, description="Cultural appeal floor.")
    min_length: int = Field(1, ge=1, description="Shortest allowed name, in characters.")
    max_length: int = Field(50, ge=1, description="Longest allowed name, in characters.")

    class Config:
        frozen = True


class FallbackStep(BaseModel):
    """One escalation step of the emergency fallback."""
    action: FallbackAction = Field(..., description="What the step does.")
    threshold_adjustment: float = Field(
        -0.10,
        description="Change applied to the overall threshold by lower_threshold."
    )
    criteria_relaxation: float = Field(
        0.90, gt=0, le=1,
        description="Factor applied to dimensional minimums by expand_criteria."
    )
    balance_relaxation: float = Field(
        0.10, ge=0, le=1,
        description="Amount subtracted from the balance floor by expand_criteria."
    )


def default_escalation_steps() -> List[FallbackStep]:
    """Lower once, relax criteria once, then keep lowering toward the floor."""
    steps = [
        FallbackStep(action=FallbackAction.LOWER_THRESHOLD),
        FallbackStep(action=FallbackAction.EXPAND_CRITERIA),
    ]
    steps.extend(FallbackStep(action=FallbackAction.LOWER_THRESHOLD) for _ in range(6))
    return steps


class EmergencyFallbackSettings(BaseModel):
    """Bounded threshold relaxation used when too few names qualify."""
    enabled: bool = Field(True, description="Whether the fallback may run at all.")
    minimum_results: int = Field(1, ge=0, description="Qualified count the fallback aims for.")
    floor_threshold: float = Field(
        0.30, ge=0, le=1,
        description="Hard floor the threshold is never lowered past."
    )
    escalation_steps: List[FallbackStep] = Field(default_factory=default_escalation_steps)
    quality_warnings: bool = Field(True, description="Log a warning whenever the fallback runs.")


class ThresholdConfig(BaseModel):
    """
    Fully resolved gate configuration for one request. Built per request
    and consumed once by the gate.
    """
    mode: ThresholdMode
    context: NameContext
    base_threshold: float = Field(..., ge=0, le=1, description="Mode-based threshold before offsets.")
    overall_threshold: float = Field(
        ..., ge=MIN_THRESHOLD, le=MAX_THRESHOLD,
        description="Final overall-score threshold after offsets and clamping."
    )
    dimensional_minimums: DimensionalMinimums
    exclusion_criteria: ExclusionCriteria
    balance_requirement: float = Field(0.40, ge=0, le=1, description="Quality vector balance floor.")
    emergency_fallback: EmergencyFallbackSettings = Field(default_factory=EmergencyFallbackSettings)
    applied_offsets: Dict[str, float] = Field(
        default_factory=dict,
        description="Contextual offsets that contributed to the threshold."
    )


class RejectionReason(BaseModel):
    """A single failed gate check."""
    category: str = Field(..., description="Check family: overall, dimensional, balance, exclusion, system.")
    criterion: str = Field(..., description="The specific rule or dimension that failed.")
    actual: float = Field(..., description="Observed value.")
    required: float = Field(..., description="Value the rule required.")
    severity: Severity
    description: str = Field("", description="Human-readable explanation.")


class RejectedName(BaseModel):
    """A candidate that failed the gate, with every reason it failed."""
    name: str
    score: float = Field(..., ge=0, le=1, description="The candidate's overall score.")
    reasons: List[RejectionReason] = Field(..., min_length=1)
    improvement_potential: float = Field(0.0, ge=0, le=1)
    near_miss_factors: List[str] = Field(default_factory=list)


class QualityGateResult(BaseModel):
    """Outcome of running a batch through the quality gate."""
    passed: bool = Field(..., description="True when at least one candidate qualified.")
    qualified: List[ScoredCandidate] = Field(default_factory=list)
    rejected: List[RejectedName] = Field(default_factory=list)
    threshold_used: float = Field(..., ge=MIN_THRESHOLD, le=MAX_THRESHOLD)
    initial_threshold: float = Field(..., ge=MIN_THRESHOLD, le=MAX_THRESHOLD)
    config: Optional[ThresholdConfig] = None
    fallback_applied: bool = False
    fallback_steps: List[str] = Field(default_factory=list)
    gate_analysis: Dict[str, Any] = Field(default_factory=dict)
    adaptations: List[Dict[str, Any]] = Field(default_factory=list)
    recommendations: List[Dict[str, Any]] = Field(default_factory=list)


class LearningOutcome(BaseModel):
    """Observed outcome of applying a threshold to one batch."""
    user_satisfaction: float = Field(0.7, ge=0, le=1)
    quality_improvement: float = Field(0.0, ge=-1, le=1)
    quantity_impact: float = Field(0.0, ge=0, le=1)
    usage_pattern: str = Field("unknown")
    success_metrics: Dict[str, float] = Field(default_factory=dict)


class LearningRecord(BaseModel):
    """Append-only record used by adaptive threshold learning."""
    context_key: str
    threshold_used: float = Field(..., ge=0, le=1)
    outcome: LearningOutcome
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
