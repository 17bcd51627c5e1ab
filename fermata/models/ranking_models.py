"""
Ranking Models for Fermata

Pydantic models for the comparative ranking stage, the request interface
to the core, and the response returned to callers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .context_models import NameContext, UserPreferences
from .scoring_models import QualityVector
from .threshold_models import MAX_THRESHOLD, MIN_THRESHOLD, RejectedName, ThresholdMode


class RankingMode(str, Enum):
    """Named weighting profiles for the final rank score."""
    COMPREHENSIVE = "comprehensive"
    CONTEXTUAL = "contextual"
    MARKET_FOCUSED = "market-focused"
    CREATIVE_FIRST = "creative-first"
    BALANCED = "balanced"


class DifferentiationFactor(BaseModel):
    """A dimension on which a candidate stands apart from its peers."""
    dimension: str
    gap: float = Field(..., description="Candidate score minus the peer average.")
    strength: str = Field(..., description="'strong', 'moderate' or 'weak'.")
    direction: str = Field(..., description="'advantage' or 'weakness'.")


class CompetitivePosition(BaseModel):
    """Where a candidate sits relative to the rest of the qualified batch."""
    percentile: float = Field(..., ge=0, le=1, description="Fraction of peers strictly outperformed.")
    outperforms: List[str] = Field(default_factory=list)
    underperforms: List[str] = Field(default_factory=list)
    differentiation_factors: List[DifferentiationFactor] = Field(default_factory=list)


class RiskFactor(BaseModel):
    """A single market risk attached to a name."""
    factor: str
    severity: str = Field(..., description="'low', 'medium' or 'high'.")
    description: str = ""


class MarketPosition(BaseModel):
    """Estimated market placement of a name."""
    segment: str = Field(..., description="'premium', 'mainstream', 'budget' or 'experimental'.")
    appeal: float = Field(..., ge=0, le=1)
    viability: float = Field(..., ge=0, le=1)
    risk_level: str = Field("low", description="'low', 'medium' or 'high'.")
    risk_factors: List[RiskFactor] = Field(default_factory=list)


class RankedName(BaseModel):
    """
    A qualified name in its final position. Rank is dense and 1-based,
    assigned only after diversity re-ordering.
    """
    name: str
    rank: int = Field(..., ge=1)
    overall_score: float = Field(..., ge=0, le=1)
    final_score: float = Field(..., ge=0, le=1, description="Ranking-mode weighted score.")
    quality_tier: str = Field("fair")
    competitive_position: CompetitivePosition
    market_position: MarketPosition
    strength_areas: List[str] = Field(default_factory=list)
    improvement_opportunities: List[str] = Field(default_factory=list)
    confidence_score: float = Field(..., ge=0, le=1)
    explanation: str = ""
    quality_vector: Optional[QualityVector] = None


class RankingRequest(BaseModel):
    """
    Request interface to the core pipeline.
    """
    candidate_names: List[str] = Field(..., description="Names to evaluate.")
    context: NameContext
    ranking_mode: RankingMode = Field(RankingMode.COMPREHENSIVE)
    quality_threshold: ThresholdMode = Field(
        ThresholdMode.MODERATE,
        description="Gate strictness profile."
    )
    custom_threshold: Optional[float] = Field(
        None, ge=0, le=1,
        description="Caller-supplied base threshold for the custom mode."
    )
    max_results: Optional[int] = Field(None, ge=1, description="Cap on ranked results.")
    minimum_results: Optional[int] = Field(
        None, ge=0,
        description="Qualified count that triggers the emergency fallback when not met."
    )
    diversity_target: Optional[float] = Field(
        None, ge=0, le=1,
        description="Weight of diversity against quality in the final ordering."
    )
    adaptive_learning: bool = Field(False, description="Learn from and record this request.")
    user_preferences: Optional[UserPreferences] = None

    class Config:
        extra = "forbid"


class RankingResponse(BaseModel):
    """
    Structurally valid response for every well-formed request.
    """
    ranked_names: List[RankedName] = Field(default_factory=list)
    rejected_names: List[RejectedName] = Field(default_factory=list)
    capped_names: List[str] = Field(
        default_factory=list,
        description="Qualified names excluded only by the max_results cap."
    )
    threshold_used: float = Field(..., ge=MIN_THRESHOLD, le=MAX_THRESHOLD)
    analytics: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
