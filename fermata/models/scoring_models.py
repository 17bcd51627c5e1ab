"""
Scoring Models for Fermata

Pydantic models for per-candidate scores: the normalized score breakdown,
the derived quality vector, and the immutable scored candidate that flows
through the gate and the ranking engine.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from .context_models import NameContext

NEUTRAL_SCORE = 0.5

SCORE_FIELDS = (
    "phonetic_flow",
    "semantic_coherence",
    "creativity",
    "memorability",
    "market_appeal",
    "appropriateness",
    "uniqueness",
    "pronunciation",
    "cultural_appeal",
    "genre_optimization",
    "phonetic_semantic_alignment",
)

DIMENSION_NAMES = ("sound", "meaning", "creativity", "appeal", "fit")


def _score_field(description: str):
    return Field(NEUTRAL_SCORE, ge=0, le=1, description=description)


class ScoreBreakdown(BaseModel):
    """
    Named sub-scores for a candidate, each normalized to [0, 1].
    Fields an analyzer could not supply hold the neutral default.
    """
    phonetic_flow: float = _score_field("Smoothness of sound transitions.")
    semantic_coherence: float = _score_field("How well the words hang together.")
    creativity: float = _score_field("Originality of the word combination.")
    memorability: float = _score_field("How easily the name sticks.")
    market_appeal: float = _score_field("Commercial attractiveness.")
    appropriateness: float = _score_field("Fit for the requested name type and mood.")
    uniqueness: float = _score_field("How unusual the name is.")
    pronunciation: float = _score_field("Ease of pronunciation (1 = effortless).")
    cultural_appeal: float = _score_field("Broad cultural acceptability.")
    genre_optimization: float = _score_field("Fit for the requested genre.")
    phonetic_semantic_alignment: float = _score_field(
        "Agreement between how the name sounds and what it means."
    )

    class Config:
        frozen = True

    def as_dict(self) -> Dict[str, float]:
        """Field values keyed by field name, in canonical order."""
        return {field: getattr(self, field) for field in SCORE_FIELDS}


class QualityVector(BaseModel):
    """
    Fixed-dimension summary of a candidate used for comparison and
    diversity math.
    """
    dimensions: Dict[str, float] = Field(
        ...,
        description="Aggregated dimension scores: sound, meaning, creativity, appeal, fit."
    )
    balance: float = Field(..., ge=0, le=1, description="1 minus the scaled dimension variance.")
    magnitude: float = Field(..., ge=0, le=1, description="Normalized L2 norm of the dimensions.")
    distinctiveness: float = Field(
        ..., ge=0, le=1,
        description="Mean dissimilarity to the other candidates in the same batch."
    )

    class Config:
        frozen = True

    def values(self) -> List[float]:
        """Dimension values in canonical order."""
        return [self.dimensions.get(name, NEUTRAL_SCORE) for name in DIMENSION_NAMES]


class ScoredCandidate(BaseModel):
    """
    A single analyzed name. Created once per name per request and never
    mutated by downstream stages.
    """
    name: str = Field(..., description="The candidate name as submitted.")
    context: NameContext = Field(..., description="Context the name was scored under.")
    breakdown: ScoreBreakdown = Field(..., description="Normalized sub-scores.")
    vector: QualityVector = Field(..., description="Derived quality vector.")
    overall_score: float = Field(..., ge=0, le=1, description="Weighted overall quality.")
    confidence: float = Field(
        ..., ge=0, le=1,
        description="Confidence in the scores; drops as analyzer data goes missing."
    )
    analysis_time_ms: float = Field(0.0, ge=0, description="Time spent analyzing this name.")
    missing_fields: List[str] = Field(
        default_factory=list,
        description="Breakdown fields that fell back to the neutral default."
    )
    failed_analyzers: List[str] = Field(
        default_factory=list,
        description="Analyzers that failed or timed out for this name."
    )

    class Config:
        frozen = True
