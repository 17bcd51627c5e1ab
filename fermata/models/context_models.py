"""
Context Models for Fermata

Closed, versioned request context and user preference schema. Every
categorical field is normalized at validation time so the threshold and
ranking math can rely on fully-populated, range-checked inputs.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_CONTEXT_VERSIONS = (1,)


class NameType(str, Enum):
    """Kind of name being evaluated."""
    BAND = "band"
    SONG = "song"


class TargetAudience(str, Enum):
    """Audience the name is aimed at."""
    MAINSTREAM = "mainstream"
    NICHE = "niche"
    EXPERIMENTAL = "experimental"


class MarketContext(str, Enum):
    """Market the name will compete in."""
    COMMERCIAL = "commercial"
    ARTISTIC = "artistic"
    EDUCATIONAL = "educational"


class Urgency(str, Enum):
    """How quickly the caller needs usable results."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class QualityPriority(str, Enum):
    """Trade-off between result quality and result quantity."""
    STRICT = "strict"
    BALANCED = "balanced"
    QUANTITY_FOCUSED = "quantity-focused"


class RiskTolerance(str, Enum):
    """Appetite for polarizing or unusual names."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    ADVENTUROUS = "adventurous"


class PreferredLength(str, Enum):
    """Preferred name length, in words."""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


def _normalize_label(value: Any) -> Any:
    """Lower-case and strip categorical strings; blank strings become None."""
    if isinstance(value, str):
        value = value.strip().lower()
        return value or None
    return value


class NameContext(BaseModel):
    """
    Request-scoped metadata that influences thresholds and weighting.
    """
    schema_version: int = Field(
        default=1,
        description="Version of the context schema the caller was built against."
    )
    type: NameType = Field(..., description="Whether the names are band or song names.")
    genre: Optional[str] = Field(
        None,
        description="Musical genre (e.g., 'rock', 'hip-hop'). Unknown genres add no offset."
    )
    mood: Optional[str] = Field(None, description="Desired mood (e.g., 'dark', 'uplifting').")
    target_audience: Optional[TargetAudience] = Field(
        None,
        description="Audience segment the names target."
    )
    market_context: Optional[MarketContext] = Field(
        None,
        description="Market the names compete in. Drives dimensional minimums."
    )
    urgency: Optional[Urgency] = Field(None, description="Urgency of the request.")
    quality_priority: Optional[QualityPriority] = Field(
        None,
        description="Quality versus quantity trade-off."
    )

    class Config:
        str_strip_whitespace = True
        extra = "forbid"
        frozen = True

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, value: int) -> int:
        if value not in SUPPORTED_CONTEXT_VERSIONS:
            raise ValueError(f"unsupported context schema version {value}")
        return value

    @field_validator(
        "type", "genre", "mood", "target_audience",
        "market_context", "urgency", "quality_priority",
        mode="before"
    )
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _normalize_label(value)

    def to_key_dict(self) -> Dict[str, Any]:
        """Plain, JSON-safe representation used for cache keys."""
        return self.model_dump(mode="json")


class UserPreferences(BaseModel):
    """
    Optional caller preferences that apply small, bounded corrections to
    thresholds and ranking scores.
    """
    quality_weight: Optional[float] = Field(
        None, ge=0, le=1,
        description="How much the user values quality over quantity (0-1)."
    )
    creativity_tolerance: Optional[float] = Field(
        None, ge=0, le=1,
        description="Tolerance for unconventional, creative names (0-1)."
    )
    quality_threshold: Optional[str] = Field(
        None,
        description="Preferred gate strictness ('strict', 'moderate', 'lenient')."
    )
    risk_tolerance: Optional[RiskTolerance] = Field(
        None,
        description="Appetite for polarizing names."
    )
    preferred_length: Optional[PreferredLength] = Field(
        None,
        description="Preferred name length in words."
    )

    class Config:
        extra = "forbid"
        frozen = True

    @field_validator("quality_threshold", "risk_tolerance", "preferred_length", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _normalize_label(value)
