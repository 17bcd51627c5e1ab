"""
Threshold Calculator for Fermata

Builds the per-request ThresholdConfig:
- Mode-based base threshold
- Additive contextual offsets (genre, audience, market, urgency, priority)
- Bounded user-preference offsets in adaptive mode
- Clamping to the global threshold bounds
- Context-derived dimensional minimums and exclusion criteria
"""

from typing import Dict, Optional

import structlog

from ..models import (
    MAX_THRESHOLD,
    MIN_THRESHOLD,
    DimensionalMinimums,
    EmergencyFallbackSettings,
    ExclusionCriteria,
    MarketContext,
    NameContext,
    ThresholdConfig,
    ThresholdMode,
    UserPreferences,
)

logger = structlog.get_logger(__name__)

# Minimums are expressed relative to the moderate threshold
REFERENCE_THRESHOLD = 0.65
MINIMUM_CAP = 0.90
PREFERENCE_OFFSET_BOUND = 0.10
DEFAULT_BALANCE_REQUIREMENT = 0.40
DEFAULT_MAX_PRONUNCIATION_DIFFICULTY = 0.5
DEFAULT_CULTURAL_APPEAL_MIN = 0.5


class ThresholdCalculator:
    """
    Computes thresholds and gate requirements from mode and context.

    Responsibilities:
    - Base threshold lookup per mode
    - Contextual and preference offsets
    - Dimensional minimums per market context
    - Exclusion criteria derived from the minimums
    """

    def __init__(self):
        self.base_thresholds = self._initialize_base_thresholds()
        self.context_offsets = self._initialize_context_offsets()
        self.market_minimums = self._initialize_market_minimums()

        self.logger = logger.bind(component="ThresholdCalculator")

    def _initialize_base_thresholds(self) -> Dict[ThresholdMode, float]:
        return {
            ThresholdMode.STRICT: 0.80,
            ThresholdMode.MODERATE: 0.65,
            ThresholdMode.LENIENT: 0.50,
            ThresholdMode.CUSTOM: 0.60,     # used when no custom value is supplied
            ThresholdMode.ADAPTIVE: 0.65,   # starting point before learning
        }

    def _initialize_context_offsets(self) -> Dict[str, Dict[str, float]]:
        """Signed offsets per context field; unknown categories contribute 0."""
        return {
            'genre': {
                'classical': 0.05, 'experimental': -0.10, 'pop': 0.02, 'rock': 0.0,
                'jazz': 0.03, 'electronic': -0.05, 'folk': 0.02, 'metal': -0.02,
                'country': 0.01, 'hip-hop': -0.03, 'blues': 0.02, 'reggae': 0.0,
                'punk': -0.08, 'indie': -0.05, 'alternative': -0.03,
            },
            'target_audience': {
                'mainstream': 0.05, 'niche': -0.05, 'experimental': -0.15,
            },
            'market_context': {
                'commercial': 0.08, 'artistic': -0.10, 'educational': 0.03,
            },
            'urgency': {
                'low': 0.05, 'medium': 0.0, 'high': -0.10,
            },
            'quality_priority': {
                'strict': 0.10, 'balanced': 0.0, 'quantity-focused': -0.15,
            },
        }

    def _initialize_market_minimums(self) -> Dict[str, DimensionalMinimums]:
        return {
            MarketContext.COMMERCIAL.value: DimensionalMinimums(
                phonetic_flow=0.60, semantic_coherence=0.55, creativity=0.45,
                memorability=0.70, market_appeal=0.75, appropriateness=0.65,
                uniqueness=0.40, pronunciation=0.70,
            ),
            MarketContext.ARTISTIC.value: DimensionalMinimums(
                phonetic_flow=0.50, semantic_coherence=0.60, creativity=0.75,
                memorability=0.55, market_appeal=0.35, appropriateness=0.60,
                uniqueness=0.70, pronunciation=0.55,
            ),
            'balanced': DimensionalMinimums(
                phonetic_flow=0.55, semantic_coherence=0.55, creativity=0.55,
                memorability=0.60, market_appeal=0.55, appropriateness=0.60,
                uniqueness=0.50, pronunciation=0.60,
            ),
        }

    def build_config(
        self,
        mode: ThresholdMode,
        context: NameContext,
        custom_threshold: Optional[float] = None,
        user_preferences: Optional[UserPreferences] = None,
        learned_threshold: Optional[float] = None,
        fallback: Optional[EmergencyFallbackSettings] = None
    ) -> ThresholdConfig:
        """
        Resolve the full gate configuration for a request.

        Args:
            mode: Gate strictness profile
            context: Request context
            custom_threshold: Base threshold for custom mode
            user_preferences: Optional preferences (applied in adaptive mode)
            learned_threshold: Base threshold learned from history (adaptive mode)
            fallback: Emergency fallback settings

        Returns:
            ThresholdConfig with a clamped overall threshold
        """
        base = self.base_threshold(mode, custom_threshold, learned_threshold)
        offsets = self.contextual_offsets(context)

        if mode == ThresholdMode.ADAPTIVE and user_preferences is not None:
            preference_offset = self.preference_offset(user_preferences)
            if preference_offset:
                offsets['user_preferences'] = preference_offset

        threshold = self.clamp_threshold(base + sum(offsets.values()))
        minimums = self.dimensional_minimums(context, threshold)

        config = ThresholdConfig(
            mode=mode,
            context=context,
            base_threshold=round(base, 4),
            overall_threshold=threshold,
            dimensional_minimums=minimums,
            exclusion_criteria=self.exclusion_criteria(minimums),
            balance_requirement=DEFAULT_BALANCE_REQUIREMENT,
            emergency_fallback=fallback or EmergencyFallbackSettings(),
            applied_offsets=offsets,
        )

        self.logger.debug(
            "Threshold config built",
            mode=mode.value,
            base=config.base_threshold,
            threshold=threshold,
            offsets=offsets
        )
        return config

    def base_threshold(
        self,
        mode: ThresholdMode,
        custom_threshold: Optional[float] = None,
        learned_threshold: Optional[float] = None
    ) -> float:
        if mode == ThresholdMode.CUSTOM and custom_threshold is not None:
            return custom_threshold
        if mode == ThresholdMode.ADAPTIVE and learned_threshold is not None:
            return learned_threshold
        return self.base_thresholds[mode]

    def contextual_offsets(self, context: NameContext) -> Dict[str, float]:
        """Non-zero offsets contributed by each context field."""
        offsets: Dict[str, float] = {}
        for field_name, table in self.context_offsets.items():
            value = getattr(context, field_name, None)
            if value is None:
                continue
            key = value.value if hasattr(value, 'value') else str(value)
            offset = table.get(key, 0.0)
            if offset:
                offsets[field_name] = offset
        return offsets

    @staticmethod
    def preference_offset(preferences: UserPreferences) -> float:
        """Combined user-preference offset, bounded to +/-0.10."""
        offset = 0.0
        if preferences.quality_weight is not None:
            if preferences.quality_weight > 0.7:
                offset += 0.05
            elif preferences.quality_weight < 0.3:
                offset -= 0.05
        if preferences.creativity_tolerance is not None and preferences.creativity_tolerance > 0.7:
            offset -= 0.03
        if preferences.quality_threshold == 'strict':
            offset += 0.10
        elif preferences.quality_threshold == 'lenient':
            offset -= 0.10
        return round(max(-PREFERENCE_OFFSET_BOUND, min(PREFERENCE_OFFSET_BOUND, offset)), 4)

    @staticmethod
    def clamp_threshold(value: float) -> float:
        return round(max(MIN_THRESHOLD, min(MAX_THRESHOLD, value)), 4)

    def dimensional_minimums(self, context: NameContext, threshold: float) -> DimensionalMinimums:
        """Market-context minimums scaled to the threshold and capped."""
        market = context.market_context.value if context.market_context else 'balanced'
        base = self.market_minimums.get(market, self.market_minimums['balanced'])
        return base.scaled(threshold / REFERENCE_THRESHOLD, cap=MINIMUM_CAP)

    @staticmethod
    def exclusion_criteria(minimums: DimensionalMinimums) -> ExclusionCriteria:
        """
        Exclusion rules consistent with the dimensional minimums: a name
        sitting exactly on its pronunciation minimum is never excluded for
        pronunciation difficulty.
        """
        return ExclusionCriteria(
            max_pronunciation_difficulty=round(
                max(DEFAULT_MAX_PRONUNCIATION_DIFFICULTY, 1.0 - minimums.pronunciation), 4
            ),
            min_memorability=minimums.memorability,
            cultural_appeal_min=DEFAULT_CULTURAL_APPEAL_MIN,
        )
