"""
Tests for ThresholdCalculator.

Checks mode base values, contextual offsets, preference offsets, clamping
and the derived dimensional minimums and exclusion criteria.
"""

import pytest

from fermata.gate import ThresholdCalculator
from fermata.models import (
    MAX_THRESHOLD,
    MIN_THRESHOLD,
    NameContext,
    ThresholdMode,
    UserPreferences,
)


@pytest.fixture
def calculator():
    return ThresholdCalculator()


class TestBaseThreshold:
    """Test mode-based starting values."""

    @pytest.mark.parametrize("mode,expected", [
        (ThresholdMode.STRICT, 0.80),
        (ThresholdMode.MODERATE, 0.65),
        (ThresholdMode.LENIENT, 0.50),
        (ThresholdMode.CUSTOM, 0.60),
        (ThresholdMode.ADAPTIVE, 0.65),
    ])
    def test_mode_defaults(self, calculator, mode, expected):
        assert calculator.base_threshold(mode) == expected

    def test_custom_value_is_used(self, calculator):
        assert calculator.base_threshold(ThresholdMode.CUSTOM, custom_threshold=0.72) == 0.72

    def test_custom_value_ignored_in_other_modes(self, calculator):
        assert calculator.base_threshold(ThresholdMode.STRICT, custom_threshold=0.3) == 0.80

    def test_learned_value_only_applies_to_adaptive(self, calculator):
        assert calculator.base_threshold(ThresholdMode.ADAPTIVE, learned_threshold=0.7) == 0.7
        assert calculator.base_threshold(ThresholdMode.MODERATE, learned_threshold=0.7) == 0.65


class TestBuildConfig:
    """Test full config resolution."""

    def test_plain_context_adds_no_offsets(self, calculator, band_context):
        config = calculator.build_config(ThresholdMode.MODERATE, band_context)

        assert config.overall_threshold == 0.65
        assert config.applied_offsets == {}
        assert config.balance_requirement == 0.40

    def test_contextual_offsets_are_additive(self, calculator, rock_context):
        config = calculator.build_config(ThresholdMode.MODERATE, rock_context)

        assert config.applied_offsets == {"target_audience": 0.05, "market_context": 0.08}
        assert config.overall_threshold == 0.78

    def test_unknown_genre_contributes_nothing(self, calculator):
        context = NameContext(type="band", genre="sea shanty")
        config = calculator.build_config(ThresholdMode.MODERATE, context)
        assert config.overall_threshold == 0.65

    def test_threshold_clamped_low(self, calculator):
        context = NameContext(
            type="band",
            genre="experimental",
            target_audience="experimental",
            market_context="artistic",
            urgency="high",
            quality_priority="quantity-focused",
        )
        config = calculator.build_config(ThresholdMode.LENIENT, context)
        assert config.overall_threshold == MIN_THRESHOLD

    def test_threshold_clamped_high(self, calculator):
        context = NameContext(
            type="song",
            genre="classical",
            target_audience="mainstream",
            market_context="commercial",
            urgency="low",
            quality_priority="strict",
        )
        config = calculator.build_config(ThresholdMode.STRICT, context)
        assert config.overall_threshold == MAX_THRESHOLD

    def test_preferences_apply_only_in_adaptive_mode(self, calculator, band_context):
        prefs = UserPreferences(quality_weight=0.9)

        moderate = calculator.build_config(ThresholdMode.MODERATE, band_context, user_preferences=prefs)
        adaptive = calculator.build_config(ThresholdMode.ADAPTIVE, band_context, user_preferences=prefs)

        assert moderate.overall_threshold == 0.65
        assert adaptive.overall_threshold == 0.70
        assert adaptive.applied_offsets["user_preferences"] == 0.05

    def test_learned_threshold_feeds_adaptive_base(self, calculator, band_context):
        config = calculator.build_config(ThresholdMode.ADAPTIVE, band_context, learned_threshold=0.58)

        assert config.base_threshold == 0.58
        assert config.overall_threshold == 0.58

    @pytest.mark.parametrize("mode", list(ThresholdMode))
    def test_threshold_always_in_bounds(self, calculator, rock_context, mode):
        config = calculator.build_config(mode, rock_context, custom_threshold=1.0, learned_threshold=1.0)
        assert MIN_THRESHOLD <= config.overall_threshold <= MAX_THRESHOLD


class TestPreferenceOffset:
    """Test bounded user-preference offsets."""

    def test_offset_is_bounded_up(self, calculator):
        prefs = UserPreferences(quality_weight=0.9, quality_threshold="strict")
        assert calculator.preference_offset(prefs) == 0.10

    def test_offset_is_bounded_down(self, calculator):
        prefs = UserPreferences(quality_weight=0.1, quality_threshold="lenient", creativity_tolerance=0.9)
        assert calculator.preference_offset(prefs) == -0.10

    def test_neutral_preferences(self, calculator):
        assert calculator.preference_offset(UserPreferences()) == 0.0


class TestMinimumsAndExclusions:
    """Test context-derived minimums and exclusions."""

    def test_balanced_minimums_at_reference_threshold(self, calculator, band_context):
        minimums = calculator.dimensional_minimums(band_context, 0.65)

        assert minimums.memorability == 0.60
        assert minimums.uniqueness == 0.50

    def test_commercial_minimums_scale_and_cap(self, calculator, rock_context):
        minimums = calculator.dimensional_minimums(rock_context, 0.78)

        assert minimums.memorability == 0.84
        assert minimums.market_appeal == 0.90
        assert all(value <= 0.90 for value in minimums.as_dict().values())

    def test_artistic_minimums_favor_creativity(self, calculator):
        context = NameContext(type="band", market_context="artistic")
        minimums = calculator.dimensional_minimums(context, 0.65)

        assert minimums.creativity > minimums.market_appeal

    def test_exclusions_never_contradict_pronunciation_minimum(self, calculator, band_context):
        for threshold in (0.2, 0.4, 0.65, 0.95):
            minimums = calculator.dimensional_minimums(band_context, threshold)
            exclusions = calculator.exclusion_criteria(minimums)

            assert exclusions.max_pronunciation_difficulty >= 0.5
            assert exclusions.max_pronunciation_difficulty >= round(1.0 - minimums.pronunciation, 4)
            assert exclusions.min_memorability == minimums.memorability
