"""
Quality Threshold Manager for Fermata

Runs a scored batch through the quality gate:

    ComputeThreshold -> Filter -> (EmergencyFallback) -> Analyze

The manager owns no request state; every call builds its own config. Any
internal failure produces an emergency result rather than an exception.
"""

from typing import List, Optional, Sequence

import structlog

from ..exceptions import InsufficientQualified
from ..models import (
    EmergencyFallbackSettings,
    NameContext,
    QualityGateResult,
    RejectedName,
    RejectionReason,
    ScoredCandidate,
    Severity,
    ThresholdMode,
    UserPreferences,
)
from .adaptive_learning import AdaptiveThresholdLearner
from .candidate_filter import CandidateFilter, GateRequirements
from .emergency_fallback import EmergencyFallback
from .gate_analyzer import QualityGateAnalyzer
from .threshold_calculator import ThresholdCalculator

logger = structlog.get_logger(__name__)

EMERGENCY_KEEP = 3


class QualityThresholdManager:
    """
    Quality gate orchestration.

    Responsibilities:
    - Resolve the threshold configuration for the request
    - Partition the batch into qualified and rejected names
    - Trigger the emergency fallback when too few qualify
    - Attach analysis, adaptations and recommendations
    - Feed outcomes to adaptive learning when a learner is configured
    """

    def __init__(
        self,
        calculator: Optional[ThresholdCalculator] = None,
        candidate_filter: Optional[CandidateFilter] = None,
        fallback: Optional[EmergencyFallback] = None,
        analyzer: Optional[QualityGateAnalyzer] = None,
        learner: Optional[AdaptiveThresholdLearner] = None,
        floor_threshold: float = 0.30
    ):
        """
        Initialize the manager.

        Args:
            calculator: Threshold calculator
            candidate_filter: Gate filter
            fallback: Emergency fallback
            analyzer: Post-gate analyzer
            learner: Adaptive threshold learner; adaptive mode without one
                behaves like moderate mode
            floor_threshold: Default emergency fallback floor
        """
        self.calculator = calculator or ThresholdCalculator()
        self.candidate_filter = candidate_filter or CandidateFilter()
        self.fallback = fallback or EmergencyFallback(self.calculator, self.candidate_filter)
        self.analyzer = analyzer or QualityGateAnalyzer()
        self.learner = learner
        self.floor_threshold = floor_threshold

        self.logger = logger.bind(component="QualityThresholdManager")

    def apply_quality_gate(
        self,
        candidates: Sequence[ScoredCandidate],
        context: NameContext,
        mode: ThresholdMode = ThresholdMode.MODERATE,
        minimum_results: int = 1,
        custom_threshold: Optional[float] = None,
        user_preferences: Optional[UserPreferences] = None,
        record_learning: bool = False
    ) -> QualityGateResult:
        """
        Apply the quality gate to a scored batch.

        Args:
            candidates: Scored candidates (one per name)
            context: Request context
            mode: Gate strictness profile
            minimum_results: Qualified count the fallback aims for
            custom_threshold: Base threshold for custom mode
            user_preferences: Preferences applied in adaptive mode
            record_learning: Append the outcome to the learning history

        Returns:
            QualityGateResult; every input name is either qualified or rejected
        """
        try:
            return self._run_gate(
                candidates, context, mode, minimum_results,
                custom_threshold, user_preferences, record_learning
            )
        except Exception as e:
            self.logger.error(
                "Quality gate failed, using emergency result",
                error=str(e),
                error_type=type(e).__name__,
                batch_size=len(candidates)
            )
            return self.emergency_result(candidates, mode, custom_threshold)

    def _run_gate(
        self,
        candidates: Sequence[ScoredCandidate],
        context: NameContext,
        mode: ThresholdMode,
        minimum_results: int,
        custom_threshold: Optional[float],
        user_preferences: Optional[UserPreferences],
        record_learning: bool
    ) -> QualityGateResult:
        # ComputeThreshold
        learned = None
        if mode == ThresholdMode.ADAPTIVE and self.learner is not None:
            learned = self.learner.learned_threshold(
                context, self.calculator.base_threshold(ThresholdMode.ADAPTIVE)
            )

        config = self.calculator.build_config(
            mode,
            context,
            custom_threshold=custom_threshold,
            user_preferences=user_preferences,
            learned_threshold=learned,
            fallback=EmergencyFallbackSettings(
                minimum_results=minimum_results,
                floor_threshold=self.floor_threshold,
            ),
        )

        # Filter
        requirements = GateRequirements.from_config(config)
        qualified, rejected = self.candidate_filter.filter(candidates, requirements)
        threshold_used = config.overall_threshold
        fallback_applied = False
        fallback_steps: List[str] = []

        # EmergencyFallback
        try:
            self.candidate_filter.require_minimum(qualified, minimum_results)
        except InsufficientQualified as e:
            self.logger.info(
                "Too few candidates qualified",
                found=e.found,
                required=e.required,
                threshold=threshold_used
            )
            outcome = self.fallback.apply(candidates, config, minimum_results)
            qualified, rejected = outcome.qualified, outcome.rejected
            threshold_used = outcome.threshold
            fallback_steps = outcome.steps_applied
            fallback_applied = bool(fallback_steps)

        # Analyze
        gate_analysis = self.analyzer.analyze(candidates, qualified, rejected, threshold_used)
        adaptations = self.analyzer.generate_adaptations(config, gate_analysis, threshold_used)
        recommendations = self.analyzer.generate_recommendations(gate_analysis)

        if record_learning and self.learner is not None:
            try:
                self.learner.record_outcome(context, threshold_used, len(qualified), gate_analysis)
            except Exception as e:
                self.logger.warning("Failed to record learning outcome", error=str(e))

        self.logger.info(
            "Quality gate applied",
            mode=mode.value,
            threshold=threshold_used,
            initial_threshold=config.overall_threshold,
            qualified=len(qualified),
            rejected=len(rejected),
            fallback_applied=fallback_applied
        )

        return QualityGateResult(
            passed=len(qualified) > 0,
            qualified=qualified,
            rejected=rejected,
            threshold_used=threshold_used,
            initial_threshold=config.overall_threshold,
            config=config,
            fallback_applied=fallback_applied,
            fallback_steps=fallback_steps,
            gate_analysis=gate_analysis,
            adaptations=adaptations,
            recommendations=recommendations,
        )

    def emergency_result(
        self,
        candidates: Sequence[ScoredCandidate],
        mode: ThresholdMode,
        custom_threshold: Optional[float] = None
    ) -> QualityGateResult:
        """Keep the top candidates by overall score; reject the rest."""
        threshold = self.calculator.clamp_threshold(
            self.calculator.base_threshold(mode, custom_threshold)
        )
        ordered = sorted(candidates, key=lambda c: c.overall_score, reverse=True)
        keep, drop = ordered[:EMERGENCY_KEEP], ordered[EMERGENCY_KEEP:]

        rejected = [
            RejectedName(
                name=candidate.name,
                score=candidate.overall_score,
                reasons=[RejectionReason(
                    category="system",
                    criterion="emergency_fallback",
                    actual=candidate.overall_score,
                    required=threshold,
                    severity=Severity.CRITICAL,
                    description="Excluded by emergency fallback after a gate failure",
                )],
            )
            for candidate in drop
        ]

        return QualityGateResult(
            passed=len(keep) > 0,
            qualified=keep,
            rejected=rejected,
            threshold_used=threshold,
            initial_threshold=threshold,
            fallback_applied=True,
            fallback_steps=["emergency"],
            recommendations=[{
                "category": "system_reliability",
                "priority": "high",
                "recommendation": "Investigate quality gate failure",
                "rationale": "Emergency fallback was used",
            }],
        )
