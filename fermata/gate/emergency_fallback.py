"""
Emergency Fallback for Fermata

Bounded, stepwise relaxation of the gate when too few candidates qualify.
Each escalation step either lowers the overall threshold (re-deriving the
dimensional minimums from the new value) or relaxes the criteria, then the
whole batch is re-filtered. Relaxation stops as soon as the minimum result
count is met or the floor is reached; the floor is never crossed and no
candidate is ever invented.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from ..models import (
    MIN_THRESHOLD,
    FallbackAction,
    RejectedName,
    ScoredCandidate,
    ThresholdConfig,
)
from .candidate_filter import CandidateFilter, GateRequirements
from .threshold_calculator import MINIMUM_CAP, ThresholdCalculator

logger = structlog.get_logger(__name__)


@dataclass
class FallbackOutcome:
    """Where the fallback ended up."""
    qualified: List[ScoredCandidate]
    rejected: List[RejectedName]
    requirements: GateRequirements
    steps_applied: List[str] = field(default_factory=list)
    minimum_met: bool = False

    @property
    def threshold(self) -> float:
        return self.requirements.overall_threshold


class EmergencyFallback:
    """
    Stepwise gate relaxation.

    Responsibilities:
    - Walk the configured escalation steps in order
    - Re-filter the full batch after every step
    - Respect the effective floor: min(floor, initial threshold)
    """

    def __init__(
        self,
        calculator: Optional[ThresholdCalculator] = None,
        candidate_filter: Optional[CandidateFilter] = None
    ):
        self.calculator = calculator or ThresholdCalculator()
        self.candidate_filter = candidate_filter or CandidateFilter()

        self.logger = logger.bind(component="EmergencyFallback")

    def effective_floor(self, config: ThresholdConfig) -> float:
        floor = min(config.emergency_fallback.floor_threshold, config.overall_threshold)
        return round(max(MIN_THRESHOLD, floor), 4)

    def apply(
        self,
        candidates: Sequence[ScoredCandidate],
        config: ThresholdConfig,
        minimum_results: int
    ) -> FallbackOutcome:
        """
        Relax the gate until minimum_results candidates qualify or the
        floor is reached.

        Args:
            candidates: The full scored batch
            config: Gate configuration the initial filter used
            minimum_results: Qualified count to aim for

        Returns:
            FallbackOutcome with the final partition and the steps taken
        """
        requirements = GateRequirements.from_config(config)
        qualified, rejected = self.candidate_filter.filter(candidates, requirements)
        outcome = FallbackOutcome(
            qualified=qualified,
            rejected=rejected,
            requirements=requirements,
            minimum_met=len(qualified) >= minimum_results,
        )

        settings = config.emergency_fallback
        if outcome.minimum_met or not settings.enabled:
            return outcome

        if settings.quality_warnings:
            self.logger.warning(
                "Emergency fallback triggered",
                qualified=len(qualified),
                required=minimum_results,
                threshold=config.overall_threshold
            )

        floor = self.effective_floor(config)
        threshold = requirements.overall_threshold
        relaxation = 1.0
        balance = requirements.balance_requirement

        for index, step in enumerate(settings.escalation_steps, start=1):
            if step.action == FallbackAction.LOWER_THRESHOLD:
                if threshold <= floor:
                    self.logger.debug("Fallback floor reached, skipping step", floor=floor, step=index)
                    continue
                threshold = round(max(floor, threshold + step.threshold_adjustment), 4)
                description = f"lower_threshold:{threshold:.2f}"
            else:
                relaxation = round(relaxation * step.criteria_relaxation, 4)
                balance = round(max(0.0, balance - step.balance_relaxation), 4)
                description = f"expand_criteria:x{relaxation:.2f}"

            requirements = self._requirements(config, threshold, relaxation, balance)
            qualified, rejected = self.candidate_filter.filter(candidates, requirements)
            outcome.qualified, outcome.rejected = qualified, rejected
            outcome.requirements = requirements
            outcome.steps_applied.append(description)

            self.logger.debug(
                "Fallback step applied",
                step=index,
                action=step.action.value,
                threshold=threshold,
                qualified=len(qualified)
            )

            if len(qualified) >= minimum_results:
                outcome.minimum_met = True
                break

        self.logger.info(
            "Emergency fallback finished",
            steps=outcome.steps_applied,
            final_threshold=outcome.threshold,
            qualified=len(outcome.qualified),
            minimum_met=outcome.minimum_met
        )
        return outcome

    def _requirements(
        self,
        config: ThresholdConfig,
        threshold: float,
        relaxation: float,
        balance: float
    ) -> GateRequirements:
        minimums = self.calculator.dimensional_minimums(config.context, threshold)
        if relaxation != 1.0:
            minimums = minimums.scaled(relaxation, cap=MINIMUM_CAP)
        return GateRequirements(
            overall_threshold=threshold,
            dimensional_minimums=minimums,
            exclusion_criteria=self.calculator.exclusion_criteria(minimums),
            balance_requirement=balance,
        )

