"""
Candidate Filter for Fermata

Applies gate requirements to scored candidates:
- Overall score threshold
- Dimensional minimums
- Quality vector balance floor
- Exclusion criteria (pronunciation difficulty, memorability, cultural
  appeal, name length)

Every failing check becomes one RejectionReason; a candidate with no
reasons is qualified. Boundaries are inclusive: a value equal to its
requirement passes.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import structlog

from ..exceptions import InsufficientQualified
from ..models import (
    DimensionalMinimums,
    ExclusionCriteria,
    RejectedName,
    RejectionReason,
    ScoredCandidate,
    Severity,
    ThresholdConfig,
)

logger = structlog.get_logger(__name__)

MINOR_GAP = 0.10
NEAR_THRESHOLD_GAP = 0.05
EXCELLENT_SCORE = 0.80


@dataclass(frozen=True)
class GateRequirements:
    """The concrete rules one filtering pass checks against."""
    overall_threshold: float
    dimensional_minimums: DimensionalMinimums
    exclusion_criteria: ExclusionCriteria
    balance_requirement: float

    @classmethod
    def from_config(cls, config: ThresholdConfig) -> "GateRequirements":
        return cls(
            overall_threshold=config.overall_threshold,
            dimensional_minimums=config.dimensional_minimums,
            exclusion_criteria=config.exclusion_criteria,
            balance_requirement=config.balance_requirement,
        )


def _label(field_name: str) -> str:
    return field_name.replace('_', ' ')


def _gap_severity(gap: float) -> Severity:
    return Severity.MAJOR if gap > MINOR_GAP else Severity.MINOR


class CandidateFilter:
    """
    Quality gate filtering.

    Responsibilities:
    - Partition candidates into qualified and rejected
    - Explain every rejection with categorized, graded reasons
    - Estimate improvement potential and near-miss factors
    """

    def __init__(self):
        self.logger = logger.bind(component="CandidateFilter")

    def filter(
        self,
        candidates: Sequence[ScoredCandidate],
        requirements: GateRequirements
    ) -> Tuple[List[ScoredCandidate], List[RejectedName]]:
        """
        Split candidates into qualified and rejected, preserving input order.
        """
        qualified: List[ScoredCandidate] = []
        rejected: List[RejectedName] = []

        for candidate in candidates:
            reasons = self.evaluate(candidate, requirements)
            if reasons:
                rejected.append(self._build_rejection(candidate, reasons, requirements))
            else:
                qualified.append(candidate)

        self.logger.debug(
            "Filter pass complete",
            threshold=requirements.overall_threshold,
            qualified=len(qualified),
            rejected=len(rejected)
        )
        return qualified, rejected

    @staticmethod
    def require_minimum(qualified: Sequence[ScoredCandidate], minimum: int) -> None:
        """
        Raises:
            InsufficientQualified: If fewer than minimum candidates qualified
        """
        if len(qualified) < minimum:
            raise InsufficientQualified(found=len(qualified), required=minimum)

    def evaluate(self, candidate: ScoredCandidate, requirements: GateRequirements) -> List[RejectionReason]:
        """All failed checks for one candidate; empty when it qualifies."""
        reasons: List[RejectionReason] = []
        breakdown = candidate.breakdown

        if candidate.overall_score < requirements.overall_threshold:
            reasons.append(RejectionReason(
                category="overall",
                criterion="overall_score",
                actual=candidate.overall_score,
                required=requirements.overall_threshold,
                severity=Severity.CRITICAL,
                description=(
                    f"Overall score {candidate.overall_score:.2f} is below the "
                    f"threshold {requirements.overall_threshold:.2f}"
                ),
            ))

        for field_name, minimum in requirements.dimensional_minimums.as_dict().items():
            actual = getattr(breakdown, field_name)
            if actual < minimum:
                reasons.append(RejectionReason(
                    category="dimensional",
                    criterion=field_name,
                    actual=actual,
                    required=minimum,
                    severity=_gap_severity(round(minimum - actual, 4)),
                    description=f"{_label(field_name).capitalize()} {actual:.2f} is below {minimum:.2f}",
                ))

        if candidate.vector.balance < requirements.balance_requirement:
            reasons.append(RejectionReason(
                category="balance",
                criterion="balance",
                actual=candidate.vector.balance,
                required=requirements.balance_requirement,
                severity=Severity.MAJOR,
                description="Quality is concentrated in too few dimensions",
            ))

        reasons.extend(self._check_exclusions(candidate, requirements.exclusion_criteria, reasons))
        return reasons

    def _check_exclusions(
        self,
        candidate: ScoredCandidate,
        criteria: ExclusionCriteria,
        existing: List[RejectionReason]
    ) -> List[RejectionReason]:
        reasons: List[RejectionReason] = []
        breakdown = candidate.breakdown

        difficulty = round(1.0 - breakdown.pronunciation, 4)
        if difficulty > criteria.max_pronunciation_difficulty:
            reasons.append(RejectionReason(
                category="exclusion",
                criterion="pronunciation_difficulty",
                actual=difficulty,
                required=criteria.max_pronunciation_difficulty,
                severity=_gap_severity(round(difficulty - criteria.max_pronunciation_difficulty, 4)),
                description="Name is too difficult to pronounce",
            ))

        memorability_reported = any(r.criterion == "memorability" for r in existing)
        if breakdown.memorability < criteria.min_memorability and not memorability_reported:
            reasons.append(RejectionReason(
                category="exclusion",
                criterion="memorability",
                actual=breakdown.memorability,
                required=criteria.min_memorability,
                severity=_gap_severity(round(criteria.min_memorability - breakdown.memorability, 4)),
                description="Name is not memorable enough",
            ))

        if breakdown.cultural_appeal < criteria.cultural_appeal_min:
            reasons.append(RejectionReason(
                category="exclusion",
                criterion="cultural_appropriateness",
                actual=breakdown.cultural_appeal,
                required=criteria.cultural_appeal_min,
                severity=Severity.CRITICAL,
                description="Name may be culturally inappropriate",
            ))

        length = len(candidate.name.strip())
        if length < criteria.min_length or length > criteria.max_length:
            required = criteria.min_length if length < criteria.min_length else criteria.max_length
            reasons.append(RejectionReason(
                category="exclusion",
                criterion="name_length",
                actual=float(length),
                required=float(required),
                severity=Severity.MINOR,
                description=f"Name length {length} is outside {criteria.min_length}-{criteria.max_length}",
            ))

        return reasons

    def _build_rejection(
        self,
        candidate: ScoredCandidate,
        reasons: List[RejectionReason],
        requirements: GateRequirements
    ) -> RejectedName:
        return RejectedName(
            name=candidate.name,
            score=candidate.overall_score,
            reasons=reasons,
            improvement_potential=self.improvement_potential(reasons),
            near_miss_factors=self.near_miss_factors(candidate, reasons, requirements),
        )

    @staticmethod
    def improvement_potential(reasons: Sequence[RejectionReason]) -> float:
        """
        1 - total gap / maximum possible gap. Each reason contributes a gap
        normalized to [0, 1]; length violations count as a fixed small gap.
        """
        if not reasons:
            return 1.0
        total_gap = 0.0
        for reason in reasons:
            if reason.criterion == "name_length":
                total_gap += MINOR_GAP
            else:
                total_gap += min(1.0, abs(reason.actual - reason.required))
        return round(max(0.0, min(1.0, 1.0 - total_gap / len(reasons))), 4)

    @staticmethod
    def near_miss_factors(
        candidate: ScoredCandidate,
        reasons: Sequence[RejectionReason],
        requirements: GateRequirements
    ) -> List[str]:
        factors: List[str] = []

        if all(reason.severity == Severity.MINOR for reason in reasons):
            factors.append("Has only minor quality issues")

        for reason in reasons:
            if reason.category == "dimensional" and reason.severity == Severity.MINOR:
                factors.append(f"Close to meeting {_label(reason.criterion)} requirements")

        for field_name, value in candidate.breakdown.as_dict().items():
            if value > EXCELLENT_SCORE:
                factors.append(f"Excellent {_label(field_name)} ({value:.2f})")

        overall_gap = requirements.overall_threshold - candidate.overall_score
        if 0 < overall_gap < NEAR_THRESHOLD_GAP:
            factors.append("Very close to overall quality threshold")

        return factors
