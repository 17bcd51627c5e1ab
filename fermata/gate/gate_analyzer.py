"""
Quality Gate Analyzer for Fermata

Post-gate analysis of a batch:
- Quality distribution (moments, brackets, IQR outliers)
- Dimensional performance and correlation insights
- Threshold effectiveness and adjustment advice
- Adaptation opportunities and recommendations

Analysis is advisory. It never changes which candidates qualified.
"""

from typing import Any, Dict, List, Sequence

import structlog

from ..analytics.statistics import (
    distribution_stats,
    mean,
    pearson_correlation,
    variance,
)
from ..models import RejectedName, ScoredCandidate, ThresholdConfig

logger = structlog.get_logger(__name__)

TRACKED_DIMENSIONS = ('phonetic_flow', 'semantic_coherence', 'creativity', 'memorability', 'market_appeal')
DIMENSION_PASS_SCORE = 0.6
OPTIMAL_KEEP_RATIO = 0.6
MAX_THRESHOLD_CHANGE = 0.15
FULL_CONFIDENCE_SAMPLE = 20

IMPROVEMENT_STRATEGIES = {
    'phonetic_flow': ['Favor smooth consonant-vowel patterns', 'Avoid difficult consonant clusters'],
    'semantic_coherence': ['Pick words from related semantic fields', 'Check that metaphors connect'],
    'creativity': ['Explore unconventional word combinations', 'Use wordplay and linguistic devices'],
    'memorability': ['Create strong phonetic hooks', 'Use memorable rhythmic patterns'],
    'market_appeal': ['Research target audience preferences', 'Balance uniqueness with accessibility'],
}

IMPROVEMENT_DIFFICULTY = {
    'phonetic_flow': 'medium',
    'semantic_coherence': 'hard',
    'creativity': 'hard',
    'memorability': 'easy',
    'market_appeal': 'medium',
}


class QualityGateAnalyzer:
    """
    Explains how a gate run went and what to tune next.

    Responsibilities:
    - Summarize the score distribution of the batch
    - Rank dimensions by average performance
    - Judge whether the threshold was well placed
    - Suggest adaptations and recommendations
    """

    def __init__(self):
        self.logger = logger.bind(component="QualityGateAnalyzer")

    def analyze(
        self,
        candidates: Sequence[ScoredCandidate],
        qualified: Sequence[ScoredCandidate],
        rejected: Sequence[RejectedName],
        threshold: float
    ) -> Dict[str, Any]:
        """
        Full gate analysis for one batch.

        Args:
            candidates: Every scored candidate in the batch
            qualified: Candidates that passed the gate
            rejected: Candidates that failed it
            threshold: Overall threshold the final partition used

        Returns:
            Analysis dictionary; empty structures for an empty batch
        """
        if not candidates:
            return self.empty_analysis()

        scores = [candidate.overall_score for candidate in candidates]
        distribution = self.analyze_quality_distribution(candidates)
        dimensional = self.analyze_dimensional_performance(candidates)
        effectiveness = self.analyze_threshold_effectiveness(candidates, qualified, threshold)

        analysis = {
            "total_processed": len(candidates),
            "qualified_count": len(qualified),
            "rejected_count": len(rejected),
            "pass_rate": round(len(qualified) / len(candidates), 4),
            "average_quality": round(mean(scores), 4),
            "quality_distribution": distribution,
            "dimensional_performance": dimensional,
            "threshold_effectiveness": effectiveness,
        }
        analysis["adaptation_opportunities"] = self.identify_adaptation_opportunities(
            distribution, dimensional, effectiveness
        )

        self.logger.debug(
            "Gate analysis complete",
            total=len(candidates),
            pass_rate=analysis["pass_rate"],
            adjustment=effectiveness["adjustment"]
        )
        return analysis

    @staticmethod
    def empty_analysis() -> Dict[str, Any]:
        return {
            "total_processed": 0,
            "qualified_count": 0,
            "rejected_count": 0,
            "pass_rate": 0.0,
            "average_quality": 0.0,
            "quality_distribution": distribution_stats([]),
            "dimensional_performance": {
                "strongest": [],
                "weakest": [],
                "correlation_insights": [],
                "improvement_priorities": [],
            },
            "threshold_effectiveness": {},
            "adaptation_opportunities": [],
        }

    def analyze_quality_distribution(self, candidates: Sequence[ScoredCandidate]) -> Dict[str, Any]:
        scores = [candidate.overall_score for candidate in candidates]
        distribution = distribution_stats(scores)

        outlier_values = set(distribution["outliers"])
        center = distribution["median"]
        high = [c.name for c in candidates if round(c.overall_score, 4) in outlier_values and c.overall_score > center]
        low = [c.name for c in candidates if round(c.overall_score, 4) in outlier_values and c.overall_score < center]

        distribution["high_outliers"] = high
        distribution["low_outliers"] = low
        distribution["outlier_impact"] = self._assess_outlier_impact(high, low, len(candidates))
        return distribution

    @staticmethod
    def _assess_outlier_impact(high: List[str], low: List[str], total: int) -> str:
        share = (len(high) + len(low)) / total * 100 if total else 0.0
        if share > 20:
            return "High variance in quality - consider reviewing the candidate source"
        elif share > 10:
            return "Moderate quality variance - some exceptional and poor performers"
        elif len(high) > len(low):
            return "Some exceptional high-quality names identified"
        elif len(low) > len(high):
            return "Some notably low-quality names requiring attention"
        return "Quality distribution is well-balanced"

    def analyze_dimensional_performance(self, candidates: Sequence[ScoredCandidate]) -> Dict[str, Any]:
        performances = []
        for dimension in TRACKED_DIMENSIONS:
            scores = [getattr(candidate.breakdown, dimension) for candidate in candidates]
            performances.append({
                "dimension": dimension,
                "average_score": round(mean(scores), 4),
                "pass_rate": round(sum(1 for s in scores if s >= DIMENSION_PASS_SCORE) / len(scores), 4),
                "variance": round(variance(scores), 4),
            })

        ordered = sorted(performances, key=lambda p: p["average_score"], reverse=True)
        weakest = ordered[-3:]
        return {
            "strongest": ordered[:3],
            "weakest": weakest,
            "correlation_insights": self.correlation_insights(candidates),
            "improvement_priorities": [self._improvement_priority(p) for p in weakest],
        }

    @staticmethod
    def correlation_insights(candidates: Sequence[ScoredCandidate]) -> List[Dict[str, Any]]:
        insights = []

        def series(field_name: str) -> List[float]:
            return [getattr(candidate.breakdown, field_name) for candidate in candidates]

        phonetic_semantic = pearson_correlation(series('phonetic_flow'), series('semantic_coherence'))
        if abs(phonetic_semantic) > 0.5:
            insights.append({
                "dimensions": ['phonetic_flow', 'semantic_coherence'],
                "correlation": round(phonetic_semantic, 4),
                "significance": 'high' if abs(phonetic_semantic) > 0.7 else 'medium',
                "insight": (
                    "Names with good phonetic flow tend to have better semantic coherence"
                    if phonetic_semantic > 0 else
                    "Phonetic flow and semantic coherence show an inverse relationship"
                ),
            })

        creativity_market = pearson_correlation(series('creativity'), series('market_appeal'))
        if abs(creativity_market) > 0.3:
            insights.append({
                "dimensions": ['creativity', 'market_appeal'],
                "correlation": round(creativity_market, 4),
                "significance": 'high' if abs(creativity_market) > 0.5 else 'medium',
                "insight": (
                    "Creative names tend to have broader market appeal"
                    if creativity_market > 0 else
                    "Trade-off between creativity and mainstream market appeal"
                ),
            })

        return insights

    @staticmethod
    def _improvement_priority(performance: Dict[str, Any]) -> Dict[str, Any]:
        average = performance["average_score"]
        if average < 0.4:
            priority = 'high'
        elif average < 0.6:
            priority = 'medium'
        else:
            priority = 'low'
        dimension = performance["dimension"]
        return {
            "dimension": dimension,
            "priority": priority,
            "current_performance": average,
            "target_performance": round(min(average + 0.2, 0.85), 4),
            "difficulty": IMPROVEMENT_DIFFICULTY.get(dimension, 'medium'),
            "strategies": IMPROVEMENT_STRATEGIES.get(dimension, []),
        }

    def analyze_threshold_effectiveness(
        self,
        candidates: Sequence[ScoredCandidate],
        qualified: Sequence[ScoredCandidate],
        threshold: float
    ) -> Dict[str, Any]:
        all_scores = [candidate.overall_score for candidate in candidates]
        qualified_scores = [candidate.overall_score for candidate in qualified]

        average_all = mean(all_scores)
        average_qualified = mean(qualified_scores) if qualified_scores else 0.0

        quality_improvement = average_qualified - average_all
        quantity_reduction = 1 - len(qualified) / len(candidates)
        satisfaction_impact = min(quality_improvement * 2, 0.5) - quantity_reduction * 0.3

        impact = {
            "quality_improvement": round(quality_improvement, 4),
            "quantity_reduction": round(quantity_reduction, 4),
            "user_satisfaction_impact": round(satisfaction_impact, 4),
            "diversity_impact": round(self._diversity_impact(qualified_scores, all_scores), 4),
            "balance_assessment": self._assess_balance(quality_improvement, quantity_reduction),
        }

        optimal = self.optimal_threshold(all_scores, threshold)
        effectiveness = max(0.0, min(1.0,
            quality_improvement * 0.5
            + (1 - quantity_reduction) * 0.3
            + (satisfaction_impact + 1) * 0.2
        ))

        return {
            "current_threshold": threshold,
            "optimal_threshold": optimal,
            "effectiveness_score": round(effectiveness, 4),
            "impact": impact,
            "adjustment": self.determine_adjustment(threshold, optimal, impact),
            "confidence_level": round(
                (min(len(candidates) / FULL_CONFIDENCE_SAMPLE, 1.0) + effectiveness) / 2, 4
            ),
        }

    @staticmethod
    def _diversity_impact(qualified_scores: List[float], all_scores: List[float]) -> float:
        if not qualified_scores:
            return -1.0
        spread = variance(all_scores)
        return variance(qualified_scores) / spread - 1 if spread > 0 else 0.0

    @staticmethod
    def _assess_balance(quality_improvement: float, quantity_reduction: float) -> str:
        if quality_improvement > 0.1 and quantity_reduction < 0.3:
            return "Excellent balance - significant quality improvement with minimal quantity impact"
        elif quality_improvement > 0.05 and quantity_reduction < 0.5:
            return "Good balance - notable quality improvement with acceptable quantity reduction"
        elif quantity_reduction > 0.7:
            return "Too restrictive - excessive quantity reduction may limit options"
        elif quality_improvement < 0.02:
            return "Too lenient - insufficient quality improvement"
        return "Moderate balance - room for optimization"

    @staticmethod
    def optimal_threshold(scores: Sequence[float], current: float) -> float:
        """Score that keeps the top 60%, moved at most 0.15 from the current threshold."""
        if not scores:
            return current
        ordered = sorted(scores, reverse=True)
        keep = -(-len(ordered) * 6 // 10)  # ceil without float error
        candidate = ordered[max(keep, 1) - 1]
        clamped = max(min(candidate, current + MAX_THRESHOLD_CHANGE), current - MAX_THRESHOLD_CHANGE)
        return round(clamped, 4)

    @staticmethod
    def determine_adjustment(current: float, optimal: float, impact: Dict[str, Any]) -> str:
        difference = round(optimal - current, 4)
        if abs(difference) < 0.05:
            return 'maintain'
        elif difference > 0.05 and impact["quality_improvement"] < 0.05:
            return 'increase'
        elif difference < -0.05 and impact["quantity_reduction"] > 0.6:
            return 'decrease'
        elif impact["user_satisfaction_impact"] < -0.2:
            return 'contextualize'
        return 'maintain'

    @staticmethod
    def identify_adaptation_opportunities(
        distribution: Dict[str, Any],
        dimensional: Dict[str, Any],
        effectiveness: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        opportunities = []

        if effectiveness["adjustment"] != 'maintain':
            opportunities.append({
                "type": "threshold_adjustment",
                "description": (
                    f"{effectiveness['adjustment']} threshold from "
                    f"{effectiveness['current_threshold']:.3f} to {effectiveness['optimal_threshold']:.3f}"
                ),
                "impact": round(abs(effectiveness['optimal_threshold'] - effectiveness['current_threshold']), 4),
                "confidence": effectiveness["confidence_level"],
            })

        weak = [p["dimension"] for p in dimensional["weakest"] if p["average_score"] < 0.5]
        if weak:
            opportunities.append({
                "type": "dimensional_weighting",
                "description": f"Adjust weighting for weak dimensions: {', '.join(weak)}",
                "impact": 0.15,
                "confidence": 0.7,
            })

        if abs(distribution["skewness"]) > 0.5:
            opportunities.append({
                "type": "context_specific",
                "description": "Use context-specific thresholds for different use cases",
                "impact": 0.2,
                "confidence": 0.6,
            })

        return sorted(opportunities, key=lambda o: o["impact"] * o["confidence"], reverse=True)

    @staticmethod
    def generate_adaptations(
        config: ThresholdConfig,
        analysis: Dict[str, Any],
        final_threshold: float
    ) -> List[Dict[str, Any]]:
        """Changes the gate made to itself during this run."""
        adaptations = []

        if final_threshold != config.overall_threshold:
            adaptations.append({
                "type": "threshold_lowered",
                "trigger": "emergency_fallback",
                "old_value": config.overall_threshold,
                "new_value": final_threshold,
                "reason": "Insufficient results with original threshold",
            })

        if analysis.get("pass_rate", 0.0) < 0.2 and analysis.get("average_quality", 0.0) > 0.6:
            adaptations.append({
                "type": "criteria_adjusted",
                "trigger": "low_pass_rate_with_good_quality",
                "old_value": 0,
                "new_value": 1,
                "reason": "Quality criteria too restrictive for available names",
            })

        return adaptations

    @staticmethod
    def generate_recommendations(analysis: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Actionable advice, high priority first."""
        recommendations = []
        effectiveness = analysis.get("threshold_effectiveness") or {}

        adjustment = effectiveness.get("adjustment", 'maintain')
        if adjustment != 'maintain':
            recommendations.append({
                "category": "threshold_optimization",
                "priority": "high",
                "recommendation": f"{adjustment.capitalize()} quality threshold",
                "rationale": f"Current threshold effectiveness: {effectiveness['effectiveness_score'] * 100:.1f}%",
                "implementation": f"Adjust threshold to {effectiveness['optimal_threshold']:.3f}",
                "expected_benefit": effectiveness["impact"]["balance_assessment"],
            })

        weak = [
            p["dimension"] for p in analysis.get("dimensional_performance", {}).get("weakest", [])
            if p["average_score"] < 0.5
        ]
        if weak:
            recommendations.append({
                "category": "quality_improvement",
                "priority": "medium",
                "recommendation": f"Focus on improving {', '.join(weak)}",
                "rationale": "These dimensions show consistently low performance",
            })

        pass_rate = analysis.get("pass_rate", 0.0)
        if analysis.get("total_processed", 0) and pass_rate < 0.3:
            recommendations.append({
                "category": "process_enhancement",
                "priority": "high",
                "recommendation": "Review the candidate source for quality issues",
                "rationale": f"Only {pass_rate * 100:.1f}% of names are meeting quality standards",
            })

        if effectiveness and effectiveness["impact"]["user_satisfaction_impact"] < -0.1:
            recommendations.append({
                "category": "user_experience",
                "priority": "medium",
                "recommendation": "Enable adaptive thresholds based on user feedback",
                "rationale": "Current threshold settings may be hurting user satisfaction",
            })

        priority_order = {'high': 3, 'medium': 2, 'low': 1}
        return sorted(recommendations, key=lambda r: priority_order[r["priority"]], reverse=True)
