"""
Diversity Optimizer for Fermata

Greedy diversification of a ranked list. The top-ranked entry is always
kept first; each following pick maximizes

    final_score * (1 - d) + prod(1 - cos(v, s) for s in selected) * d

with ties going to the earlier entry. The result is greedy, not globally
optimal, and fully deterministic. With d = 0 it reproduces the input order.
"""

from typing import List, Optional, Sequence

import structlog

from ..analytics.statistics import cosine_similarity
from .ranking_engine import RankingEntry

logger = structlog.get_logger(__name__)


def diversity_index(entries: Sequence[RankingEntry]) -> float:
    """1 - mean pairwise cosine similarity; 0 for fewer than two entries."""
    if len(entries) < 2:
        return 0.0
    vectors = [entry.candidate.vector.values() for entry in entries]
    similarities = [
        cosine_similarity(vectors[i], vectors[j])
        for i in range(len(vectors)) for j in range(i + 1, len(vectors))
    ]
    return round(max(0.0, min(1.0, 1.0 - sum(similarities) / len(similarities))), 4)


class DiversityOptimizer:
    """Quality/diversity trade-off over a ranked list."""

    def __init__(self):
        self.logger = logger.bind(component="DiversityOptimizer")

    def optimize(
        self,
        entries: Sequence[RankingEntry],
        diversity_weight: float,
        max_results: Optional[int] = None
    ) -> List[RankingEntry]:
        """
        Select up to max_results entries, trading final score for diversity.

        Args:
            entries: Entries sorted by final score, best first
            diversity_weight: d in [0, 1]
            max_results: Selection size (all entries if None)

        Returns:
            The selected entries in pick order
        """
        limit = len(entries) if max_results is None else min(max_results, len(entries))
        if limit <= 0:
            return []

        remaining = list(entries)
        selected = [remaining.pop(0)]
        selected_vectors = [selected[0].candidate.vector.values()]

        while remaining and len(selected) < limit:
            best_index = 0
            best_score = float('-inf')
            for index, entry in enumerate(remaining):
                score = self.selection_score(entry, selected_vectors, diversity_weight)
                if score > best_score:
                    best_score = score
                    best_index = index

            chosen = remaining.pop(best_index)
            selected.append(chosen)
            selected_vectors.append(chosen.candidate.vector.values())

        self.logger.debug(
            "Diversity selection complete",
            diversity_weight=diversity_weight,
            selected=len(selected),
            pool=len(entries),
            diversity_index=diversity_index(selected)
        )
        return selected

    @staticmethod
    def selection_score(
        entry: RankingEntry,
        selected_vectors: Sequence[Sequence[float]],
        diversity_weight: float
    ) -> float:
        novelty = 1.0
        vector = entry.candidate.vector.values()
        for other in selected_vectors:
            novelty *= max(0.0, 1.0 - cosine_similarity(vector, other))
        return entry.final_score * (1 - diversity_weight) + novelty * diversity_weight
