"""
Positioning Analyzer for Fermata

Places candidates in the creativity x market appeal plane:
- Fixed-radius, single-pass clustering (each cluster keeps its seed point)
- Quadrant labels for each cluster
- Empty cells of a 4x4 grid reported as opportunity gaps
"""

import math
from typing import Any, Dict, List, Sequence, Tuple

import structlog

from ..analytics.statistics import mean
from ..models import ScoredCandidate

logger = structlog.get_logger(__name__)

CLUSTER_RADIUS = 0.15
GRID_SIZE = 4
MAX_GAPS = 5


def quadrant_label(creativity: float, market_appeal: float) -> str:
    if creativity >= 0.5 and market_appeal >= 0.5:
        return "creative-commercial"
    if creativity >= 0.5:
        return "artistic-niche"
    if market_appeal >= 0.5:
        return "mainstream-safe"
    return "underdeveloped"


class PositioningAnalyzer:
    """2D market positioning of a batch."""

    def __init__(self, radius: float = CLUSTER_RADIUS, grid_size: int = GRID_SIZE):
        self.radius = radius
        self.grid_size = grid_size
        self.logger = logger.bind(component="PositioningAnalyzer")

    @staticmethod
    def point(candidate: ScoredCandidate) -> Tuple[float, float]:
        return candidate.breakdown.creativity, candidate.breakdown.market_appeal

    def cluster(self, candidates: Sequence[ScoredCandidate]) -> List[Dict[str, Any]]:
        """
        Assign each candidate to the first cluster whose seed lies within
        the radius, else start a new cluster. One pass, O(n^2).
        """
        seeds: List[Tuple[float, float]] = []
        members: List[List[ScoredCandidate]] = []

        for candidate in candidates:
            x, y = self.point(candidate)
            for index, (sx, sy) in enumerate(seeds):
                if math.hypot(x - sx, y - sy) <= self.radius:
                    members[index].append(candidate)
                    break
            else:
                seeds.append((x, y))
                members.append([candidate])

        clusters = []
        for index, group in enumerate(members, start=1):
            center_x = round(mean([c.breakdown.creativity for c in group]), 4)
            center_y = round(mean([c.breakdown.market_appeal for c in group]), 4)
            clusters.append({
                "id": f"cluster_{index}",
                "center": {"creativity": center_x, "market_appeal": center_y},
                "members": [c.name for c in group],
                "size": len(group),
                "quadrant": quadrant_label(center_x, center_y),
                "average_quality": round(mean([c.overall_score for c in group]), 4),
            })
        return clusters

    def opportunity_gaps(self, candidates: Sequence[ScoredCandidate]) -> List[Dict[str, Any]]:
        """Empty grid cells, most desirable (high creativity and appeal) first."""
        if not candidates:
            return []
        step = 1.0 / self.grid_size
        occupied = set()
        for candidate in candidates:
            x, y = self.point(candidate)
            occupied.add((min(int(x / step), self.grid_size - 1), min(int(y / step), self.grid_size - 1)))

        gaps = []
        for col in range(self.grid_size):
            for row in range(self.grid_size):
                if (col, row) in occupied:
                    continue
                center_x = round((col + 0.5) * step, 4)
                center_y = round((row + 0.5) * step, 4)
                gaps.append({
                    "creativity_range": [round(col * step, 4), round((col + 1) * step, 4)],
                    "market_appeal_range": [round(row * step, 4), round((row + 1) * step, 4)],
                    "center": {"creativity": center_x, "market_appeal": center_y},
                    "quadrant": quadrant_label(center_x, center_y),
                    "opportunity_score": round((center_x + center_y) / 2, 4),
                })

        gaps.sort(key=lambda gap: gap["opportunity_score"], reverse=True)
        return gaps[:MAX_GAPS]

    def analyze(self, candidates: Sequence[ScoredCandidate]) -> Dict[str, Any]:
        clusters = self.cluster(candidates)
        gaps = self.opportunity_gaps(candidates)
        self.logger.debug("Positioning complete", clusters=len(clusters), gaps=len(gaps))
        return {"clusters": clusters, "gaps": gaps}
