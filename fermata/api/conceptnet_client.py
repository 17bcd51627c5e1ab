"""
ConceptNet API Client

Concept-graph lookups used to link the words of a candidate name:
- /related/c/en/{word}: semantically related English terms
- /query?start=/c/en/{word}: outgoing edges from the concept

Edges and related terms below the minimum weight are discarded.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog

from .base_client import BaseAPIClient
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)

MIN_EDGE_WEIGHT = 0.5
_CLEAN_WORD = re.compile(r"^[a-z][a-z ]{1,18}[a-z]$")


@dataclass
class ConceptRelation:
    """A concept related to the queried word."""
    word: str
    weight: float
    relation: str


def _items(data: Any, key: str) -> List[Dict[str, Any]]:
    """Dict entries under key; anything else in the payload is skipped."""
    entries = data.get(key) if isinstance(data, dict) else None
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


def _weight(entry: Dict[str, Any]) -> float:
    try:
        return float(entry.get("weight", 0.0))
    except (TypeError, ValueError):
        return 0.0


def concept_label(uri: str) -> str:
    """'/c/en/rock_band/n' -> 'rock band'."""
    parts = uri.split('/')
    label = parts[3] if len(parts) > 3 else uri
    return label.replace('_', ' ').strip().lower()


class ConceptNetClient(BaseAPIClient):
    """ConceptNet client with shared rate limiting and retries."""

    BASE_URL = "https://api.conceptnet.io"

    def __init__(
        self,
        base_url: Optional[str] = None,
        rate_limiter: Optional[UnifiedRateLimiter] = None,
        timeout: int = 5,
        min_weight: float = MIN_EDGE_WEIGHT
    ):
        super().__init__(
            base_url=base_url or self.BASE_URL,
            rate_limiter=rate_limiter or UnifiedRateLimiter.for_conceptnet(),
            timeout=timeout,
            service_name="ConceptNet"
        )
        self.min_weight = min_weight

    def _extract_api_error(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return f"unexpected response type {type(data).__name__}"
        if data.get("error"):
            error = data["error"]
            return error.get("details", str(error)) if isinstance(error, dict) else str(error)
        return None

    async def related(self, word: str, limit: int = 20) -> List[ConceptRelation]:
        data = await self._make_request(
            f"related/c/en/{self._slug(word)}",
            params={"filter": "/c/en", "limit": limit}
        )
        results = []
        for term in _items(data, "related"):
            uri = str(term.get("@id", ""))
            weight = _weight(term)
            if uri.startswith("/c/en/") and weight >= self.min_weight:
                results.append(ConceptRelation(concept_label(uri), weight, "RelatedTo"))
        return self._clean(results, word, limit)

    async def edges(self, word: str, limit: int = 20) -> List[ConceptRelation]:
        data = await self._make_request(
            "query",
            params={"start": f"/c/en/{self._slug(word)}", "limit": limit}
        )
        results = []
        for edge in _items(data, "edges"):
            end = edge.get("end")
            if not isinstance(end, dict):
                continue
            weight = _weight(edge)
            if end.get("language") != "en" or weight < self.min_weight:
                continue
            label = end.get("label") or concept_label(end.get("@id", ""))
            rel = edge.get("rel")
            relation = rel.get("label", "") if isinstance(rel, dict) else ""
            results.append(ConceptRelation(str(label).lower(), weight, relation))
        return self._clean(results, word, limit)

    @staticmethod
    def _slug(word: str) -> str:
        return word.strip().lower().replace(' ', '_')

    @staticmethod
    def _clean(relations: List[ConceptRelation], word: str, limit: int) -> List[ConceptRelation]:
        """Drop the query word itself and non-word labels; dedupe keeping the heaviest."""
        best = {}
        query = word.strip().lower()
        for relation in relations:
            label = relation.word.strip()
            if label == query or not _CLEAN_WORD.match(label):
                continue
            if label not in best or relation.weight > best[label].weight:
                best[label] = ConceptRelation(label, relation.weight, relation.relation)
        return sorted(best.values(), key=lambda r: r.weight, reverse=True)[:limit]
