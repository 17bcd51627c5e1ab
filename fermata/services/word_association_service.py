"""
Word Association Service

Related-concept and synonym lookups for the semantic analyzer. ConceptNet
is the primary source; Datamuse "means like" results stand in when
ConceptNet is unreachable. Lookups never raise: a failed lookup is an
empty list, and successful lookups are cached.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from ..api import ConceptNetClient, DatamuseClient, UnifiedRateLimiter
from ..exceptions import ExternalServiceError

logger = structlog.get_logger(__name__)


class WordAssociationService:
    """
    Cached word association lookups.

    Each lookup opens its own client session; the rate limiters are shared
    so concurrent analyses stay inside each API's limits.
    """

    def __init__(
        self,
        cache_manager: Optional["CacheManager"] = None,
        datamuse_base_url: Optional[str] = None,
        conceptnet_base_url: Optional[str] = None,
        datamuse_limiter: Optional[UnifiedRateLimiter] = None,
        conceptnet_limiter: Optional[UnifiedRateLimiter] = None,
        timeout: int = 5
    ):
        """
        Args:
            cache_manager: Cache manager for the "associations" cache (optional)
            datamuse_base_url: Datamuse base URL override
            conceptnet_base_url: ConceptNet base URL override
            datamuse_limiter: Shared Datamuse rate limiter
            conceptnet_limiter: Shared ConceptNet rate limiter
            timeout: HTTP timeout in seconds
        """
        self.cache_manager = cache_manager
        self.datamuse_base_url = datamuse_base_url
        self.conceptnet_base_url = conceptnet_base_url
        self.datamuse_limiter = datamuse_limiter or UnifiedRateLimiter.for_datamuse()
        self.conceptnet_limiter = conceptnet_limiter or UnifiedRateLimiter.for_conceptnet()
        self.timeout = timeout

        self.logger = logger.bind(service="WordAssociationService")

    @classmethod
    def from_settings(cls, settings, cache_manager=None) -> "WordAssociationService":
        return cls(
            cache_manager=cache_manager,
            datamuse_base_url=settings.datamuse_base_url,
            conceptnet_base_url=settings.conceptnet_base_url,
            datamuse_limiter=UnifiedRateLimiter.for_datamuse(settings.datamuse_calls_per_second),
            conceptnet_limiter=UnifiedRateLimiter.for_conceptnet(settings.conceptnet_calls_per_second),
            timeout=settings.http_timeout_seconds,
        )

    def _conceptnet(self) -> ConceptNetClient:
        return ConceptNetClient(
            base_url=self.conceptnet_base_url,
            rate_limiter=self.conceptnet_limiter,
            timeout=self.timeout
        )

    def _datamuse(self) -> DatamuseClient:
        return DatamuseClient(
            base_url=self.datamuse_base_url,
            rate_limiter=self.datamuse_limiter,
            timeout=self.timeout
        )

    def _cached(self, *key_parts: Any) -> Optional[Any]:
        if self.cache_manager is None:
            return None
        return self.cache_manager.get("associations", self.cache_manager.generate_key(*key_parts))

    def _store(self, value: Any, *key_parts: Any) -> None:
        if self.cache_manager is not None and value:
            self.cache_manager.set("associations", self.cache_manager.generate_key(*key_parts), value)

    async def related_concepts(self, word: str, limit: int = 20) -> List[Dict[str, Any]]:
        """
        Concepts related to a word, strongest first.

        Returns:
            List of {"word": str, "weight": float}; empty when both
            backends fail
        """
        word = word.strip().lower()
        if not word:
            return []

        cached = self._cached("related", word, limit)
        if cached is not None:
            return cached

        try:
            concepts = await self._conceptnet_concepts(word, limit)
        except ExternalServiceError as e:
            self.logger.warning("ConceptNet lookup failed, trying Datamuse", word=word, error=str(e))
            try:
                concepts = await self._datamuse_concepts(word, limit)
            except ExternalServiceError as e:
                self.logger.warning("Datamuse lookup failed", word=word, error=str(e))
                return []

        self._store(concepts, "related", word, limit)
        self.logger.debug("Related concepts found", word=word, count=len(concepts))
        return concepts

    async def synonyms(self, word: str, limit: int = 20) -> List[str]:
        """Datamuse synonyms for a word; empty on failure."""
        word = word.strip().lower()
        if not word:
            return []

        cached = self._cached("synonyms", word, limit)
        if cached is not None:
            return cached

        try:
            async with self._datamuse() as client:
                results = await client.synonyms(word, max_results=limit)
        except ExternalServiceError as e:
            self.logger.warning("Synonym lookup failed", word=word, error=str(e))
            return []

        synonyms = [result.word for result in results][:limit]
        self._store(synonyms, "synonyms", word, limit)
        return synonyms

    async def _conceptnet_concepts(self, word: str, limit: int) -> List[Dict[str, Any]]:
        async with self._conceptnet() as client:
            results = await asyncio.gather(
                client.related(word, limit),
                client.edges(word, limit),
                return_exceptions=True
            )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        related, edges = results

        merged: Dict[str, float] = {}
        for relation in related + edges:
            merged[relation.word] = max(merged.get(relation.word, 0.0), relation.weight)

        ranked = sorted(merged.items(), key=lambda item: item[1], reverse=True)[:limit]
        return [{"word": label, "weight": round(weight, 4)} for label, weight in ranked]

    async def _datamuse_concepts(self, word: str, limit: int) -> List[Dict[str, Any]]:
        async with self._datamuse() as client:
            results = await client.means_like(word, max_results=limit)

        top = max((result.score for result in results), default=0) or 1
        return [
            {"word": result.word.lower(), "weight": round(result.score / top, 4)}
            for result in results
            if result.word.lower() != word
        ][:limit]

    def get_service_info(self) -> Dict[str, Any]:
        return {
            "cache_enabled": self.cache_manager is not None,
            "datamuse_usage": self.datamuse_limiter.get_current_usage(),
            "conceptnet_usage": self.conceptnet_limiter.get_current_usage(),
        }
