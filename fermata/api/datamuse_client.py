"""
Datamuse API Client

Word-finding queries against the Datamuse /words endpoint, used for
meaning-related words and synonyms.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from .base_client import BaseAPIClient
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)


@dataclass
class DatamuseWord:
    """A single Datamuse result."""
    word: str
    score: int = 0
    tags: List[str] = field(default_factory=list)


class DatamuseClient(BaseAPIClient):
    """Datamuse client with shared rate limiting and retries."""

    BASE_URL = "https://api.datamuse.com"

    def __init__(
        self,
        base_url: Optional[str] = None,
        rate_limiter: Optional[UnifiedRateLimiter] = None,
        timeout: int = 5
    ):
        super().__init__(
            base_url=base_url or self.BASE_URL,
            rate_limiter=rate_limiter or UnifiedRateLimiter.for_datamuse(),
            timeout=timeout,
            service_name="Datamuse"
        )

    def _extract_api_error(self, data: Any) -> Optional[str]:
        if isinstance(data, list):
            return None
        return f"unexpected response type {type(data).__name__}"

    async def find_words(self, **query: Any) -> List[DatamuseWord]:
        """
        Raw /words query. Keyword arguments are Datamuse parameters
        (ml, rel_syn, sl, max, ...); None values are dropped.
        """
        params: Dict[str, Any] = {key: value for key, value in query.items() if value is not None}
        data = await self._make_request("words", params=params)
        words = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("word"), str):
                continue
            try:
                score = int(item.get("score", 0))
            except (TypeError, ValueError):
                score = 0
            tags = item.get("tags")
            words.append(DatamuseWord(word=item["word"], score=score, tags=tags if isinstance(tags, list) else []))
        return words

    async def means_like(self, word: str, max_results: int = 20) -> List[DatamuseWord]:
        return await self.find_words(ml=word, max=max_results)

    async def synonyms(self, word: str, max_results: int = 20) -> List[DatamuseWord]:
        return await self.find_words(rel_syn=word, max=max_results)
