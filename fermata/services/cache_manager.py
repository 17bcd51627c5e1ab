"""
Cache Management System

Provides file-based caching with TTL for analyzer results and word
association lookups. Safe for concurrent readers and writers; the last
write for a key wins.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from diskcache import Cache

logger = structlog.get_logger(__name__)


class CacheManager:
    """
    File-based cache manager with TTL support.

    Handles caching for:
    - Per-analyzer name analyses, keyed by (analyzer, name, context)
    - Datamuse / ConceptNet association lookups
    - Adaptive learning history
    """

    def __init__(self, cache_dir: str = "data/cache"):
        """
        Initialize cache manager.

        Args:
            cache_dir: Directory for cache storage
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.caches = {
            "analysis": Cache(str(self.cache_dir / "analysis")),
            "associations": Cache(str(self.cache_dir / "associations")),
            "learning": Cache(str(self.cache_dir / "learning")),
        }

        # Default TTL values (in seconds); None keeps entries until pruned
        self.default_ttl = {
            "analysis": 90 * 60,              # 90 minutes
            "associations": 7 * 24 * 3600,    # 1 week
            "learning": None,
        }

        logger.info(
            "Cache manager initialized",
            cache_dir=str(self.cache_dir),
            cache_types=list(self.caches.keys())
        )

    @staticmethod
    def generate_key(*args, **kwargs) -> str:
        """Generate cache key from arguments."""
        key_data = {
            "args": args,
            "kwargs": sorted(kwargs.items())
        }
        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return hashlib.md5(key_str.encode()).hexdigest()

    def get(self, cache_type: str, key: str, default: Any = None) -> Any:
        """
        Get value from cache.

        Args:
            cache_type: Type of cache (analysis, associations, learning)
            key: Cache key
            default: Default value if not found

        Returns:
            Cached value or default
        """
        if cache_type not in self.caches:
            logger.warning("Invalid cache type", cache_type=cache_type)
            return default

        try:
            value = self.caches[cache_type].get(key, default)
            logger.debug(
                "Cache hit" if value is not default else "Cache miss",
                cache_type=cache_type,
                key=key[:16] + "..."
            )
            return value

        except Exception as e:
            logger.error(
                "Cache get failed",
                cache_type=cache_type,
                key=key[:16] + "...",
                error=str(e)
            )
            return default

    def set(self, cache_type: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            cache_type: Type of cache
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (uses default if None)

        Returns:
            True if successful
        """
        if cache_type not in self.caches:
            logger.warning("Invalid cache type", cache_type=cache_type)
            return False

        try:
            if ttl is None:
                ttl = self.default_ttl.get(cache_type)
            self.caches[cache_type].set(key, value, expire=ttl)
            logger.debug("Cache set", cache_type=cache_type, key=key[:16] + "...", ttl=ttl)
            return True

        except Exception as e:
            logger.error(
                "Cache set failed",
                cache_type=cache_type,
                key=key[:16] + "...",
                error=str(e)
            )
            return False

    def delete(self, cache_type: str, key: str) -> bool:
        """Delete a key; returns True if it existed."""
        if cache_type not in self.caches:
            return False
        try:
            return bool(self.caches[cache_type].delete(key))
        except Exception as e:
            logger.error("Cache delete failed", cache_type=cache_type, error=str(e))
            return False

    def exists(self, cache_type: str, key: str) -> bool:
        """Check whether a non-expired entry exists."""
        if cache_type not in self.caches:
            return False
        try:
            return key in self.caches[cache_type]
        except Exception as e:
            logger.error("Cache lookup failed", cache_type=cache_type, error=str(e))
            return False

    def get_cache(self, cache_type: str) -> Cache:
        """Underlying diskcache instance, for callers that need transactions."""
        return self.caches[cache_type]

    def clear_cache(self, cache_type: Optional[str] = None) -> None:
        """Clear one cache type, or all of them."""
        targets = [cache_type] if cache_type else list(self.caches)
        for name in targets:
            if name in self.caches:
                self.caches[name].clear()
                logger.info("Cache cleared", cache_type=name)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Entry counts and disk usage per cache type."""
        stats = {}
        for cache_name, cache in self.caches.items():
            try:
                stats[cache_name] = {
                    "size": len(cache),
                    "volume_bytes": cache.volume(),
                }
            except Exception as e:
                stats[cache_name] = {"error": str(e)}
        return stats

    def close(self) -> None:
        """Close all cache connections."""
        for cache_name, cache in self.caches.items():
            try:
                cache.close()
                logger.debug("Cache closed", cache_name=cache_name)
            except Exception as e:
                logger.error("Failed to close cache", cache_name=cache_name, error=str(e))

