"""
Unified Rate Limiter

Token-bucket and sliding-window rate limiting shared by the word
association clients. Per-second limits use a token bucket so short bursts
are allowed; per-minute limits use a sliding window of request times.
"""

import asyncio
import time
from collections import deque
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class UnifiedRateLimiter:
    """
    Async rate limiter.

    Supports:
    - Per-second limiting with a token bucket (Datamuse, ConceptNet)
    - Per-minute limiting with a sliding window
    """

    def __init__(
        self,
        calls_per_second: Optional[float] = None,
        calls_per_minute: Optional[int] = None,
        burst_size: Optional[int] = None,
        service_name: str = "api"
    ):
        """
        Initialize rate limiter with specified limits.

        Args:
            calls_per_second: Maximum sustained calls per second
            calls_per_minute: Maximum calls in any 60 second window
            burst_size: Token bucket capacity (defaults to 2x the per-second rate)
            service_name: Service name for logging
        """
        self.calls_per_second = calls_per_second
        self.calls_per_minute = calls_per_minute
        self.service_name = service_name

        if calls_per_second:
            self.burst_size = burst_size or max(int(calls_per_second * 2), 1)
            self.tokens = float(self.burst_size)
        else:
            self.burst_size = None
            self.tokens = 0.0
        self.last_refill = time.monotonic()

        self.request_times: deque = deque()
        self.lock = asyncio.Lock()

        self.logger = logger.bind(component="UnifiedRateLimiter", service=service_name)

    @classmethod
    def for_datamuse(cls, calls_per_second: float = 5.0) -> "UnifiedRateLimiter":
        return cls(calls_per_second=calls_per_second, service_name="Datamuse")

    @classmethod
    def for_conceptnet(cls, calls_per_second: float = 1.0) -> "UnifiedRateLimiter":
        # ConceptNet's public API asks for at most 3600 requests per hour
        return cls(calls_per_second=calls_per_second, calls_per_minute=60, service_name="ConceptNet")

    async def wait_if_needed(self) -> None:
        """Block until a request may be made, then record it."""
        async with self.lock:
            now = time.monotonic()
            self._trim_window(now)

            wait_time = max(self._token_wait(now), self._window_wait(now))
            if wait_time > 0:
                self.logger.debug("Rate limit wait", wait_time=round(wait_time, 3))
                await asyncio.sleep(wait_time)
                now = time.monotonic()
                self._refill(now)

            self.request_times.append(now)
            if self.calls_per_second:
                self.tokens = max(0.0, self.tokens - 1)

    def _refill(self, now: float) -> None:
        if not self.calls_per_second:
            return
        elapsed = now - self.last_refill
        self.tokens = min(float(self.burst_size), self.tokens + elapsed * self.calls_per_second)
        self.last_refill = now

    def _token_wait(self, now: float) -> float:
        if not self.calls_per_second:
            return 0.0
        self._refill(now)
        if self.tokens >= 1:
            return 0.0
        return (1.0 - self.tokens) / self.calls_per_second

    def _window_wait(self, now: float) -> float:
        if not self.calls_per_minute or len(self.request_times) < self.calls_per_minute:
            return 0.0
        return max(0.0, 60 - (now - self.request_times[0]))

    def _trim_window(self, now: float) -> None:
        cutoff = now - 60
        while self.request_times and self.request_times[0] <= cutoff:
            self.request_times.popleft()

    def get_current_usage(self) -> Dict[str, Any]:
        now = time.monotonic()
        usage: Dict[str, Any] = {
            "service": self.service_name,
            "requests_last_minute": sum(1 for t in self.request_times if t > now - 60),
        }
        if self.calls_per_second:
            usage["tokens_available"] = round(self.tokens, 3)
            usage["burst_capacity"] = self.burst_size
        if self.calls_per_minute:
            usage["calls_per_minute_limit"] = self.calls_per_minute
        return usage

    def reset(self) -> None:
        """Reset limiter state."""
        self.request_times.clear()
        if self.calls_per_second:
            self.tokens = float(self.burst_size)
        self.last_refill = time.monotonic()
