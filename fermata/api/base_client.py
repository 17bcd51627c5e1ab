"""
Base API Client

Shared aiohttp request handling for the word association backends:
session lifecycle, rate limiting, retries with exponential backoff, and
translation of HTTP failures into ExternalServiceError.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
import structlog

from ..exceptions import ExternalServiceError
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)

MAX_BACKOFF_SECONDS = 30.0


class BaseAPIClient(ABC):
    """
    Base HTTP client. Use as an async context manager:

        async with DatamuseClient() as client:
            words = await client.means_like("storm")
    """

    def __init__(
        self,
        base_url: str,
        rate_limiter: UnifiedRateLimiter,
        timeout: int = 5,
        service_name: str = "api"
    ):
        """
        Args:
            base_url: Base URL for the API
            rate_limiter: Rate limiter shared by this client's requests
            timeout: Total request timeout in seconds
            service_name: Service name for logging and the User-Agent
        """
        self.base_url = base_url.rstrip('/')
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.service_name = service_name
        self.session: Optional[aiohttp.ClientSession] = None

        self.logger = logger.bind(component="BaseAPIClient", service=service_name)

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'User-Agent': f'Fermata-{self.service_name}/1.0'}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        retries: int = 2
    ) -> Any:
        """
        Rate-limited GET returning parsed JSON.

        Raises:
            ExternalServiceError: On client errors, exhausted retries, or an
                error reported in the response body
        """
        if self.session is None:
            raise ExternalServiceError(self.service_name, "client not initialized, use 'async with'")

        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(retries + 1):
            await self.rate_limiter.wait_if_needed()
            try:
                async with self.session.get(url, params=params or {}) as response:
                    if response.status == 200:
                        data = await self._read_json(response, endpoint)
                        error = self._extract_api_error(data)
                        if error:
                            raise ExternalServiceError(self.service_name, error, response.status)
                        return data

                    if response.status == 429 or response.status >= 500:
                        self.logger.warning(
                            "Retryable HTTP status",
                            status=response.status,
                            endpoint=endpoint,
                            attempt=attempt + 1
                        )
                        if attempt < retries:
                            await self._backoff(attempt, response.headers.get('Retry-After'))
                            continue

                    raise ExternalServiceError(
                        self.service_name, f"HTTP {response.status} for {endpoint}", response.status
                    )

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                self.logger.warning(
                    "Request failed",
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    error=str(e),
                    error_type=type(e).__name__
                )
                if attempt == retries:
                    raise ExternalServiceError(self.service_name, f"request failed: {e}") from e
                await self._backoff(attempt)

        raise ExternalServiceError(self.service_name, f"request failed after {retries + 1} attempts")

    async def _read_json(self, response: aiohttp.ClientResponse, endpoint: str) -> Any:
        """Decode a 200 body; a maintenance page or truncated body is a service failure."""
        try:
            return await response.json(content_type=None)
        except (ValueError, aiohttp.ContentTypeError) as e:
            self.logger.warning("Malformed response body", endpoint=endpoint, error=str(e))
            raise ExternalServiceError(
                self.service_name, f"malformed JSON body for {endpoint}", response.status
            ) from e

    @abstractmethod
    def _extract_api_error(self, data: Any) -> Optional[str]:
        """Service-specific error message in a 200 response, if any."""
        pass

    async def _backoff(self, attempt: int, retry_after: Optional[str] = None) -> None:
        delay = None
        if retry_after:
            try:
                delay = float(retry_after)
            except ValueError:
                delay = None
        if delay is None:
            base = 0.5 * (2 ** attempt)
            delay = base + random.uniform(0.1, 0.3) * base
        delay = min(delay, MAX_BACKOFF_SECONDS)
        self.logger.debug("Backing off", attempt=attempt + 1, delay=round(delay, 3))
        await asyncio.sleep(delay)

    def get_service_info(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "base_url": self.base_url,
            "timeout": self.timeout,
            "session_active": self.session is not None,
        }
