"""Base collector with retry, backoff, circuit breaker, and rate limiting."""

import time
import aiohttp
import structlog
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlparse
from data.rate_limiter import RateLimiter
from utils.retry import async_retry

log = structlog.get_logger(__name__)

CIRCUIT_TTL = 3600.0  # skip endpoints that refused auth for 1 hour


class NonRetryableError(Exception):
    """Raised for HTTP errors that should NOT be retried (401, 402, 403, 404)."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        super().__init__(message)


class BaseCollector(ABC):
    """Abstract base class for provider collectors."""

    api_name: str = "unknown"
    user_agent: str = "EarningsReconciler/0.1"
    request_timeout: float = 15.0

    def __init__(self, rate_limiter: RateLimiter) -> None:
        self.rate_limiter = rate_limiter
        self._session: aiohttp.ClientSession | None = None
        self._circuit_open: dict[str, float] = {}  # endpoint path -> expiry

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def _check_circuit(self, path: str) -> None:
        expiry = self._circuit_open.get(path)
        if expiry is None:
            return
        if time.monotonic() < expiry:
            raise NonRetryableError(403, f"Circuit open for {self.api_name}:{path}")
        del self._circuit_open[path]

    @async_retry(max_retries=2, base_delay=0.5, exceptions=(aiohttp.ClientError,))
    async def _request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Rate-limited HTTP GET returning decoded JSON."""
        path = urlparse(url).path
        self._check_circuit(path)

        await self.rate_limiter.acquire(self.api_name)
        session = await self.get_session()

        async with session.get(url, params=params, headers=headers) as resp:
            if resp.status == 429:
                log.warning("rate_limited_by_server", api=self.api_name, path=path)
                raise aiohttp.ClientError(f"{self.api_name} rate limit reached")
            if resp.status in (401, 402, 403):
                log.warning("non_retryable_http_error", api=self.api_name, status=resp.status, path=path)
                self._circuit_open[path] = time.monotonic() + CIRCUIT_TTL
                raise NonRetryableError(resp.status, f"{self.api_name} returned {resp.status} for {path}")
            if resp.status == 404:
                raise NonRetryableError(resp.status, f"{self.api_name} returned 404 for {path}")
            resp.raise_for_status()
            return await resp.json(content_type=None)

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the API is reachable."""
        ...
