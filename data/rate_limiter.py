"""Per-API sliding window rate limiter."""

import asyncio
import time
from collections import defaultdict, deque
import structlog

log = structlog.get_logger(__name__)

WINDOW_SECONDS = 60.0
DEFAULT_LIMIT = 60


class RateLimiter:
    """Caps requests per API over a rolling one-minute window."""

    def __init__(self) -> None:
        self._calls: dict[str, deque[float]] = defaultdict(deque)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._limits: dict[str, int] = {}

    def configure(self, api_name: str, requests_per_minute: int) -> None:
        self._limits[api_name] = requests_per_minute

    def _prune(self, api_name: str, now: float) -> deque[float]:
        calls = self._calls[api_name]
        while calls and now - calls[0] >= WINDOW_SECONDS:
            calls.popleft()
        return calls

    async def acquire(self, api_name: str) -> None:
        """Wait until a request slot is free, then claim it."""
        limit = self._limits.get(api_name, DEFAULT_LIMIT)
        async with self._locks[api_name]:
            calls = self._prune(api_name, time.monotonic())
            if len(calls) >= limit:
                wait = WINDOW_SECONDS - (time.monotonic() - calls[0])
                if wait > 0:
                    log.info("rate_limit_throttle", api=api_name, wait_seconds=round(wait, 2))
                    await asyncio.sleep(wait)
                calls = self._prune(api_name, time.monotonic())
            calls.append(time.monotonic())

    def get_usage(self) -> dict[str, dict[str, int]]:
        now = time.monotonic()
        return {
            api_name: {"used": len(self._prune(api_name, now)), "limit": limit}
            for api_name, limit in self._limits.items()
        }
