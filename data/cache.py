"""In-memory TTL cache and the decorator that applies it to manager methods."""

import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")


class TTLCache:
    """Simple in-memory cache with per-key TTL."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        """Get a cached value, or None if expired/missing."""
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() > expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._store[key] = (value, time.monotonic() + ttl)

    def clear(self) -> None:
        self._store.clear()

    def cleanup(self) -> int:
        """Remove expired entries. Returns count of removed entries."""
        now = time.monotonic()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]
        return len(expired)


def cache_key(prefix: str, *args: Any, **kwargs: Any) -> str:
    parts = [prefix, *(str(a) for a in args), *(f"{k}={v}" for k, v in sorted(kwargs.items()))]
    return ":".join(parts)


def cached(prefix: str, ttl: int) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Cache an async method's result in ``self.cache`` keyed by its arguments.

    Exceptions are not cached.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            key = cache_key(prefix, *args, **kwargs)
            hit = self.cache.get(key)
            if hit is not None:
                return hit
            value = await func(self, *args, **kwargs)
            self.cache.set(key, value, ttl)
            return value

        return wrapper  # type: ignore[return-value]

    return decorator
