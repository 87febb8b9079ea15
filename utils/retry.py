"""Async retry decorator with exponential backoff."""

import asyncio
import functools
import re
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar
import structlog

log = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

# Patterns that look like API keys or session tokens in URLs
_SENSITIVE_PARAMS = re.compile(
    r"((?:token|api_?key|crumb|secret)=)[^&\s'\")]+",
    re.IGNORECASE,
)


def sanitize_error(error: str) -> str:
    """Strip API keys and tokens from error messages."""
    return _SENSITIVE_PARAMS.sub(r"\1[REDACTED]", error)


def async_retry(
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Retry an async callable on ``exceptions``, doubling the delay each attempt."""

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise
                    delay = min(base_delay * (2 ** attempt), max_delay)
                    attempt += 1
                    log.warning(
                        "retry_attempt",
                        func=func.__name__,
                        attempt=attempt,
                        max_retries=max_retries,
                        delay=delay,
                        error=sanitize_error(str(e)),
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
