"""Retry and caching wrapper for calls into external dependencies."""

import functools
import time
from typing import Any, Callable, Optional

from sqlalchemy.exc import OperationalError

from parkledger.logging_config import get_logger

logger = get_logger("resilience")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (0-based), capped at max_delay."""
    return min(max_delay, base_delay * (2 ** attempt))


def resilient(
    func: Callable[..., Any],
    *,
    ttl: Optional[float] = None,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (OperationalError,),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Callable[..., Any]:
    """Wrap func with bounded exponential-backoff retry and optional TTL caching.

    Each wrapper owns its own cache, so two wrappers around the same function
    never share results. Arguments must be hashable when ttl is set.

    Args:
        func: Callable to wrap
        ttl: Seconds a successful result stays cached per arguments; None disables caching
        max_attempts: Total calls made before the last error is re-raised
        base_delay: Delay before the first retry, doubled on each further retry
        max_delay: Upper bound for a single delay
        retry_on: Exception types that trigger a retry; anything else propagates at once
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        Wrapped callable with an ``invalidate()`` method that empties the cache
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    cache: dict[Any, tuple[float, Any]] = {}

    def call_with_retry(*args, **kwargs):
        for attempt in range(max_attempts):
            try:
                return func(*args, **kwargs)
            except retry_on as e:
                if attempt == max_attempts - 1:
                    raise
                delay = backoff_delay(attempt, base_delay, max_delay)
                logger.warning(
                    "Call to %s failed (%s), retrying in %.2fs",
                    getattr(func, "__name__", repr(func)),
                    e,
                    delay,
                    extra={"attempt": attempt + 1, "max_attempts": max_attempts},
                )
                sleep(delay)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if ttl is None:
            return call_with_retry(*args, **kwargs)

        key = (args, tuple(sorted(kwargs.items())))
        now = clock()
        hit = cache.get(key)
        if hit is not None and now - hit[0] < ttl:
            return hit[1]

        result = call_with_retry(*args, **kwargs)
        cache[key] = (clock(), result)
        return result

    wrapper.invalidate = cache.clear
    return wrapper
