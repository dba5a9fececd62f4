"""Retry-with-backoff primitive shared by every outbound call."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from feed_mirror.errors import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    retryable: Callable[[BaseException], bool] = is_retryable,
    description: str | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await `fn()` up to `attempts` times with exponential backoff.

    The delay before retry n (0-based) is `base_delay * 2**n`. Errors for which
    `retryable` returns False are raised immediately; the last error is raised
    once attempts are exhausted.
    """
    name = description or getattr(fn, "__name__", repr(fn))
    attempts = max(1, attempts)

    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            if not retryable(e) or attempt == attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Retry %d/%d for %s in %.1fs: %s", attempt + 1, attempts - 1, name, delay, e
            )
            await sleep(delay)
