import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, TypeVar

from .errors import is_rate_limit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 5


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_RETRIES,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run an external call, retrying rate-limit failures with exponential backoff.

    The delay after failed attempt ``i`` (0-indexed) is ``2**i`` seconds plus
    up to one second of random jitter. Any other failure, and the failure of
    the last attempt, is re-raised unchanged.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total number of attempts
        sleep: Awaitable sleep used for the backoff delay

    Returns:
        Whatever the operation returns
    """
    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_rate_limit_error(e) or attempt >= max_attempts - 1:
                raise
            delay = (2 ** attempt) + random.random()
            logger.warning(
                f"⏳ Rate limit exceeded. Retrying in {delay:.1f}s... "
                f"(Attempt {attempt + 1}/{max_attempts})"
            )
            await sleep(delay)
    raise RuntimeError("with_retry called with max_attempts < 1")
