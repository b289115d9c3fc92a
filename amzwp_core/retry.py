"""
Retry Logic for Network Operations

Retry decorators and helpers with exponential backoff for the remote
collaborators (product oracle, WordPress writes). Relay racing does not
retry: a failed relay is simply a lost race.

Usage:
    from amzwp_core.retry import retry_network

    @retry_network(max_attempts=3)
    async def lookup(asin):
        ...
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, Optional, Type, Tuple

import aiohttp

from .errors import NetworkError

logger = logging.getLogger(__name__)


class RetryExhaustedError(NetworkError):
    """All retry attempts have been exhausted"""
    pass


RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    NetworkError,
    asyncio.TimeoutError,
    aiohttp.ClientError,
    ConnectionError,
)


def backoff_delay(attempt: int, initial_delay: float, max_delay: float, exponential_base: float = 2.0) -> float:
    """Delay before the retry that follows `attempt` (1-based)."""
    return min(initial_delay * (exponential_base ** (attempt - 1)), max_delay)


def is_retryable_status(status_code: Optional[int]) -> bool:
    """Client errors other than 408/429 will not improve on retry."""
    if status_code is None:
        return True
    if status_code in (408, 429):
        return True
    return status_code >= 500


def retry_network(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = RETRYABLE_EXCEPTIONS,
):
    """
    Decorator for retrying async functions with exponential backoff.

    A NetworkError carrying a non-retryable HTTP status is re-raised at once.

    Args:
        max_attempts: Maximum number of attempts
        initial_delay: Delay before the first retry in seconds
        max_delay: Upper bound for a single delay
        exponential_base: Base for exponential backoff calculation
        retryable_exceptions: Exceptions that trigger a retry
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e
                    if isinstance(e, NetworkError) and not is_retryable_status(e.status_code):
                        raise

                    if attempt == max_attempts:
                        logger.error(
                            f"Retry exhausted for {func.__name__} after {max_attempts} attempts: {e}"
                        )
                        raise RetryExhaustedError(
                            f"Failed after {max_attempts} attempts: {e}",
                            getattr(e, "status_code", None),
                        ) from e

                    delay = backoff_delay(attempt, initial_delay, max_delay, exponential_base)
                    logger.warning(
                        f"Attempt {attempt}/{max_attempts} failed for {func.__name__}: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)

            raise last_exception

        return wrapper
    return decorator


class RetryContext:
    """
    Context manager for retry loops with state tracking.

    Usage:
        async with RetryContext(max_attempts=3) as ctx:
            while ctx.should_retry():
                try:
                    link = await wp.update_post(post_id, html)
                    ctx.success()
                except WordPressAPIError as e:
                    await ctx.failed(e)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 30.0
    ):
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.attempt = 0
        self.last_error: Optional[Exception] = None
        self._succeeded = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    def should_retry(self) -> bool:
        return self.attempt < self.max_attempts and not self._succeeded

    def success(self):
        self._succeeded = True

    async def failed(self, error: Exception):
        """Record a failure, then sleep or raise RetryExhaustedError."""
        self.attempt += 1
        self.last_error = error

        if self.attempt < self.max_attempts:
            delay = backoff_delay(self.attempt, self.initial_delay, self.max_delay)
            logger.warning(
                f"Attempt {self.attempt}/{self.max_attempts} failed: {error}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
        else:
            raise RetryExhaustedError(
                f"Failed after {self.max_attempts} attempts: {error}"
            ) from error
