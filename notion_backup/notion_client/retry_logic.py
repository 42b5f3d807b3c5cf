"""Retry logic with exponential backoff for Notion API calls.

Every failure is retried the same way: the wrapped operation is attempted up
to ``max_attempts`` times, sleeping ``base_delay_ms * 2**attempt`` between
attempts (1s, 2s with the defaults). There is no jitter and no distinction
between transient and permanent errors; the last failure is re-raised
unchanged once the attempts are exhausted.
"""

import time
import logging
from typing import Callable, TypeVar
from functools import wraps

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1000


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
) -> T:
    """Run an operation, retrying on failure with exponential backoff.

    Args:
        operation: Zero-argument callable to execute
        max_attempts: Total number of attempts, including the first one
        base_delay_ms: Delay before the first retry, in milliseconds;
            doubled after every failed attempt

    Returns:
        The return value of the operation

    Raises:
        ValueError: If max_attempts is smaller than 1
        Exception: The exception raised by the final attempt

    Example:
        >>> pages = with_retry(lambda: api.search_pages())
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(max_attempts):
        try:
            return operation()
        except Exception as e:
            logger.info(f"Attempt {attempt + 1}/{max_attempts} failed: {e}")

            if attempt >= max_attempts - 1:
                logger.warning(f"Giving up after {max_attempts} attempts")
                raise

            delay_ms = base_delay_ms * (2 ** attempt)
            logger.info(f"Retrying in {delay_ms}ms...")
            time.sleep(delay_ms / 1000)

    # Unreachable: the loop either returns or re-raises
    raise RuntimeError("with_retry exited without a result")


def retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator version of with_retry for use with @decorator syntax.

    Example:
        >>> @retrying(max_attempts=5)
        ... def fetch_page(page_id: str):
        ...     return api.retrieve_page(page_id)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return with_retry(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                base_delay_ms=base_delay_ms,
            )

        return wrapper

    return decorator
