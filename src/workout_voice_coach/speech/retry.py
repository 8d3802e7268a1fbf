"""Retry utilities for speech API calls with exponential backoff."""
import logging
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT_SECONDS = 1
DEFAULT_MAX_WAIT_SECONDS = 10

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception is retryable.

    Retryable errors include:
    - Rate limit errors (429)
    - Server errors (5xx)
    - Timeout errors
    - Connection errors

    Authentication, bad request and quota errors are not retried.
    """
    if isinstance(exception, (httpx.TimeoutException, httpx.TransportError)):
        return True

    status_code = getattr(exception, "status_code", None)
    if status_code is None and isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
    if status_code is not None:
        return status_code in RETRYABLE_STATUS_CODES

    error_str = str(exception).lower()
    if "timeout" in error_str or "timed out" in error_str:
        return True
    if "temporary failure in name resolution" in error_str:
        return True

    # Default: don't retry unknown errors
    return False


def create_retry_decorator(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Create a retry decorator with exponential backoff.

    Works for both sync and async callables.

    Args:
        max_attempts: Maximum number of attempts
        min_wait_seconds: Minimum wait time between retries
        max_wait_seconds: Maximum wait time between retries

    Returns:
        A retry decorator configured with the specified parameters
    """
    return retry(
        retry=retry_if_exception(is_retryable_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def retry_async_call(
    func: Callable[..., Any],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    **kwargs: Any,
) -> Any:
    """
    Execute an async function with retry logic.

    Args:
        func: Async function to execute
        *args: Positional arguments for the function
        max_attempts: Maximum number of attempts
        min_wait_seconds: Minimum wait time between retries
        max_wait_seconds: Maximum wait time between retries
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Raises:
        Exception: The last error once attempts are exhausted, or the first
            non-retryable error
    """
    decorator = create_retry_decorator(max_attempts, min_wait_seconds, max_wait_seconds)
    return await decorator(func)(*args, **kwargs)
