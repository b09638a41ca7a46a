"""
Retry engine: runs an async operation with classification-driven
exponential backoff and jitter.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from comment_analyzer.models.schemas import RetryPolicy
from comment_analyzer.utils.error_handling import JobCancelledError
from comment_analyzer.utils.logger import logging

T = TypeVar("T")

# Error signatures of transient network conditions
TRANSIENT_SIGNATURES = (
    "NETWORK_ERROR",
    "TIMEOUT",
    "ECONNRESET",
    "ENOTFOUND",
    "ECONNREFUSED",
    "ETIMEDOUT",
    "UND_ERR_CONNECT_TIMEOUT",
    "ConnectTimeoutError",
    "fetch failed",
    "Connection reset",
    "Connection refused",
    "Name or service not known",
    "Temporary failure in name resolution",
    "APIConnectionError",
    "APITimeoutError",
    "ConnectError",
    "ConnectTimeout",
    "ReadTimeout",
)

TRANSIENT_TYPES = (
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    aiohttp.ClientConnectionError,
    aiohttp.ServerTimeoutError,
)


def _status_of(error: BaseException) -> Optional[int]:
    """HTTP status carried by an error, if any."""
    for attr in ("status", "status_code"):
        status = getattr(error, attr, None)
        if isinstance(status, int):
            return status
    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status", "status_code"):
            status = getattr(response, attr, None)
            if isinstance(status, int):
                return status
    return None


def _matches_signature(error: BaseException) -> bool:
    candidates = [str(error), error.__class__.__name__, str(getattr(error, "code", "") or "")]
    cause = error.__cause__ or error.__context__
    if cause is not None:
        candidates += [str(cause), cause.__class__.__name__, str(getattr(cause, "code", "") or "")]
    return any(signature in candidate for candidate in candidates for signature in TRANSIENT_SIGNATURES)


def is_retryable(error: BaseException) -> bool:
    """
    Classify a failure.

    Retryable: HTTP 5xx, HTTP 429, timeouts and transient network errors.
    Everything else (including other 4xx and cancellation) fails immediately.
    """
    if isinstance(error, (JobCancelledError, asyncio.CancelledError)):
        return False

    status = _status_of(error)
    if status is not None:
        return status == 429 or 500 <= status < 600

    if isinstance(error, TRANSIENT_TYPES):
        return True

    return _matches_signature(error)


def compute_delay(policy: RetryPolicy, attempt: int, rand: Callable[[], float] = random.random) -> float:
    """
    Delay before attempt ``attempt`` (0-indexed, >= 1).

    min(initial_delay * backoff_factor ** (attempt - 1), max_delay),
    scaled by a uniform factor in [0.5, 1.0] when jitter is enabled.
    """
    delay = min(policy.initial_delay * policy.backoff_factor ** (attempt - 1), policy.max_delay)
    if policy.jitter:
        delay *= 0.5 + rand() * 0.5
    return delay


def _log_before_sleep(description: str, total_attempts: int):
    def log(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logging.warning(
            f"{description} failed (attempt {retry_state.attempt_number}/{total_attempts}): {error}. "
            f"Retrying in {retry_state.upcoming_sleep:.2f}s..."
        )
    return log


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    timeout: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "API call",
) -> T:
    """
    Run ``operation`` up to ``policy.max_retries + 1`` times.

    Args:
        operation: Zero-argument coroutine factory; must be safe to repeat
        policy: Retry configuration
        timeout: Upper bound in seconds for each attempt; a timeout is retryable
        sleep: Awaitable used for backoff delays (e.g. a cancellation-aware sleep)
        description: Label used in log messages

    Returns:
        The operation's result

    Raises:
        The last error, unchanged, once retries are exhausted or the error is not retryable.
    """
    total_attempts = policy.max_retries + 1

    async def attempt() -> T:
        if timeout:
            return await asyncio.wait_for(operation(), timeout=timeout)
        return await operation()

    retrying = AsyncRetrying(
        stop=stop_after_attempt(total_attempts),
        wait=lambda retry_state: compute_delay(policy, retry_state.attempt_number),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_before_sleep(description, total_attempts),
        sleep=sleep,
        reraise=True,
    )

    try:
        return await retrying(attempt)
    except Exception as e:
        if is_retryable(e):
            logging.error(f"{description} failed after {total_attempts} attempts: {e}")
        elif not isinstance(e, JobCancelledError):
            logging.error(f"{description} failed with a non-retryable error: {e}")
        raise
