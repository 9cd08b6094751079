"""Retry utilities for upstream API calls.

Wraps any awaitable-producing callable in an exponential backoff policy.
The wrapper knows nothing about HTTP; callers decide which exceptions are
transient by passing ``retry_on``.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """Base class for errors that should trigger retries."""

    pass


class TransientHTTPError(RetryableError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, url: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_seconds: float = 1,
        max_delay_seconds: float = 30,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including initial)
            base_delay_seconds: Delay before the first retry, doubled per attempt
            max_delay_seconds: Upper bound for a single delay
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds

    def delay_for(self, attempt_number: int) -> float:
        """Delay after the given failed attempt (1-based): 1s, 2s, 4s, ..."""
        return min(
            self.base_delay_seconds * 2 ** (attempt_number - 1),
            self.max_delay_seconds,
        )


# Default retry configuration
DEFAULT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay_seconds=1,
    max_delay_seconds=30,
)

# Fast configuration for testing (minimal delays)
TEST_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay_seconds=0.001,
    max_delay_seconds=0.01,
)


def _log_retry_attempt(description: str) -> Callable[[RetryCallState], None]:
    def log_retry_attempt(retry_state: RetryCallState) -> None:
        if not (retry_state.outcome and retry_state.outcome.failed):
            return
        exception = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Retry {retry_state.attempt_number} for {description} "
            f"after {delay:.2f}s: {type(exception).__name__}: {exception}",
            extra={
                "attempt": retry_state.attempt_number,
                "delay_seconds": delay,
                "target": description,
            },
        )

    return log_retry_attempt


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    retry_on: tuple[type[BaseException], ...] = (RetryableError,),
    description: str = "operation",
) -> T:
    """Run ``operation`` with exponential backoff.

    Only exceptions listed in ``retry_on`` are retried. The last exception is
    re-raised unchanged once attempts are exhausted; anything else propagates
    immediately. Cancellation is never retried.

    Args:
        operation: Zero-argument callable returning an awaitable
        config: Retry configuration (uses DEFAULT_RETRY_CONFIG if None)
        retry_on: Exception types considered transient
        description: Label used in retry log lines

    Returns:
        Whatever ``operation`` returns on its first successful attempt

    Example:
        >>> await retry_async(lambda: client.get(url), retry_on=(httpx.TransportError,))
    """
    config = config or DEFAULT_RETRY_CONFIG

    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.base_delay_seconds,
            max=config.max_delay_seconds,
        ),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry_attempt(description),
        reraise=True,
    )
    return await retrying(operation)
