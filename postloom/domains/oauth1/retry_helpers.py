"""Retry helpers for OAuth 1.0a HTTP calls.

Only the request-token leg and signed API calls retry. The access-token leg
never does: its request token is single-use, so a second attempt after an
ambiguous failure would be refused and hide the original error.
"""

from typing import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from postloom.core.logging import ContextualLogger

MAX_BACKOFF_SECONDS = 8.0


def should_retry_on_network_error(exception: BaseException) -> bool:
    """Check if exception is a transient failure (timeout, connection error, 5xx).

    Args:
        exception: Exception to check

    Returns:
        True if the exception is marked retryable
    """
    return bool(getattr(exception, "retryable", False))


def log_before_retry(logger: ContextualLogger, operation: str) -> Callable[[RetryCallState], None]:
    """Build a tenacity ``before_sleep`` hook that logs the failed attempt."""

    def _log(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{operation} attempt {retry_state.attempt_number} failed: {exception}; retrying"
        )

    return _log


def network_retrying(
    *,
    max_attempts: int,
    backoff_seconds: float,
    logger: ContextualLogger,
    operation: str,
) -> AsyncRetrying:
    """Bounded exponential-backoff retry policy for transient network failures.

    Waits ``backoff_seconds``, then twice that, and so on, capped at
    ``MAX_BACKOFF_SECONDS``. The last error is re-raised unchanged.

    Example:
        async for attempt in network_retrying(max_attempts=3, ...):
            with attempt:
                response = await self._post(url, header)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_seconds, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception(should_retry_on_network_error),
        before_sleep=log_before_retry(logger, operation),
        reraise=True,
    )
