"""
Retry policy for idempotent calls to the blog API.

Only transport failures (refused connections, resets, timeouts) are retried.
A response with an error status is a definite answer from the server and is
raised on the first attempt.
"""

from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import ParamSpec, TypeVar

from httpx import TransportError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from inkpress.configs import file_logger

logger = file_logger(getLogger(__name__))

P = ParamSpec("P")
T = TypeVar("T")

RETRIABLE_EXCEPTIONS = (TransportError, ConnectionError, TimeoutError)


def _warn_on_retry(max_attempts: int) -> Callable[[RetryCallState], None]:
    """Build the ``before_sleep`` hook that reports a failed attempt."""

    def warn(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        call = getattr(state.fn, "__qualname__", "request")
        logger.warning(
            "%s: attempt %d of %d hit a transport error (%s); next try in %.2fs",
            call,
            state.attempt_number,
            max_attempts,
            error,
            delay,
        )

    return warn


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    retry_on: tuple[type[Exception], ...] = RETRIABLE_EXCEPTIONS,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Retry an async call on transport errors with exponential backoff.

    Args:
        max_attempts: Total attempts, the first call included.
        base_delay: Wait before the second attempt, in seconds; doubles after.
        max_delay: Upper bound on any single wait, in seconds.
        retry_on: Exception types that trigger another attempt.

    Returns:
        A decorator. Once attempts run out, the last error propagates unchanged.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, min=base_delay, max=max_delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_warn_on_retry(max_attempts),
        reraise=True,
    )
