"""Retry decisions and exponential backoff."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from netclient.exceptions import ServerError, TimeoutError_, UnknownError
from netclient.models import RetryPolicy

BACKOFF_UNIT = 1.0
"""Seconds multiplied by ``exponential_base ** attempt``."""


@dataclass(frozen=True)
class RetryDecision:
    """Whether to try again, and how long to wait first (seconds)."""

    retry: bool
    delay: float = 0.0


NO_RETRY = RetryDecision(retry=False)


def is_retryable(error: BaseException) -> bool:
    """Return ``True`` for failures worth another attempt.

    Server errors, timeouts and transport-level unknown errors (no HTTP
    status) qualify. Client errors, unexpected statuses and cancellation
    do not.
    """
    if isinstance(error, asyncio.CancelledError):
        return False
    if isinstance(error, (ServerError, TimeoutError_)):
        return True
    return isinstance(error, UnknownError) and error.status_code is None


class RetryController:
    """Decides whether a failed attempt is retried.

    Args:
        policy: Retry limits and backoff parameters.

    Example::

        controller = RetryController(RetryPolicy(max_retries=3))
        controller.should_retry(0, ServerError("HTTP 503", 503))
        # RetryDecision(retry=True, delay=1.0)
    """

    def __init__(self, policy: Optional[RetryPolicy] = None) -> None:
        self.policy = policy or RetryPolicy()

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after *attempt* (0 = first try)."""
        delay = self.policy.exponential_base ** attempt * BACKOFF_UNIT
        return min(self.policy.max_delay, delay)

    def should_retry(self, attempt: int, error: BaseException) -> RetryDecision:
        """Decide whether to retry after *attempt* failed with *error*.

        Never raises.
        """
        if attempt >= self.policy.max_retries or not is_retryable(error):
            return NO_RETRY
        try:
            delay = self.delay_for(attempt)
        except OverflowError:
            delay = self.policy.max_delay
        return RetryDecision(retry=True, delay=delay)


def describe_failure(error: BaseException) -> str:
    """Short label for log lines, e.g. ``Server error 503``."""
    status = getattr(error, "status_code", None)
    if isinstance(error, ServerError):
        return f"Server error {status}"
    if isinstance(error, TimeoutError_):
        return "Timeout"
    if status is not None:
        return f"HTTP {status}"
    return f"{type(error).__name__}: {getattr(error, 'message', error)}"
