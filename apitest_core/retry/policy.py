"""
Fixed-Delay Retry
=================
Retry policy for a single logical request: constant wait, no growth.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry a failed attempt and how long to wait."""
    retries: int = 0          # Extra attempts after the first
    retry_delay: float = 1.0  # Seconds between attempts

    def __post_init__(self):
        if self.retries < 0:
            raise ValueError("retries must not be negative")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative")

    @property
    def max_attempts(self) -> int:
        return self.retries + 1


RetryHook = Callable[[int, BaseException, float], None]


def fixed_delay_retrying(
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[RetryHook] = None,
) -> AsyncRetrying:
    """
    Build a tenacity controller for ``policy``.

    The controller retries on any ``Exception`` and re-raises the final
    attempt's exception as-is once attempts run out.

    Usage:
        retrying = fixed_delay_retrying(RetryPolicy(retries=2, retry_delay=0.5))
        response = await retrying(send_request, url)

    Args:
        policy: Attempt count and delay
        sleep: Awaitable sleep used between attempts
        on_retry: Called as ``on_retry(attempt_number, error, delay)``
            before each sleep

    Returns:
        A fresh ``AsyncRetrying``; build one per logical call.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        if on_retry is None:
            return
        on_retry(
            retry_state.attempt_number,
            retry_state.outcome.exception(),
            retry_state.next_action.sleep,
        )

    return AsyncRetrying(
        sleep=sleep,
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.retry_delay),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep,
        reraise=True,
    )
