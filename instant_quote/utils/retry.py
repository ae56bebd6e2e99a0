"""
Bounded retry policy for outbound calls.

The policy is plain data; `retrying()` turns it into a tenacity
AsyncRetrying iterator. The sleep function is injectable so callers (and
tests) decide how backoff waits are scheduled.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from instant_quote.errors import FetchError


def is_retryable(exc: BaseException) -> bool:
    """Only fetch errors flagged retryable are worth another attempt."""
    return isinstance(exc, FetchError) and exc.retryable


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff: delay_n = base_delay * multiplier ** (n - 1)."""
    max_retries: int = 2
    base_delay: float = 0.8
    multiplier: float = 2.0
    max_delay: float = 10.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        """Backoff before the given retry (1-based)."""
        return min(self.base_delay * self.multiplier ** (retry_number - 1), self.max_delay)

    def retrying(
        self,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        on_retry: Optional[Callable[[RetryCallState], None]] = None,
    ) -> AsyncRetrying:
        """
        Build a tenacity iterator enforcing this policy.

        Cancellation is never retried: tenacity re-raises anything the
        retry predicate rejects, including asyncio.CancelledError.
        """
        kwargs = dict(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.base_delay,
                exp_base=self.multiplier,
                max=self.max_delay,
            ),
            retry=retry_if_exception(is_retryable),
            reraise=True,
        )
        if sleep is not None:
            kwargs["sleep"] = sleep
        if on_retry is not None:
            kwargs["before_sleep"] = on_retry
        return AsyncRetrying(**kwargs)
