"""Bounded retry for rate-limited backend calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from .models import RateLimitError

LOG = logging.getLogger("zonectl.retry")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 23
DEFAULT_INTERVAL = 5.0


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, RateLimitError)


class RetryPolicy:
    """Retry a call at a fixed interval while the backend reports rate limiting.

    Any other error propagates on the first attempt. After ``max_attempts``
    rate-limited attempts the last error propagates.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        is_retryable: Callable[[Exception], bool] = _is_rate_limit_error,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Store retry bounds and the injectable sleep function."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.interval = interval
        self.is_retryable = is_retryable
        self.sleep = sleep

    def with_classifier(self, is_retryable: Callable[[Exception], bool]) -> "RetryPolicy":
        """Return a copy that recognises rate limiting with another predicate."""
        return RetryPolicy(self.max_attempts, self.interval, is_retryable, self.sleep)

    def call(self, func: Callable[[], T]) -> T:
        """Invoke ``func`` until it succeeds, fails hard, or attempts run out."""
        attempt = 1
        while True:
            try:
                return func()
            except Exception as exc:
                if not self.is_retryable(exc) or attempt >= self.max_attempts:
                    raise
                LOG.warning(
                    "Rate limit exceeded (attempt %s/%s). Waiting %ss to retry.",
                    attempt,
                    self.max_attempts,
                    self.interval,
                )
                self.sleep(self.interval)
                attempt += 1
