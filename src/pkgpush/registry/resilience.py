"""Retry policy for registry reads.

Exponential backoff with jitter for transient registry failures. The number
of attempts is always bounded by ``RetryConfig.max_attempts``.

Only read operations are retried. Uploads and release registration are never
retried automatically; re-running the publish is the retry mechanism there.

Retry Timeline (default config):
    - Attempt 1: Immediate
    - Attempt 2: ~0.5s delay (with jitter)
    - Attempt 3: ~1s delay (with jitter)

Example:
    >>> from pkgpush.registry.resilience import RetryPolicy
    >>> from pkgpush.schemas.config import RetryConfig
    >>>
    >>> policy = RetryPolicy(RetryConfig(max_attempts=3))
    >>> status = policy.call(client.poll_status, release_id)
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

import structlog

from pkgpush.errors import RegistryQueryError
from pkgpush.schemas.config import RetryConfig

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def is_transient(exception: BaseException) -> bool:
    """Default retry predicate: transient registry query errors only."""
    return isinstance(exception, RegistryQueryError) and exception.transient


class RetryPolicy:
    """Retry policy with exponential backoff and jitter.

    Attributes:
        config: RetryConfig with max_attempts, delays, and jitter settings.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], None] | None = None,
        retryable: Callable[[BaseException], bool] = is_transient,
    ) -> None:
        """Initialize RetryPolicy.

        Args:
            config: Retry configuration. Uses defaults if None.
            sleep: Function used to wait between attempts. Defaults to
                time.sleep; tests inject a recorder.
            retryable: Predicate deciding whether an exception is retried.
        """
        self._config = config or RetryConfig()
        self._sleep = sleep or time.sleep
        self._retryable = retryable

    @property
    def config(self) -> RetryConfig:
        """Return the retry configuration."""
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay before the next retry attempt.

        Uses exponential backoff: delay = initial * (multiplier ^ attempt),
        capped at max_delay_ms, with optional ±25% jitter.

        Args:
            attempt: Current attempt number (0-indexed).

        Returns:
            Delay in seconds.
        """
        base_delay_ms = min(
            self._config.initial_delay_ms * (self._config.backoff_multiplier**attempt),
            self._config.max_delay_ms,
        )

        if self._config.jitter:
            jitter_range = base_delay_ms * 0.25
            base_delay_ms += random.uniform(-jitter_range, jitter_range)

        return max(base_delay_ms, 0.0) / 1000.0

    def should_retry(self, exception: BaseException) -> bool:
        """Check if an exception is retryable."""
        return self._retryable(exception)

    def call(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Call func, retrying retryable failures up to max_attempts times.

        Args:
            func: The operation to run.
            *args: Positional arguments for func.
            **kwargs: Keyword arguments for func.

        Returns:
            Whatever func returns on the first successful attempt.

        Raises:
            Exception: The last exception once attempts are exhausted, or
                the first non-retryable exception immediately.
        """
        max_attempts = self._config.max_attempts

        for attempt in range(max_attempts):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not self.should_retry(e):
                    raise

                remaining = max_attempts - attempt - 1
                if remaining == 0:
                    logger.warning(
                        "retry_exhausted",
                        attempts=max_attempts,
                        error=str(e),
                    )
                    raise

                delay = self.calculate_delay(attempt)
                logger.debug(
                    "retry_attempt",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    delay_seconds=delay,
                    error=str(e),
                )
                self._sleep(delay)

        raise RuntimeError("Retry exhausted without exception")


__all__ = ["RetryPolicy", "is_transient"]
