"""Availability polling after a push.

Polls the registry until a pushed release satisfies the requested
WaitCondition or the timeout elapses. Time is read and spent only through an
injected Clock so tests run without real delays.

Each poll goes through a bounded RetryPolicy: a transient query failure is
retried a few times with backoff, then the RegistryQueryError escalates.
A timeout raises WaitTimeoutError carrying the last observed status; the
push itself has already succeeded by then.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Protocol

import structlog

from pkgpush.errors import WaitTimeoutError
from pkgpush.registry.resilience import RetryPolicy
from pkgpush.schemas.registry import WaitCondition

if TYPE_CHECKING:
    from pkgpush.publish.progress import Spinner
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.registry import ReleaseStatus

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class Clock(Protocol):
    """Source of monotonic time and sleeping."""

    def monotonic(self) -> float:
        """Seconds from an arbitrary fixed point."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block for the given number of seconds."""
        ...


class SystemClock:
    """Clock backed by the time module."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class AvailabilityWaiter:
    """Waits for a pushed release to become ready.

    Attributes:
        poll_interval: Seconds between polls.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize AvailabilityWaiter.

        Args:
            clock: Time source. Defaults to SystemClock.
            poll_interval: Seconds between polls.
            retry_policy: Policy for transient poll failures. Defaults to
                RetryPolicy() sleeping on the same clock.
        """
        self._clock = clock or SystemClock()
        self.poll_interval = poll_interval
        self._retry_policy = retry_policy or RetryPolicy(sleep=self._clock.sleep)

    def wait(
        self,
        client: RegistryClient,
        condition: WaitCondition,
        release_id: str,
        timeout: float,
        spinner: Spinner | None = None,
    ) -> ReleaseStatus | None:
        """Poll until the release satisfies condition or timeout elapses.

        Args:
            client: Registry client.
            condition: Readiness target. NONE returns immediately.
            release_id: Release returned by the push.
            timeout: Seconds to wait in total.
            spinner: Optional progress indicator.

        Returns:
            The satisfying ReleaseStatus, or None for WaitCondition.NONE.

        Raises:
            WaitTimeoutError: If the condition is not met in time.
            RegistryQueryError: If polling keeps failing after retries, or
                fails with a non-transient error.
        """
        if condition is WaitCondition.NONE:
            return None

        deadline = self._clock.monotonic() + timeout
        last_status: ReleaseStatus | None = None
        polls = 0
        log = logger.bind(release_id=release_id, condition=condition.value)

        if spinner is not None:
            spinner.start(f"Waiting for package to become available ({condition.value})..")

        while True:
            remaining = deadline - self._clock.monotonic()
            last_status = self._retry_policy.call(
                client.poll_status, release_id, timeout=max(remaining, 0.001)
            )
            polls += 1

            if last_status.satisfies(condition):
                log.info("release_ready", polls=polls)
                if spinner is not None:
                    spinner.ok(f"Package is available ({condition.value})")
                return last_status

            remaining = deadline - self._clock.monotonic()
            if remaining <= 0:
                log.warning("release_wait_timeout", polls=polls, status=last_status.describe())
                if spinner is not None:
                    spinner.fail(f"Package not available ({condition.value}) after {timeout:g}s")
                raise WaitTimeoutError(condition.value, release_id, timeout, last_status)

            if spinner is not None:
                spinner.tick()
            log.debug("release_not_ready", polls=polls, status=last_status.describe())
            self._clock.sleep(min(self.poll_interval, remaining))


__all__ = [
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "AvailabilityWaiter",
    "Clock",
    "SystemClock",
]
