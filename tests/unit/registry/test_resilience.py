"""Unit tests for the retry policy."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pkgpush.errors import RegistryQueryError, UploadError
from pkgpush.registry.resilience import RetryPolicy, is_transient
from pkgpush.schemas.config import RetryConfig


class TestIsTransient:
    """Tests for the default retry predicate."""

    def test_transient_query_error(self) -> None:
        assert is_transient(RegistryQueryError("op", "503", transient=True))

    def test_permanent_query_error(self) -> None:
        assert not is_transient(RegistryQueryError("op", "401"))

    def test_other_errors(self) -> None:
        assert not is_transient(UploadError("sha256:abc", "reset"))
        assert not is_transient(ValueError("x"))


class TestCalculateDelay:
    """Tests for backoff delays."""

    def test_exponential_without_jitter(self) -> None:
        policy = RetryPolicy(RetryConfig(initial_delay_ms=100, backoff_multiplier=2.0, jitter=False))

        assert policy.calculate_delay(0) == pytest.approx(0.1)
        assert policy.calculate_delay(1) == pytest.approx(0.2)
        assert policy.calculate_delay(2) == pytest.approx(0.4)

    def test_capped_at_max_delay(self) -> None:
        policy = RetryPolicy(
            RetryConfig(initial_delay_ms=1000, max_delay_ms=1500, jitter=False)
        )
        assert policy.calculate_delay(5) == pytest.approx(1.5)

    def test_jitter_stays_within_quarter(self) -> None:
        policy = RetryPolicy(RetryConfig(initial_delay_ms=1000, jitter=True))
        for _ in range(50):
            assert 0.75 <= policy.calculate_delay(0) <= 1.25


class TestCall:
    """Tests for RetryPolicy.call."""

    def test_success_first_try(self) -> None:
        sleeps: list[float] = []
        func = MagicMock(return_value="ok")

        result = RetryPolicy(sleep=sleeps.append).call(func, "a", key="b")

        assert result == "ok"
        func.assert_called_once_with("a", key="b")
        assert sleeps == []

    def test_retries_transient_then_succeeds(self) -> None:
        sleeps: list[float] = []
        func = MagicMock(
            side_effect=[RegistryQueryError("op", "503", transient=True), "ok"]
        )
        policy = RetryPolicy(RetryConfig(jitter=False), sleep=sleeps.append)

        assert policy.call(func) == "ok"
        assert func.call_count == 2
        assert sleeps == [pytest.approx(0.5)]

    def test_bounded_by_max_attempts(self) -> None:
        sleeps: list[float] = []
        error = RegistryQueryError("op", "503", transient=True)
        func = MagicMock(side_effect=error)
        policy = RetryPolicy(RetryConfig(max_attempts=4, jitter=False), sleep=sleeps.append)

        with pytest.raises(RegistryQueryError) as exc_info:
            policy.call(func)

        assert exc_info.value is error
        assert func.call_count == 4
        assert len(sleeps) == 3

    def test_permanent_error_not_retried(self) -> None:
        sleeps: list[float] = []
        func = MagicMock(side_effect=RegistryQueryError("op", "401"))

        with pytest.raises(RegistryQueryError):
            RetryPolicy(sleep=sleeps.append).call(func)

        assert func.call_count == 1
        assert sleeps == []

    def test_custom_predicate(self) -> None:
        func = MagicMock(side_effect=[ValueError("flaky"), "ok"])
        policy = RetryPolicy(
            RetryConfig(jitter=False),
            sleep=lambda _: None,
            retryable=lambda e: isinstance(e, ValueError),
        )

        assert policy.call(func) == "ok"
