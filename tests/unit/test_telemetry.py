"""Unit tests for logging and tracing setup."""

from __future__ import annotations

import json

import pytest
import structlog

from pkgpush.telemetry import configure_logging, get_tracer, reset_tracer


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("INFO", json_output=True)

        structlog.get_logger("test").info("release_pushed", namespace="acme")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "release_pushed"
        assert event["namespace"] == "acme"
        assert event["level"] == "info"

    def test_level_filters_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("WARNING", json_output=True)

        structlog.get_logger("test").info("hidden")

        assert capsys.readouterr().err == ""

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")


class TestGetTracer:
    """Tests for the tracer cache."""

    def test_tracer_is_cached(self) -> None:
        assert get_tracer("pkgpush.test") is get_tracer("pkgpush.test")

    def test_reset_clears_cache(self) -> None:
        tracer = get_tracer("pkgpush.test")
        reset_tracer()
        fresh = get_tracer("pkgpush.test")
        assert fresh is not tracer
        with fresh.start_as_current_span("span"):
            pass
