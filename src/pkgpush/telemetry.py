"""Logging and tracing setup for pkgpush.

Logging goes through structlog with snake_case event names and keyword
context. Tracing uses the OpenTelemetry API; without an SDK configured the
tracer is a no-op, so spans cost nothing in a plain CLI run.

Example:
    >>> from pkgpush.telemetry import configure_logging, get_tracer
    >>> configure_logging("DEBUG")
    >>> with get_tracer("pkgpush.publish").start_as_current_span("pkgpush.publish"):
    ...     ...
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

_tracers: dict[str, Tracer] = {}
_tracer_init_failed: bool = False
_lock = threading.Lock()


def configure_logging(log_level: str = "WARNING", json_output: bool = False) -> None:
    """Configure structlog to write to stderr.

    Args:
        log_level: Minimum level to emit (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of console output.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_tracer(name: str = "pkgpush") -> Tracer:
    """Get or create a cached tracer.

    Falls back to a NoOpTracer if OpenTelemetry cannot be initialised.

    Args:
        name: Instrumenting module name.

    Returns:
        OpenTelemetry Tracer instance.
    """
    global _tracer_init_failed

    if name in _tracers:
        return _tracers[name]

    if _tracer_init_failed:
        return trace.NoOpTracer()

    with _lock:
        if name in _tracers:
            return _tracers[name]

        try:
            tracer = trace.get_tracer(name)
        except Exception:
            _tracer_init_failed = True
            return trace.NoOpTracer()
        _tracers[name] = tracer
        return tracer


def reset_tracer() -> None:
    """Clear cached tracers (test isolation)."""
    global _tracer_init_failed
    with _lock:
        _tracers.clear()
        _tracer_init_failed = False


__all__ = ["configure_logging", "get_tracer", "reset_tracer"]
