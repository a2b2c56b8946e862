"""CLI utility functions and error handling.

This module provides shared utilities for the pkgpush CLI, including:
- Exit code constants aligned with the PublishError hierarchy
- Output helpers for consistent stderr/stdout usage
- A click parameter type for human readable durations

Errors are printed as plain text to stderr and the process exits with the
code of the error type, so CI pipelines can tell failures apart.

Example:
    from pkgpush.cli.utils import error_exit, ExitCode

    if not path.exists():
        error_exit("Manifest not found", exit_code=ExitCode.BUILD_ERROR, path=str(path))
"""

from __future__ import annotations

import re
import sys
from enum import IntEnum
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from typing import NoReturn


class ExitCode(IntEnum):
    """Exit codes for CLI commands.

    The values match the ``exit_code`` attribute of the corresponding
    PublishError subclasses.
    """

    SUCCESS = 0
    """Command completed successfully."""

    GENERAL_ERROR = 1
    """General error (catch-all for failures)."""

    USAGE_ERROR = 2
    """Invalid usage or configuration (bad arguments, no namespace)."""

    BUILD_ERROR = 3
    """The package could not be built locally."""

    REGISTRY_ERROR = 5
    """A registry read or the registration call failed."""

    UPLOAD_ERROR = 6
    """The package bytes could not be uploaded."""

    REJECTED = 7
    """The registry refused the release."""

    PROTOCOL_ERROR = 8
    """The registry answered without the fields its contract requires."""

    WAIT_TIMEOUT = 9
    """The push succeeded but the release was not ready in time."""


def error(message: str, **context: str | int | bool | None) -> None:
    """Print an error message to stderr.

    Args:
        message: Error message to display.
        **context: Optional context key-value pairs to include.

    Example:
        error("upload failed", content_hash="sha256:abc")
        # Output: Error: upload failed (content_hash=sha256:abc)
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
        full_message = f"Error: {message} ({context_str})"
    else:
        full_message = f"Error: {message}"

    click.echo(full_message, err=True)


def error_exit(
    message: str,
    exit_code: int = ExitCode.GENERAL_ERROR,
    **context: str | int | bool | None,
) -> NoReturn:
    """Print an error message to stderr and exit with a code.

    Args:
        message: Error message to display.
        exit_code: Exit code to use (default: GENERAL_ERROR).
        **context: Optional context key-value pairs to include.

    Raises:
        SystemExit: Always exits with the specified code.
    """
    error(message, **context)
    sys.exit(exit_code)


def warn(message: str, **context: str | int | bool | None) -> None:
    """Print a warning message to stderr.

    Args:
        message: Warning message to display.
        **context: Optional context key-value pairs to include.
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
        full_message = f"Warning: {message} ({context_str})"
    else:
        full_message = f"Warning: {message}"

    click.echo(full_message, err=True)


def success(message: str) -> None:
    """Print a success message to stdout."""
    click.echo(message)


def info(message: str) -> None:
    """Print an informational message to stderr.

    Used for hints and status information that should not be captured by
    stdout redirection.
    """
    click.echo(message, err=True)


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS: dict[str, float] = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse a duration such as ``300``, ``30s``, ``5m`` or ``1m30s``.

    A bare number is read as seconds.

    Args:
        value: Duration text.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the text is not a positive duration.
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        position = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            position = match.end()
        if position != len(text):
            raise ValueError(f"invalid duration '{value}'") from None

    if seconds <= 0:
        raise ValueError(f"duration must be positive, got '{value}'")
    return seconds


class DurationType(click.ParamType):
    """Click parameter type converting durations to seconds."""

    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, (int, float)):
            if value <= 0:
                self.fail(f"duration must be positive, got {value}", param, ctx)
            return float(value)
        try:
            return parse_duration(str(value))
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationType()


__all__ = [
    "DURATION",
    "DurationType",
    "ExitCode",
    "error",
    "error_exit",
    "info",
    "parse_duration",
    "success",
    "warn",
]
