"""Progress indicator for long-running publish steps.

The spinner writes to stderr so stdout stays clean for machine-readable
output. On a terminal it redraws a single status line; otherwise it prints
one line per distinct message. Quiet mode disables all output.

The spinner is a context manager: leaving the block clears any active line,
including when the block is left through an exception or Ctrl-C.

Example:
    >>> with Spinner(quiet=False) as spinner:
    ...     spinner.start("Uploading the package to the registry..")
    ...     upload()
    ...     spinner.ok("Uploaded")
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from types import TracebackType

FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
OK_MARK = "✔"
FAIL_MARK = "✖"


class Spinner:
    """Suspendable single-line progress indicator."""

    def __init__(self, quiet: bool = False, *, interactive: bool | None = None) -> None:
        """Initialize Spinner.

        Args:
            quiet: Suppress all output.
            interactive: Redraw in place. Defaults to whether stderr is a TTY.
        """
        self._quiet = quiet
        if interactive is None:
            interactive = sys.stderr.isatty()
        self._interactive = interactive
        self._message: str | None = None
        self._frame = 0

    @property
    def active(self) -> bool:
        """True while a status line is shown."""
        return self._message is not None

    @property
    def message(self) -> str | None:
        """The current status message."""
        return self._message

    def _draw(self) -> None:
        if self._quiet or self._message is None:
            return
        if self._interactive:
            frame = FRAMES[self._frame % len(FRAMES)]
            click.echo(f"\r\033[K{frame} {self._message}", nl=False, err=True)
        else:
            click.echo(self._message, err=True)

    def _erase(self) -> None:
        if not self._quiet and self._interactive and self._message is not None:
            click.echo("\r\033[K", nl=False, err=True)

    def start(self, message: str) -> Spinner:
        """Show a new status message."""
        self._erase()
        self._message = message
        self._frame = 0
        self._draw()
        return self

    def tick(self, message: str | None = None) -> None:
        """Advance the animation, optionally changing the message."""
        if message is not None and message != self._message:
            self.start(message)
            return
        self._frame += 1
        if self._interactive:
            self._draw()

    def ok(self, message: str) -> None:
        """Finish the current step successfully."""
        self._finish(OK_MARK, message)

    def fail(self, message: str) -> None:
        """Finish the current step with a failure mark."""
        self._finish(FAIL_MARK, message)

    def _finish(self, mark: str, message: str) -> None:
        self._erase()
        self._message = None
        if not self._quiet:
            click.echo(f"{mark} {message}", err=True)

    def clear(self) -> None:
        """Remove the status line without printing anything."""
        self._erase()
        self._message = None

    @contextmanager
    def suspend(self) -> Iterator[None]:
        """Hide the status line while other output is written."""
        message = self._message
        self._erase()
        try:
            yield
        finally:
            if message is not None:
                self._message = message
                self._draw()

    def __enter__(self) -> Spinner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.clear()


__all__ = ["Spinner"]
