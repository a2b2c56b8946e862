"""Package push CLI command.

This module provides the `pkgpush push` command, which builds the package
at PATH and publishes it to the registry unless the registry already holds
the same content.

Example:
    $ pkgpush push ./my-package --namespace acme --wait
    $ pkgpush push --dry-run

Environment Variables:
    PKGPUSH_REGISTRY: GraphQL endpoint of the registry
    PKGPUSH_TOKEN: Bearer token for the registry
    PKGPUSH_CACHE_DIR: Root of the local cache (query results live below it)
    PKGPUSH_POLL_INTERVAL: Seconds between readiness polls
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, NoReturn

import click
import structlog

from pkgpush.cli.utils import DURATION, ExitCode, error_exit, info, success, warn
from pkgpush.errors import PublishError
from pkgpush.schemas.publish import PublishAction
from pkgpush.schemas.registry import DEFAULT_WAIT_CONDITION, WaitCondition

if TYPE_CHECKING:
    from pathlib import Path

    from pkgpush.publish import PublishOptions
    from pkgpush.schemas.config import PublishSettings
    from pkgpush.schemas.manifest import Manifest
    from pkgpush.schemas.publish import PublishOutcome

logger = structlog.get_logger(__name__)

_WAIT_CHOICES = [condition.value for condition in WaitCondition]


class PushCommand(click.Command):
    """Command whose --wait takes a value only when written as --wait=MODE.

    A bare --wait is rewritten to the default mode before parsing, so the
    token after it is never consumed as the mode.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        rewritten: list[str] = []
        for index, arg in enumerate(args):
            if arg == "--":
                rewritten.extend(args[index:])
                break
            if arg == "--wait":
                arg = f"--wait={DEFAULT_WAIT_CONDITION.value}"
            rewritten.append(arg)
        return super().parse_args(ctx, rewritten)


@click.command(
    name="push",
    cls=PushCommand,
    help="""\b
Build the package at PATH and push it to the registry.

The package is identified by the sha256 of its archive. If the registry
already holds that content nothing is uploaded, so running the command
again is always safe.

The namespace comes from --namespace, then from package.name in the
manifest, then from an interactive prompt listing your namespaces.

Examples:
    $ pkgpush push
    $ pkgpush push ./my-package --namespace acme --wait=all --timeout 10m
    $ pkgpush push --dry-run --quiet
""",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("path", type=click.Path(), default=".")
@click.option(
    "--namespace",
    type=str,
    default=None,
    help="Namespace to push into (overrides the manifest).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Build and check the registry, but do not push.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Print nothing on success.",
)
@click.option(
    "--timeout",
    type=DURATION,
    default="5m",
    show_default=True,
    help="Time limit for registry requests and for --wait (e.g. 300, 30s, 5m, 1m30s).",
)
@click.option(
    "--bump",
    is_flag=True,
    default=False,
    help="Increment the patch version in the manifest before building.",
)
@click.option(
    "--non-interactive/--interactive",
    "non_interactive",
    default=None,
    help="Never prompt. Defaults to non-interactive when stdin is not a terminal.",
)
@click.option(
    "--wait",
    "wait",
    type=click.Choice(_WAIT_CHOICES, case_sensitive=False),
    default=WaitCondition.NONE.value,
    help="Wait until the release is ready. Bare --wait waits for the container; "
    "use --wait=MODE for another condition.",
)
def push_command(
    path: str,
    namespace: str | None,
    dry_run: bool,
    quiet: bool,
    timeout: float,
    bump: bool,
    non_interactive: bool | None,
    wait: str,
) -> None:
    """Push a package to the registry.

    Args:
        path: Package directory or manifest file.
        namespace: Explicit namespace, if any.
        dry_run: Skip the push.
        quiet: Suppress output.
        timeout: Time limit in seconds.
        bump: Bump the patch version before building.
        non_interactive: Disable prompts; None means detect from stdin.
        wait: Readiness condition name.
    """
    from pkgpush.manifest import load_manifest
    from pkgpush.publish import PublishOptions

    if non_interactive is None:
        non_interactive = not sys.stdin.isatty()

    settings = _load_settings()
    if settings.registry.token is None and not dry_run:
        logger.debug("registry_token_missing", registry=settings.registry.url)

    try:
        manifest_path, manifest = load_manifest(path)
    except PublishError as e:
        _handle_publish_error(e, default_stage="build")

    options = PublishOptions(
        namespace=namespace,
        dry_run=dry_run,
        quiet=quiet,
        wait=WaitCondition(wait.lower()),
        timeout_seconds=timeout,
        interactive=not non_interactive,
        bump=bump,
    )

    outcome = _publish(settings, manifest_path, manifest, options)
    _report(outcome, manifest, quiet)


def _load_settings() -> PublishSettings:
    """Load settings from the environment, exiting on invalid values."""
    from pkgpush.schemas.config import PublishSettings

    try:
        return PublishSettings.from_env()
    except PublishError as e:
        error_exit(f"Invalid configuration: {e}", exit_code=e.exit_code)


def _handle_publish_error(e: PublishError, default_stage: str | None = None) -> NoReturn:
    """Print a publish error with its stage and exit with its code.

    Args:
        e: Error raised by the publish workflow.
        default_stage: Stage to report if the error carries none.

    Raises:
        SystemExit: Always.
    """
    stage = e.stage or default_stage
    message = f"{stage} failed: {e}" if stage else str(e)
    error_exit(message, exit_code=e.exit_code)


def _publish(
    settings: PublishSettings,
    manifest_path: Path,
    manifest: Manifest,
    options: PublishOptions,
) -> PublishOutcome:
    """Run the orchestrator against the configured registry.

    Raises:
        SystemExit: If the publish fails (via error_exit).
    """
    from pkgpush.publish import (
        AvailabilityWaiter,
        CacheInvalidator,
        ClickIdentityPrompt,
        PublishOrchestrator,
    )
    from pkgpush.registry.client import RegistryClient
    from pkgpush.registry.resilience import RetryPolicy

    with RegistryClient(settings.registry) as client:
        orchestrator = PublishOrchestrator(
            client,
            invalidator=CacheInvalidator(settings.query_cache_dir),
            waiter=AvailabilityWaiter(
                poll_interval=settings.poll_interval_seconds,
                retry_policy=RetryPolicy(settings.retry),
            ),
            prompt=ClickIdentityPrompt(),
        )
        try:
            return orchestrator.publish(manifest_path, manifest, options)
        except PublishError as e:
            _handle_publish_error(e)


def _report(outcome: PublishOutcome, manifest: Manifest, quiet: bool) -> None:
    """Print the outcome, warnings and follow-up hint.

    Raises:
        SystemExit: With WAIT_TIMEOUT if the release was not ready in time.
    """
    if not quiet:
        success(outcome.summary())
        if outcome.cache_warning is not None:
            warn(str(outcome.cache_warning))

    if outcome.wait_error is not None:
        warn(f"{outcome.wait_error}. The push itself succeeded")
        raise SystemExit(ExitCode.WAIT_TIMEOUT)

    if quiet or outcome.action is PublishAction.DRY_RUN:
        return

    package = manifest.package
    if package is not None and package.name:
        info(f"\nTo inspect the package, run:\n  pkgpush info {package.name}")
    else:
        info(
            f"\nThe package has no name, refer to it by its hash:\n  {outcome.content_hash}"
        )


__all__ = ["PushCommand", "push_command"]
