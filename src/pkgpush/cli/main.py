"""Main entry point for the pkgpush CLI.

This module provides the Click-based CLI root group.

Commands:
    pkgpush push: Build a package and publish it to the registry
    pkgpush info: Show a package version from the registry

Example:
    $ pkgpush --help
    $ pkgpush -v push ./my-package --wait
"""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import click

from pkgpush.cli.info import info_command
from pkgpush.cli.push import push_command
from pkgpush.telemetry import configure_logging


def _get_version() -> str:
    """Get the pkgpush package version.

    Returns:
        Version string from package metadata, or 'unknown' if not installed.
    """
    try:
        return get_version("pkgpush")
    except PackageNotFoundError:
        return "unknown"


@click.group(
    name="pkgpush",
    help="pkgpush - Publish content-addressed packages to a registry.",
    epilog="Use 'pkgpush <command> --help' for command-specific help.",
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(
    version=_get_version(),
    prog_name="pkgpush",
    message="%(prog)s %(version)s",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Log output format.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_format: str) -> None:
    """Root command group for the pkgpush CLI."""
    ctx.ensure_object(dict)
    level = "DEBUG" if verbose else "WARNING"
    configure_logging(level, json_output=log_format == "json")
    ctx.obj["log_level"] = level


cli.add_command(push_command)
cli.add_command(info_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pkgpush CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    try:
        cli(args=argv, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
