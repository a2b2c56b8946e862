"""Package info CLI command.

Looks up a package version on the registry. Results are served from the
local query cache when fresh, which is the cache a push invalidates.

Example:
    $ pkgpush info acme/tool
    $ pkgpush info acme/tool --version 1.2.0 --no-cache
"""

from __future__ import annotations

import click

from pkgpush.cli.utils import ExitCode, error_exit, success
from pkgpush.errors import PublishError


@click.command(
    name="info",
    help="Show a package version from the registry (cached locally).",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("name", type=str)
@click.option(
    "--version",
    "version",
    type=str,
    default=None,
    help="Version to show (default: latest).",
)
@click.option(
    "--no-cache",
    is_flag=True,
    default=False,
    help="Bypass the local query cache.",
)
def info_command(name: str, version: str | None, no_cache: bool) -> None:
    """Show a package version.

    Args:
        name: Package name (namespace/name).
        version: Version to show, or None for the latest.
        no_cache: Skip the query cache.
    """
    from pkgpush.cache import QueryCache
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.config import PublishSettings

    try:
        settings = PublishSettings.from_env()
    except PublishError as e:
        error_exit(f"Invalid configuration: {e}", exit_code=e.exit_code)

    cache = QueryCache(settings.query_cache_dir, settings.query_cache_ttl_seconds)

    try:
        with RegistryClient(settings.registry, query_cache=cache) as client:
            result = client.get_package_version(name, version, use_cache=not no_cache)
    except PublishError as e:
        error_exit(f"lookup failed: {e}", exit_code=e.exit_code)

    if result is None:
        label = f"{name}@{version}" if version else name
        error_exit(f"Package {label} not found", exit_code=ExitCode.REGISTRY_ERROR)

    success(f"{name}@{result.get('version', '?')}")
    if result.get("description"):
        success(f"  {result['description']}")
    if result.get("webcHash"):
        success(f"  hash: {result['webcHash']}")


__all__ = ["info_command"]
