"""Loading and updating package manifests.

Example:
    >>> from pkgpush.manifest import load_manifest
    >>> manifest_path, manifest = load_manifest(Path("."))
    >>> manifest.namespace_hint
    'acme'
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from pkgpush.errors import BuildError
from pkgpush.schemas.manifest import MANIFEST_FILENAME, VERSION_PATTERN, Manifest

logger = structlog.get_logger(__name__)


def resolve_manifest_path(path: str | Path) -> Path:
    """Find the manifest file for a package path.

    Args:
        path: A package directory, or a path to a ``.yaml``/``.yml`` manifest.

    Returns:
        Path to the manifest file.

    Raises:
        BuildError: If no manifest exists at the path.
    """
    candidate = Path(path)
    if candidate.is_dir():
        candidate = candidate / MANIFEST_FILENAME
    elif candidate.suffix not in (".yaml", ".yml"):
        raise BuildError(str(path), "expected a package directory or a .yaml manifest")

    if not candidate.is_file():
        raise BuildError(str(candidate), "manifest file not found")
    return candidate


def _read_manifest_data(manifest_path: Path) -> dict[str, Any]:
    try:
        with manifest_path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise BuildError(str(manifest_path), f"failed to parse manifest YAML: {e}") from e
    except OSError as e:
        raise BuildError(str(manifest_path), f"failed to read manifest: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BuildError(str(manifest_path), "manifest must be a YAML mapping")
    return data


def load_manifest(path: str | Path) -> tuple[Path, Manifest]:
    """Load and validate a manifest.

    Args:
        path: A package directory or manifest file.

    Returns:
        Tuple of (manifest path, parsed Manifest).

    Raises:
        BuildError: If the manifest is missing or invalid.
    """
    manifest_path = resolve_manifest_path(path)
    data = _read_manifest_data(manifest_path)

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise BuildError(str(manifest_path), f"invalid manifest: {e}") from e

    logger.debug(
        "manifest_loaded",
        path=str(manifest_path),
        package=manifest.package.name if manifest.package else None,
    )
    return manifest_path, manifest


def bump_patch_version(version: str) -> str:
    """Increment the patch component of a semver version.

    Pre-release and build suffixes are dropped.

    Examples:
        >>> bump_patch_version("1.2.3")
        '1.2.4'
        >>> bump_patch_version("0.1.0-rc.1")
        '0.1.1'
    """
    match = VERSION_PATTERN.match(version)
    if match is None:
        raise ValueError(f"Version '{version}' is not a semver version")
    major, minor, patch = (int(part) for part in match.groups())
    return f"{major}.{minor}.{patch + 1}"


def bump_manifest_version(manifest_path: Path) -> tuple[Path, Manifest]:
    """Bump the package patch version in place and reload the manifest.

    The file is rewritten with ``yaml.safe_dump``, which keeps key order
    but drops comments.

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        Tuple of (manifest path, reloaded Manifest).

    Raises:
        BuildError: If the manifest has no package version or cannot be written.
    """
    data = _read_manifest_data(manifest_path)
    package = data.get("package")
    if not isinstance(package, dict) or not package.get("version"):
        raise BuildError(str(manifest_path), "--bump requires package.version in the manifest")

    try:
        new_version = bump_patch_version(str(package["version"]))
    except ValueError as e:
        raise BuildError(str(manifest_path), str(e)) from e

    old_version = package["version"]
    package["version"] = new_version
    try:
        manifest_path.write_text(yaml.safe_dump(data, sort_keys=False))
    except OSError as e:
        raise BuildError(str(manifest_path), f"failed to write manifest: {e}") from e

    logger.info(
        "manifest_version_bumped",
        path=str(manifest_path),
        old_version=old_version,
        new_version=new_version,
    )
    return load_manifest(manifest_path)


__all__ = [
    "bump_manifest_version",
    "bump_patch_version",
    "load_manifest",
    "resolve_manifest_path",
]
