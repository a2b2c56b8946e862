"""Local package builder.

Builds a deterministic gzip-compressed tar archive from a package directory
and computes its content hash. Building the same directory contents twice
yields byte-identical archives and therefore the same hash.

Determinism rules:
    - Files are added in sorted POSIX path order
    - mtime, uid, gid and owner names are zeroed
    - Modes are normalised to 0644 (0755 for executables)
    - The gzip header carries no timestamp or file name
    - Hidden files/directories and __pycache__ are skipped

Example:
    >>> from pkgpush.builder import PackageBuilder
    >>> package, content_hash = PackageBuilder().build(Path("pkgpush.yaml"))
    >>> print(f"{content_hash} ({package.size} bytes)")
"""

from __future__ import annotations

import fnmatch
import gzip
import io
import os
import tarfile
from pathlib import Path

import structlog

from pkgpush.errors import BuildError
from pkgpush.manifest import load_manifest
from pkgpush.schemas.publish import Package
from pkgpush.schemas.registry import ContentHash

logger = structlog.get_logger(__name__)

_SKIPPED_NAMES = frozenset({"__pycache__"})


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") or part in _SKIPPED_NAMES for part in relative.parts)


def collect_files(root: Path, manifest_path: Path, include: list[str]) -> list[Path]:
    """List the files that make up a package, relative to its root.

    Args:
        root: Package root directory.
        manifest_path: The manifest file, always included.
        include: Glob patterns matched against POSIX relative paths.
            An empty list includes the whole directory.

    Returns:
        Sorted list of relative paths.
    """
    manifest_rel = manifest_path.relative_to(root)
    files: set[Path] = {manifest_rel}

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in _SKIPPED_NAMES
        )
        for filename in filenames:
            relative = (Path(dirpath) / filename).relative_to(root)
            if _is_hidden(relative):
                continue
            posix = relative.as_posix()
            if include and not any(fnmatch.fnmatch(posix, pattern) for pattern in include):
                continue
            files.add(relative)

    return sorted(files, key=lambda p: p.as_posix())


def _tar_info(path: Path, arcname: str) -> tarfile.TarInfo:
    stat = path.stat()
    info = tarfile.TarInfo(name=arcname)
    info.size = stat.st_size
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    info.mode = 0o755 if stat.st_mode & 0o111 else 0o644
    return info


def build_archive(root: Path, files: list[Path]) -> bytes:
    """Create a reproducible tar.gz archive of files under root."""
    buffer = io.BytesIO()
    with gzip.GzipFile(filename="", mode="wb", fileobj=buffer, mtime=0) as gz:
        with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
            for relative in files:
                path = root / relative
                info = _tar_info(path, relative.as_posix())
                with path.open("rb") as f:
                    tar.addfile(info, f)
    return buffer.getvalue()


class PackageBuilder:
    """Builds packages from manifests.

    Implements the builder side of the publish workflow:
    ``build(manifest_path) -> (Package, ContentHash)``.
    """

    def build(self, manifest_path: Path) -> tuple[Package, ContentHash]:
        """Build the package described by a manifest.

        Args:
            manifest_path: Path to the manifest file (or its directory).

        Returns:
            Tuple of (Package, ContentHash).

        Raises:
            BuildError: If the manifest is invalid or files cannot be read.
        """
        manifest_path, manifest = load_manifest(manifest_path)
        manifest_path = manifest_path.resolve()
        root = manifest_path.parent
        include = manifest.package.include if manifest.package else []

        try:
            files = collect_files(root, manifest_path, include)
            data = build_archive(root, files)
        except (OSError, tarfile.TarError) as e:
            raise BuildError(str(manifest_path), str(e)) from e

        package = Package(manifest_path=manifest_path, data=data, file_count=len(files))
        content_hash = ContentHash.of(data)

        logger.info(
            "package_built",
            path=str(manifest_path),
            files=len(files),
            size=package.size,
            content_hash=str(content_hash),
        )
        return package, content_hash


__all__ = ["PackageBuilder", "build_archive", "collect_files"]
