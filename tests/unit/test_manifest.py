"""Unit tests for manifest loading and version bumping."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import yaml

from pkgpush.errors import BuildError
from pkgpush.manifest import (
    bump_manifest_version,
    bump_patch_version,
    load_manifest,
    resolve_manifest_path,
)

if TYPE_CHECKING:
    from collections.abc import Callable


class TestResolveManifestPath:
    """Tests for locating the manifest file."""

    def test_directory_uses_default_name(self, package_dir: Path) -> None:
        assert resolve_manifest_path(package_dir) == package_dir / "pkgpush.yaml"

    def test_explicit_yaml_file(self, package_dir: Path) -> None:
        path = package_dir / "pkgpush.yaml"
        assert resolve_manifest_path(str(path)) == path

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(BuildError, match="manifest file not found"):
            resolve_manifest_path(tmp_path)

    def test_rejects_non_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "package.toml"
        path.write_text("")
        with pytest.raises(BuildError, match="expected a package directory"):
            resolve_manifest_path(path)


class TestLoadManifest:
    """Tests for parsing manifests."""

    def test_load_named_package(self, package_dir: Path) -> None:
        path, manifest = load_manifest(package_dir)

        assert path.name == "pkgpush.yaml"
        assert manifest.package is not None
        assert manifest.package.name == "acme/tool"
        assert manifest.namespace_hint == "acme"
        assert manifest.is_private is False

    def test_empty_manifest_is_private_and_unnamed(
        self, write_package: Callable[..., Path]
    ) -> None:
        root = write_package({})
        (root / "pkgpush.yaml").write_text("")

        _, manifest = load_manifest(root)

        assert manifest.package is None
        assert manifest.namespace_hint is None
        assert manifest.is_private is True

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "pkgpush.yaml").write_text("package: [unclosed\n")
        with pytest.raises(BuildError, match="failed to parse manifest YAML"):
            load_manifest(tmp_path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "pkgpush.yaml").write_text("- a\n- b\n")
        with pytest.raises(BuildError, match="must be a YAML mapping"):
            load_manifest(tmp_path)

    def test_unknown_fields_ignored(self, write_package: Callable[..., Path]) -> None:
        root = write_package(
            {
                "package": {"name": "acme/tool", "version": "0.1.0", "colour": "blue"},
                "dependencies": {"acme/lib": "^1.0"},
            }
        )

        _, manifest = load_manifest(root)

        assert manifest.package is not None
        assert manifest.package.name == "acme/tool"
        assert manifest.namespace_hint == "acme"

    def test_bad_version_rejected(self, write_package: Callable[..., Path]) -> None:
        root = write_package({"package": {"name": "acme/tool", "version": "one"}})
        with pytest.raises(BuildError, match="invalid manifest"):
            load_manifest(root)


class TestBump:
    """Tests for --bump support."""

    @pytest.mark.parametrize(
        ("version", "expected"),
        [("0.1.0", "0.1.1"), ("1.2.9", "1.2.10"), ("2.0.0-rc.1", "2.0.1")],
    )
    def test_bump_patch_version(self, version: str, expected: str) -> None:
        assert bump_patch_version(version) == expected

    def test_bump_patch_version_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            bump_patch_version("latest")

    def test_bump_manifest_rewrites_file(self, package_dir: Path) -> None:
        manifest_path = package_dir / "pkgpush.yaml"

        path, manifest = bump_manifest_version(manifest_path)

        assert path == manifest_path
        assert manifest.package is not None
        assert manifest.package.version == "0.1.1"
        on_disk = yaml.safe_load(manifest_path.read_text())
        assert on_disk["package"]["version"] == "0.1.1"
        assert on_disk["package"]["name"] == "acme/tool"

    def test_bump_without_version(self, write_package: Callable[..., Path]) -> None:
        root = write_package({"package": {"name": "acme/tool"}})
        with pytest.raises(BuildError, match="--bump requires package.version"):
            bump_manifest_version(root / "pkgpush.yaml")
