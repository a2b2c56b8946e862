"""Package manifest schemas.

A manifest is the ``pkgpush.yaml`` file at the root of a package directory:

    package:
      name: acme/tool
      version: 0.1.0
      description: Example tool
      private: false
      include:
        - "src/**"
        - README.md

The ``package`` section is optional. Without it the package can still be
pushed by hash, but the namespace must come from the command line or a prompt.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

MANIFEST_FILENAME = "pkgpush.yaml"
"""Default manifest file name inside a package directory."""

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[-+].*)?$")


class PackageDescriptor(BaseModel):
    """The ``package`` section of a manifest."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = Field(
        default=None,
        description="Namespaced package name (namespace/name)",
    )
    version: str | None = Field(
        default=None,
        description="Semver version of the package",
    )
    description: str | None = None
    private: bool = Field(
        default=False,
        description="Publish the release as private",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns of files to package (empty: whole directory)",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Reject empty names and names with an empty namespace part."""
        if v is None:
            return v
        if not v.strip() or v.startswith("/"):
            raise ValueError(f"Invalid package name '{v}'")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:
        """Validate semver format."""
        if v is not None and not VERSION_PATTERN.match(v):
            raise ValueError(f"Version '{v}' is not a semver version (MAJOR.MINOR.PATCH)")
        return v


class Manifest(BaseModel):
    """Parsed package manifest.

    Examples:
        >>> Manifest.model_validate({"package": {"name": "acme/tool"}}).namespace_hint
        'acme'
        >>> Manifest().is_private
        True
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    package: PackageDescriptor | None = None

    @property
    def namespace_hint(self) -> str | None:
        """Namespace taken from the package name, before the first ``/``."""
        if self.package is None or self.package.name is None:
            return None
        return self.package.name.split("/", 1)[0]

    @property
    def is_private(self) -> bool:
        """Visibility for a push. Packages without a descriptor are private."""
        if self.package is None:
            return True
        return self.package.private


__all__ = [
    "MANIFEST_FILENAME",
    "Manifest",
    "PackageDescriptor",
    "VERSION_PATTERN",
]
