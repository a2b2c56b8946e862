"""pkgpush - publish content-addressed packages to a registry.

The publish is idempotent: packages are addressed by the sha256 of their
archive, and a package the registry already holds is never uploaded again.

Example:
    $ pkgpush push ./my-package --wait
"""

from __future__ import annotations

from pkgpush.errors import (
    BuildError,
    CacheInvalidationWarning,
    ConfigurationError,
    InvariantViolation,
    PublishError,
    RegistryQueryError,
    RegistryRejectedError,
    UploadError,
    WaitTimeoutError,
)

__version__ = "0.1.0"

__all__ = [
    "BuildError",
    "CacheInvalidationWarning",
    "ConfigurationError",
    "InvariantViolation",
    "PublishError",
    "RegistryQueryError",
    "RegistryRejectedError",
    "UploadError",
    "WaitTimeoutError",
    "__version__",
]
