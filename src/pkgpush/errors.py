"""Exception hierarchy for pkgpush.

All publish failures inherit from PublishError so the CLI can map any of them
to an exit code with a single except clause.

Exception Hierarchy:
    PublishError (base)
    ├── ConfigurationError     # Namespace or settings cannot be resolved
    ├── BuildError             # Package cannot be built locally
    ├── RegistryQueryError     # Registry read/transport/auth failure
    ├── UploadError            # Upload destination or byte transfer failed
    ├── RegistryRejectedError  # Registry answered success: false
    ├── InvariantViolation     # Registry response is missing required fields
    └── WaitTimeoutError       # Push succeeded, readiness not observed in time

    CacheInvalidationWarning (UserWarning, never raised by the workflow)

Exit Codes:
    0 - Success
    1 - General error (PublishError)
    2 - Configuration error (ConfigurationError)
    3 - Build error (BuildError)
    5 - Registry query error (RegistryQueryError)
    6 - Upload error (UploadError)
    7 - Registry rejected the release (RegistryRejectedError)
    8 - Registry contract broken (InvariantViolation)
    9 - Wait timeout, the push itself succeeded (WaitTimeoutError)

Example:
    >>> from pkgpush.errors import RegistryRejectedError
    >>> raise RegistryRejectedError("acme", "namespace is read-only")
    Traceback (most recent call last):
        ...
    RegistryRejectedError: Registry rejected release for namespace acme: namespace is read-only
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgpush.schemas.registry import ReleaseStatus


class PublishError(Exception):
    """Base exception for all pkgpush errors.

    Attributes:
        exit_code: CLI exit code for this error type (default: 1).
        stage: Name of the workflow stage that failed. Set by the
            orchestrator when the error crosses a stage boundary.
    """

    exit_code: int = 1
    stage: str | None = None


class ConfigurationError(PublishError):
    """Raised when required input cannot be resolved.

    Typical cause: no namespace was given, the manifest has no package name,
    and prompting is disabled.

    Example:
        >>> raise ConfigurationError("No package namespace specified: use --namespace NAME")
    """

    exit_code: int = 2


class BuildError(PublishError):
    """Raised when the package cannot be constructed locally.

    No network call happens before or after a BuildError.

    Attributes:
        path: The manifest or package path that failed to build.
        reason: Description of why the build failed.
        exit_code: CLI exit code (3).
    """

    exit_code: int = 3

    def __init__(self, path: str, reason: str) -> None:
        """Initialize BuildError.

        Args:
            path: The manifest or package path that failed to build.
            reason: Description of why the build failed.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to build package at {path}: {reason}")


class RegistryQueryError(PublishError):
    """Raised when a registry request fails at the transport or protocol level.

    This never means "not found". A lookup that cannot be answered must not
    be interpreted as absence of the release.

    Attributes:
        operation: The registry operation that failed (e.g. find_by_hash).
        reason: Description of the failure.
        transient: True for failures worth retrying (timeouts, 5xx,
            connection errors). Auth and GraphQL errors are not transient.
        exit_code: CLI exit code (5).

    Example:
        >>> raise RegistryQueryError("find_by_hash", "Connection refused", transient=True)
        Traceback (most recent call last):
            ...
        RegistryQueryError: Registry query 'find_by_hash' failed: Connection refused
    """

    exit_code: int = 5

    def __init__(self, operation: str, reason: str, *, transient: bool = False) -> None:
        """Initialize RegistryQueryError.

        Args:
            operation: The registry operation that failed.
            reason: Description of the failure.
            transient: Whether the failure is worth retrying.
        """
        self.operation = operation
        self.reason = reason
        self.transient = transient
        super().__init__(f"Registry query '{operation}' failed: {reason}")


class UploadError(PublishError):
    """Raised when the package bytes cannot be transferred.

    Not retried automatically. Re-running the publish is safe because the
    content hash check skips work that already completed.

    Attributes:
        content_hash: Hash of the package that failed to upload.
        reason: Description of the failure.
        exit_code: CLI exit code (6).
    """

    exit_code: int = 6

    def __init__(self, content_hash: str, reason: str) -> None:
        """Initialize UploadError.

        Args:
            content_hash: Hash of the package that failed to upload.
            reason: Description of the failure.
        """
        self.content_hash = content_hash
        self.reason = reason
        super().__init__(f"Upload of {content_hash} failed: {reason}")


class RegistryRejectedError(PublishError):
    """Raised when the registry reports a logical failure for a release.

    The transport succeeded but the response said ``success: false``. The
    server-provided detail is kept so the user sees why.

    Attributes:
        namespace: Namespace the release was pushed to.
        detail: Server-provided message, if any.
        exit_code: CLI exit code (7).
    """

    exit_code: int = 7

    def __init__(self, namespace: str, detail: str | None = None) -> None:
        self.namespace = namespace
        self.detail = detail
        msg = f"Registry rejected release for namespace {namespace}"
        if detail:
            msg += f": {detail}"
        else:
            msg += " (response had success: false)"
        super().__init__(msg)


class InvariantViolation(PublishError):
    """Raised when a successful registry response lacks required fields.

    Indicates a broken contract between client and registry.

    Attributes:
        operation: The registry operation whose response was incomplete.
        missing: Name of the missing field.
        exit_code: CLI exit code (8).
    """

    exit_code: int = 8

    def __init__(self, operation: str, missing: str) -> None:
        self.operation = operation
        self.missing = missing
        super().__init__(
            f"Registry response for '{operation}' is missing required field '{missing}'"
        )


class WaitTimeoutError(PublishError):
    """Raised when a pushed release does not become ready in time.

    The push has already committed when this is raised, so it is reported as
    a distinct outcome rather than a publish failure.

    Attributes:
        condition: The readiness condition that was awaited.
        release_id: Release being polled.
        timeout_seconds: How long we waited.
        last_status: The last status observed, if any poll succeeded.
        exit_code: CLI exit code (9).
    """

    exit_code: int = 9

    def __init__(
        self,
        condition: str,
        release_id: str,
        timeout_seconds: float,
        last_status: ReleaseStatus | None = None,
    ) -> None:
        self.condition = condition
        self.release_id = release_id
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status

        msg = (
            f"Release {release_id} did not reach '{condition}' within "
            f"{timeout_seconds:g}s"
        )
        if last_status is not None:
            msg += f" (last status: {last_status.describe()})"
        super().__init__(msg)


class CacheInvalidationWarning(UserWarning):
    """Non-fatal failure to invalidate the local query cache.

    Returned by the cache invalidator and logged; it never changes the
    outcome of a publish.

    Attributes:
        path: The cache path that could not be removed.
        reason: Description of the failure.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to invalidate query cache at {path}: {reason}")


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
]
