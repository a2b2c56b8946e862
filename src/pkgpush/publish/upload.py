"""Upload pipeline: transfer package bytes and register the release.

Steps:
    1. Request a signed upload URL and PUT the bytes to it (UploadError)
    2. Register the release under the namespace (RegistryRejectedError
       when the registry answers success: false)
    3. Return the release id (InvariantViolation when it is missing)

Nothing is retried and nothing is rolled back. If registration fails after
the transfer, the uploaded bytes may be orphaned registry-side; running the
publish again is safe because it is keyed by content hash.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pkgpush.errors import (
    InvariantViolation,
    RegistryQueryError,
    RegistryRejectedError,
    UploadError,
)

if TYPE_CHECKING:
    from pkgpush.publish.progress import Spinner
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.publish import Package
    from pkgpush.schemas.registry import ContentHash, SignedDestination

logger = structlog.get_logger(__name__)


def _upload_bytes(
    client: RegistryClient,
    package: Package,
    content_hash: ContentHash,
    timeout: float,
) -> SignedDestination:
    try:
        destination = client.request_upload_destination(content_hash, timeout=timeout)
    except RegistryQueryError as e:
        raise UploadError(str(content_hash), f"could not get an upload URL: {e.reason}") from e

    client.transfer(destination, package, timeout=timeout)
    return destination


def push_release(
    client: RegistryClient,
    namespace: str,
    package: Package,
    content_hash: ContentHash,
    private: bool,
    timeout: float,
    spinner: Spinner | None = None,
) -> str:
    """Upload a package and register it as a release.

    Args:
        client: Registry client.
        namespace: Target namespace.
        package: The built package.
        content_hash: Hash of the package bytes.
        private: Publish as a private release.
        timeout: Timeout applied to each registry call.
        spinner: Optional progress indicator.

    Returns:
        The opaque release id assigned by the registry.

    Raises:
        UploadError: If the upload URL request or transfer fails.
        RegistryQueryError: If the registration request fails in transport.
        RegistryRejectedError: If the registry refuses the release.
        InvariantViolation: If a successful registration has no release id.
    """
    log = logger.bind(namespace=namespace, content_hash=str(content_hash), private=private)

    if spinner is not None:
        spinner.start("Uploading the package to the registry..")
    destination = _upload_bytes(client, package, content_hash, timeout)
    log.info("package_uploaded", size=package.size)

    if spinner is not None:
        spinner.tick("Registering the release..")
    result = client.register_release(namespace, destination, private, timeout=timeout)

    if result is None:
        raise InvariantViolation("register_release", "pushPackageRelease")
    if not result.success:
        log.warning("release_rejected", detail=result.message)
        raise RegistryRejectedError(namespace, result.message)
    if not result.release_id:
        raise InvariantViolation("register_release", "packageWebc.id")

    log.info("release_pushed", release_id=result.release_id)
    if spinner is not None:
        spinner.ok(f"Successfully pushed release to namespace {namespace} on the registry")
    return result.release_id


__all__ = ["push_release"]
