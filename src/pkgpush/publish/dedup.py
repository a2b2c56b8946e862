"""Deduplication by content hash.

A lookup failure is never interpreted: treating it as "absent" would store
duplicates, treating it as "present" would silently skip a publish.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pkgpush.errors import PublishError, RegistryQueryError

if TYPE_CHECKING:
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.registry import ContentHash

logger = structlog.get_logger(__name__)


def should_upload(
    client: RegistryClient,
    content_hash: ContentHash,
    *,
    timeout: float | None = None,
) -> bool:
    """Decide whether a package needs to be uploaded.

    Args:
        client: Registry client.
        content_hash: Hash of the built package.
        timeout: Timeout for the existence lookup.

    Returns:
        True exactly when the registry has no release for the hash.

    Raises:
        RegistryQueryError: If the lookup fails for any reason.
    """
    try:
        release = client.find_by_hash(content_hash, timeout=timeout)
    except PublishError:
        raise
    except Exception as e:
        raise RegistryQueryError("find_by_hash", f"unexpected failure: {e}") from e

    logger.info(
        "dedup_checked",
        content_hash=str(content_hash),
        exists=release is not None,
        release_id=release.id if release is not None else None,
    )
    return release is None


__all__ = ["should_upload"]
