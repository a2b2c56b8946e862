"""Query cache invalidation after a publish.

Removing the cached registry reads keeps commands such as ``pkgpush info``
from serving an absence or an older version recorded before the push.
Failing to do so is logged and returned as a warning, never raised.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from pkgpush.cache import QueryCache
from pkgpush.errors import CacheInvalidationWarning

logger = structlog.get_logger(__name__)


class CacheInvalidator:
    """Deletes the local query cache directory."""

    def __init__(self, query_cache_dir: Path) -> None:
        self._cache = QueryCache(query_cache_dir)

    @property
    def path(self) -> Path:
        """Directory that gets removed."""
        return self._cache.path

    def invalidate(self) -> CacheInvalidationWarning | None:
        """Remove every cached query result.

        Returns:
            None on success (including when there was nothing cached), or a
            CacheInvalidationWarning describing why removal failed.
        """
        try:
            self._cache.clear()
        except OSError as e:
            warning = CacheInvalidationWarning(str(self.path), str(e))
            logger.warning(
                "query_cache_invalidation_failed",
                path=str(self.path),
                error=str(e),
            )
            return warning
        return None


__all__ = ["CacheInvalidator"]
