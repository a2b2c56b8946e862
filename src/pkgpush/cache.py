"""Local cache for registry query results.

Read commands (e.g. ``pkgpush info``) cache registry answers on disk so
repeated lookups do not hit the network. A publish deletes the whole cache
directory afterwards so these reads cannot serve a result from before the
push; see pkgpush.publish.invalidate.

Cache Structure:
    ~/.cache/pkgpush/queries/
    ├── .lock                 # fcntl lock for writers
    └── 3f2a9c....json        # One entry per (operation, variables) key

Entries expire after ``ttl_seconds``. A corrupted entry is treated as a miss
and removed.

Example:
    >>> cache = QueryCache(Path("~/.cache/pkgpush/queries").expanduser(), ttl_seconds=300)
    >>> key = cache.key("get_package_version", {"name": "acme/tool"})
    >>> if (value := cache.get(key)) is None:
    ...     value = fetch()
    ...     cache.put(key, "get_package_version", value)
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import os
import shutil
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class QueryCacheEntry(BaseModel):
    """A cached registry query result."""

    model_config = ConfigDict(extra="forbid")

    operation: str
    stored_at: datetime = Field(default_factory=_utc_now)
    value: Any = None

    def is_expired(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        """Check whether the entry is older than the TTL."""
        current = now or _utc_now()
        return current - self.stored_at >= timedelta(seconds=ttl_seconds)


class QueryCache:
    """File-based cache of registry query results.

    Attributes:
        path: Directory holding the cache entries.
        ttl_seconds: Freshness window for entries.
    """

    def __init__(self, path: Path, ttl_seconds: int = 300) -> None:
        self._path = path
        self._ttl_seconds = ttl_seconds

    @property
    def path(self) -> Path:
        """Return the cache directory."""
        return self._path

    @property
    def ttl_seconds(self) -> int:
        """Return the entry time-to-live."""
        return self._ttl_seconds

    @staticmethod
    def key(operation: str, variables: dict[str, Any]) -> str:
        """Derive the cache key for a query.

        Args:
            operation: Registry operation name.
            variables: Query variables.

        Returns:
            Hex sha256 of the operation and canonical JSON variables.
        """
        canonical = json.dumps({"operation": operation, "variables": variables}, sort_keys=True)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def _entry_path(self, key: str) -> Path:
        return self._path / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """Return a fresh cached value, or None on miss/expiry/corruption."""
        entry_path = self._entry_path(key)
        if not entry_path.exists():
            logger.debug("query_cache_miss", key=key)
            return None

        try:
            entry = QueryCacheEntry.model_validate_json(entry_path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("query_cache_entry_corrupt", key=key, error=str(e))
            entry_path.unlink(missing_ok=True)
            return None

        if entry.is_expired(self._ttl_seconds):
            logger.debug("query_cache_expired", key=key, operation=entry.operation)
            return None

        logger.debug("query_cache_hit", key=key, operation=entry.operation)
        return entry.value

    def put(self, key: str, operation: str, value: Any) -> None:
        """Store a query result.

        Failures are logged and ignored: the cache is an optimisation only.
        """
        entry = QueryCacheEntry(operation=operation, value=value)
        entry_path = self._entry_path(key)
        try:
            self._path.mkdir(parents=True, exist_ok=True)
            with self._lock():
                temp_path = entry_path.with_suffix(".tmp")
                temp_path.write_text(entry.model_dump_json())
                temp_path.replace(entry_path)
        except OSError as e:
            logger.warning("query_cache_put_failed", key=key, error=str(e))
            return

        logger.debug("query_cache_put", key=key, operation=operation)

    def clear(self) -> None:
        """Remove every cached entry.

        Raises:
            OSError: If the directory exists but cannot be removed.
        """
        if self._path.exists():
            shutil.rmtree(self._path)
            logger.info("query_cache_cleared", path=str(self._path))

    @contextmanager
    def _lock(self) -> Generator[None, None, None]:
        """Exclusive fcntl lock on the cache directory for writers."""
        lock_path = self._path / ".lock"
        lock_path.touch(exist_ok=True)

        lock_fd = os.open(str(lock_path), os.O_RDWR)
        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(lock_fd, fcntl.LOCK_UN)
            os.close(lock_fd)


__all__ = ["QueryCache", "QueryCacheEntry"]
