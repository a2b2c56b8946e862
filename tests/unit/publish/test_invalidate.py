"""Unit tests for query cache invalidation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from pkgpush.cache import QueryCache
from pkgpush.errors import CacheInvalidationWarning
from pkgpush.publish.invalidate import CacheInvalidator


class TestCacheInvalidator:
    """Tests for CacheInvalidator.invalidate."""

    def test_removes_cached_entries(self, tmp_path: Path) -> None:
        cache_dir = tmp_path / "queries"
        cache = QueryCache(cache_dir)
        key = cache.key("get_package_version", {"name": "acme/tool"})
        cache.put(key, "get_package_version", {"result": None})

        assert CacheInvalidator(cache_dir).invalidate() is None

        assert not cache_dir.exists()
        assert cache.get(key) is None

    def test_missing_directory_is_success(self, tmp_path: Path) -> None:
        invalidator = CacheInvalidator(tmp_path / "never-created")
        assert invalidator.invalidate() is None
        assert invalidator.path == tmp_path / "never-created"

    def test_failure_returns_warning(self, tmp_path: Path) -> None:
        cache_dir = tmp_path / "queries"
        cache_dir.mkdir()

        with patch("pkgpush.cache.shutil.rmtree", side_effect=PermissionError("denied")):
            warning = CacheInvalidator(cache_dir).invalidate()

        assert isinstance(warning, CacheInvalidationWarning)
        assert warning.path == str(cache_dir)
        assert "denied" in warning.reason
