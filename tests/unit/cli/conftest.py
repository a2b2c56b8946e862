"""Unit test fixtures for the CLI module.

These fixtures replace the registry client with the in-memory registry and
point the cache at a temporary directory, so commands run end to end
without the network.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, str]:
    """Environment for CLI invocations with an isolated cache."""
    return {
        "PKGPUSH_REGISTRY": "https://registry.test/graphql",
        "PKGPUSH_TOKEN": "test-token",
        "PKGPUSH_CACHE_DIR": str(tmp_path / "cache"),
    }


@pytest.fixture
def patched_registry(fake_registry: Any) -> Generator[MagicMock, None, None]:
    """Make every RegistryClient constructed by the CLI return the fake registry.

    Yields:
        The mock standing in for the RegistryClient class.
    """
    with patch("pkgpush.registry.client.RegistryClient") as client_class:
        client_class.return_value.__enter__.return_value = fake_registry
        yield client_class
