"""Shared pytest fixtures for pkgpush tests.

This module provides the in-memory registry and clock used across the unit
tests, plus a package directory on disk to build from.

NOTE: Do NOT add __init__.py to test directories - pytest uses importlib mode
which can cause namespace collisions with __init__.py files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from pkgpush.schemas.registry import (
    ContentHash,
    Identity,
    PushResult,
    ReleaseRecord,
    ReleaseStatus,
    SignedDestination,
)
from pkgpush.telemetry import reset_tracer

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from pkgpush.schemas.publish import Package


class FakeClock:
    """Clock whose time only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeRegistryClient:
    """In-memory registry implementing the RegistryClient methods used by a publish.

    Attributes:
        releases: Releases held by the registry, keyed by rendered content hash.
        calls: Names of every method called, in order.
        transfers: Bytes of every package transferred.
        registrations: (namespace, private) of every registration.
        push_success: What register_release reports as ``success``.
        push_message: Message returned with the registration result.
        omit_release_id: Return a successful registration without an id.
        ready_after_polls: Number of polls that report "not ready" before a
            release becomes ready. None means never ready.
        find_error: Exception raised by find_by_hash, if set.
        poll_errors: Exceptions raised by the next poll_status calls.
    """

    def __init__(self, namespaces: list[str] | None = None) -> None:
        self.releases: dict[str, ReleaseRecord] = {}
        self.calls: list[str] = []
        self.transfers: list[bytes] = []
        self.registrations: list[tuple[str, bool]] = []
        self.identity = Identity(
            username="alice",
            namespaces=namespaces if namespaces is not None else ["alice", "acme"],
        )
        self.push_success = True
        self.push_message: str | None = None
        self.omit_release_id = False
        self.ready_after_polls: int | None = 0
        self.find_error: Exception | None = None
        self.poll_errors: list[Exception] = []
        self._uploads: dict[str, str] = {}
        self._polls: dict[str, int] = {}

    def count(self, method: str) -> int:
        """Number of calls made to a method."""
        return self.calls.count(method)

    def find_by_hash(
        self, content_hash: ContentHash, timeout: float | None = None
    ) -> ReleaseRecord | None:
        self.calls.append("find_by_hash")
        if self.find_error is not None:
            raise self.find_error
        return self.releases.get(str(content_hash))

    def request_upload_destination(
        self, content_hash: ContentHash, timeout: float | None = None
    ) -> SignedDestination:
        self.calls.append("request_upload_destination")
        return SignedDestination(url=f"https://uploads.registry.test/{content_hash.digest}")

    def transfer(
        self, destination: SignedDestination, package: Package, timeout: float | None = None
    ) -> None:
        self.calls.append("transfer")
        self.transfers.append(package.data)
        self._uploads[destination.url] = str(ContentHash.of(package.data))

    def register_release(
        self,
        namespace: str,
        destination: SignedDestination,
        private: bool,
        timeout: float | None = None,
    ) -> PushResult | None:
        self.calls.append("register_release")
        self.registrations.append((namespace, private))
        if not self.push_success:
            return PushResult(success=False, message=self.push_message)
        if self.omit_release_id:
            return PushResult(success=True, message=self.push_message)

        content_hash = self._uploads[destination.url]
        release_id = f"rel-{len(self.releases) + 1}"
        self.releases[content_hash] = ReleaseRecord(id=release_id, content_hash=content_hash)
        return PushResult(success=True, release_id=release_id)

    def poll_status(self, release_id: str, timeout: float | None = None) -> ReleaseStatus:
        self.calls.append("poll_status")
        if self.poll_errors:
            raise self.poll_errors.pop(0)
        polls = self._polls[release_id] = self._polls.get(release_id, 0) + 1
        ready = self.ready_after_polls is not None and polls > self.ready_after_polls
        return ReleaseStatus(
            release_id=release_id,
            container_ready=ready,
            native_executables_ready=ready,
            bindings_ready=ready,
        )

    def current_identity(self, timeout: float | None = None) -> Identity:
        self.calls.append("current_identity")
        return self.identity


@pytest.fixture(autouse=True)
def reset_telemetry() -> Generator[None, None, None]:
    """Reset structlog configuration and cached tracers around each test."""
    reset_tracer()
    yield
    structlog.reset_defaults()
    reset_tracer()


@pytest.fixture(autouse=True)
def clean_pkgpush_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PKGPUSH_* variables inherited from the developer's shell."""
    for name in list(os.environ):
        if name.upper().startswith("PKGPUSH_"):
            monkeypatch.delenv(name)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock that never really sleeps."""
    return FakeClock()


@pytest.fixture
def fake_registry() -> FakeRegistryClient:
    """Provide an empty in-memory registry."""
    return FakeRegistryClient()


@pytest.fixture
def make_registry() -> Callable[..., FakeRegistryClient]:
    """Factory for in-memory registries with custom namespaces."""
    return FakeRegistryClient


@pytest.fixture
def write_package(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a package directory with a manifest.

    Usage:
        def test_x(write_package) -> None:
            root = write_package({"package": {"name": "acme/tool"}})
    """

    def _write(
        manifest: dict[str, Any] | None = None,
        files: dict[str, str] | None = None,
        name: str = "pkg",
    ) -> Path:
        import yaml

        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        (root / "pkgpush.yaml").write_text(yaml.safe_dump(manifest or {}, sort_keys=False))
        for relative, content in (files or {"README.md": "# tool\n"}).items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write


@pytest.fixture
def package_dir(write_package: Callable[..., Path]) -> Path:
    """A named, public package at version 0.1.0."""
    return write_package(
        {"package": {"name": "acme/tool", "version": "0.1.0", "description": "A tool"}},
        {"README.md": "# tool\n", "src/main.py": "print('hello')\n"},
    )
