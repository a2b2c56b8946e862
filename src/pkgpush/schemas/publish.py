"""Schemas for one publish invocation.

PublishRequest is the in-flight state of a publish; PublishOutcome is what
the orchestrator hands back. Neither is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from pkgpush.schemas.registry import ContentHash, ReleaseStatus, WaitCondition

if TYPE_CHECKING:
    from pkgpush.errors import CacheInvalidationWarning, WaitTimeoutError

DEFAULT_TIMEOUT_SECONDS = 300.0
"""Per-call registry timeout (5 minutes)."""


@dataclass(frozen=True)
class Package:
    """A locally built package archive.

    Attributes:
        manifest_path: Manifest the package was built from.
        data: The archive bytes.
        file_count: Number of files in the archive.
    """

    manifest_path: Path
    data: bytes
    file_count: int

    @property
    def size(self) -> int:
        """Archive size in bytes."""
        return len(self.data)


class PublishRequest(BaseModel):
    """Resolved inputs for one publish invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = Field(..., min_length=1)
    private: bool
    content_hash: ContentHash
    dry_run: bool = False
    quiet: bool = False
    wait: WaitCondition = WaitCondition.NONE
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)


class PublishAction(str, Enum):
    """What a publish invocation did after the dedup decision."""

    PUSHED = "pushed"
    ALREADY_PRESENT = "already-present"
    DRY_RUN = "dry-run"


@dataclass
class PublishOutcome:
    """Result of a publish that completed its dedup decision.

    A returned outcome always means the publish succeeded. A wait timeout or
    a cache invalidation problem is carried here instead of being raised.
    """

    action: PublishAction
    namespace: str
    content_hash: ContentHash
    private: bool
    release_id: str | None = None
    status: ReleaseStatus | None = None
    wait_error: WaitTimeoutError | None = None
    cache_warning: CacheInvalidationWarning | None = None

    @property
    def succeeded(self) -> bool:
        """Always True; failures are raised, never returned."""
        return True

    @property
    def pushed(self) -> bool:
        """True if this invocation transferred and registered the package."""
        return self.action is PublishAction.PUSHED

    @property
    def ready(self) -> bool:
        """False only when the readiness wait timed out."""
        return self.wait_error is None

    def summary(self) -> str:
        """One-line report of the outcome."""
        if self.action is PublishAction.ALREADY_PRESENT:
            return f"Package {self.content_hash.short} was already in the registry, no push needed"
        if self.action is PublishAction.DRY_RUN:
            return (
                f"Dry run: would have pushed {self.content_hash.short} "
                f"to namespace {self.namespace}"
            )
        return (
            f"Successfully pushed release {self.release_id} "
            f"to namespace {self.namespace} on the registry"
        )


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "Package",
    "PublishAction",
    "PublishOutcome",
    "PublishRequest",
]
