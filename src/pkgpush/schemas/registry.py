"""Schemas for values exchanged with the package registry.

These mirror the registry's GraphQL payloads. They are owned by the registry
and treated as authoritative; the publish workflow never persists them.

Key Components:
    ContentHash: Content address of a built package (sha256)
    ReleaseRecord: An existing release found by hash
    SignedDestination: Pre-signed URL to upload package bytes to
    PushResult: Response to a release registration
    ReleaseStatus: Readiness flags of a pushed release
    WaitCondition: Readiness target requested by the caller
    Identity: The authenticated user and their namespaces
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

HASH_PATTERN = re.compile(r"^sha256:([0-9a-f]{64})$")


class ContentHash(BaseModel):
    """Deterministic digest of package bytes.

    Examples:
        >>> h = ContentHash.of(b"hello")
        >>> str(h)[:15]
        'sha256:2cf24dba'
        >>> ContentHash.parse(str(h)) == h
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    digest: str = Field(
        ...,
        pattern=r"^[0-9a-f]{64}$",
        description="Lowercase hex sha256 digest",
    )

    @classmethod
    def of(cls, data: bytes) -> ContentHash:
        """Hash raw package bytes."""
        return cls(digest=hashlib.sha256(data).hexdigest())

    @classmethod
    def parse(cls, value: str) -> ContentHash:
        """Parse the ``sha256:<hex>`` form.

        Raises:
            ValueError: If the value is not a sha256 content hash.
        """
        match = HASH_PATTERN.match(value)
        if match is None:
            raise ValueError(f"Not a content hash: {value!r}")
        return cls(digest=match.group(1))

    @property
    def short(self) -> str:
        """Abbreviated form for display."""
        return f"sha256:{self.digest[:12]}"

    def __str__(self) -> str:
        return f"sha256:{self.digest}"


class ReleaseRecord(BaseModel):
    """A release the registry already holds for a content hash."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    content_hash: str
    webc_url: str | None = None


class SignedDestination(BaseModel):
    """Pre-signed upload URL returned by the registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(..., min_length=1)
    expires_at: datetime | None = None


class PushResult(BaseModel):
    """Registry response to a release registration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    success: bool
    release_id: str | None = None
    message: str | None = None


class WaitCondition(str, Enum):
    """Readiness target to observe before a push returns."""

    NONE = "none"
    CONTAINER = "container"
    NATIVE_EXECUTABLES = "native-executables"
    BINDINGS = "bindings"
    ALL = "all"


DEFAULT_WAIT_CONDITION = WaitCondition.CONTAINER
"""Mode used when ``--wait`` is given without a value."""


class ReleaseStatus(BaseModel):
    """Readiness flags of a pushed release."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    release_id: str
    container_ready: bool = False
    native_executables_ready: bool = False
    bindings_ready: bool = False

    def satisfies(self, condition: WaitCondition) -> bool:
        """Check whether this status meets a wait condition.

        Args:
            condition: The readiness target.

        Returns:
            True if the release is ready for the condition. NONE is
            always satisfied.
        """
        if condition is WaitCondition.NONE:
            return True
        if condition is WaitCondition.CONTAINER:
            return self.container_ready
        if condition is WaitCondition.NATIVE_EXECUTABLES:
            return self.native_executables_ready
        if condition is WaitCondition.BINDINGS:
            return self.bindings_ready
        return self.container_ready and self.native_executables_ready and self.bindings_ready

    def describe(self) -> str:
        """Short human readable summary of the readiness flags."""
        flags = {
            "container": self.container_ready,
            "native-executables": self.native_executables_ready,
            "bindings": self.bindings_ready,
        }
        return ", ".join(f"{k}={'ready' if v else 'pending'}" for k, v in flags.items())


class Identity(BaseModel):
    """The authenticated registry user."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str
    namespaces: list[str] = Field(default_factory=list)


__all__ = [
    "DEFAULT_WAIT_CONDITION",
    "ContentHash",
    "Identity",
    "PushResult",
    "ReleaseRecord",
    "ReleaseStatus",
    "SignedDestination",
    "WaitCondition",
]
