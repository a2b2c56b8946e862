"""Pydantic schemas for pkgpush configuration, manifests and registry payloads."""

from __future__ import annotations

from pkgpush.schemas.config import PublishSettings, RegistryConfig, RetryConfig
from pkgpush.schemas.manifest import MANIFEST_FILENAME, Manifest, PackageDescriptor
from pkgpush.schemas.publish import (
    DEFAULT_TIMEOUT_SECONDS,
    Package,
    PublishAction,
    PublishOutcome,
    PublishRequest,
)
from pkgpush.schemas.registry import (
    DEFAULT_WAIT_CONDITION,
    ContentHash,
    Identity,
    PushResult,
    ReleaseRecord,
    ReleaseStatus,
    SignedDestination,
    WaitCondition,
)

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_WAIT_CONDITION",
    "MANIFEST_FILENAME",
    "ContentHash",
    "Identity",
    "Manifest",
    "Package",
    "PackageDescriptor",
    "PublishAction",
    "PublishOutcome",
    "PublishRequest",
    "PublishSettings",
    "PushResult",
    "RegistryConfig",
    "ReleaseRecord",
    "ReleaseStatus",
    "RetryConfig",
    "SignedDestination",
    "WaitCondition",
]
