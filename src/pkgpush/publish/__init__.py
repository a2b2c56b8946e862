"""Publish workflow for pkgpush.

Key Components:
- PublishOrchestrator: State machine sequencing the whole publish
- resolve_namespace: Namespace precedence (flag, manifest, prompt)
- should_upload: Dedup decision by content hash
- push_release: Upload bytes and register the release
- AvailabilityWaiter: Poll until the release is ready
- CacheInvalidator: Drop cached registry reads after a publish
- Spinner: Suspendable progress indicator
"""

from __future__ import annotations

from pkgpush.publish.dedup import should_upload
from pkgpush.publish.invalidate import CacheInvalidator
from pkgpush.publish.namespace import ClickIdentityPrompt, IdentityPrompt, resolve_namespace
from pkgpush.publish.orchestrator import PublishOptions, PublishOrchestrator, PublishState
from pkgpush.publish.progress import Spinner
from pkgpush.publish.upload import push_release
from pkgpush.publish.wait import AvailabilityWaiter, Clock, SystemClock

__all__ = [
    "AvailabilityWaiter",
    "CacheInvalidator",
    "ClickIdentityPrompt",
    "Clock",
    "IdentityPrompt",
    "PublishOptions",
    "PublishOrchestrator",
    "PublishState",
    "Spinner",
    "SystemClock",
    "push_release",
    "resolve_namespace",
    "should_upload",
]
