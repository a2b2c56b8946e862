"""Unit tests for publish request and outcome schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pkgpush.errors import WaitTimeoutError
from pkgpush.schemas.publish import PublishAction, PublishOutcome, PublishRequest
from pkgpush.schemas.registry import ContentHash, WaitCondition

HASH = ContentHash.of(b"package")


class TestPublishRequest:
    """Tests for PublishRequest validation."""

    def test_defaults(self) -> None:
        request = PublishRequest(namespace="acme", private=False, content_hash=HASH)
        assert request.wait is WaitCondition.NONE
        assert request.timeout_seconds == 300.0
        assert request.dry_run is False

    def test_empty_namespace_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PublishRequest(namespace="", private=False, content_hash=HASH)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            PublishRequest(namespace="acme", private=False, content_hash=HASH, timeout_seconds=0)


class TestPublishOutcome:
    """Tests for outcome reporting."""

    def test_pushed_summary(self) -> None:
        outcome = PublishOutcome(
            action=PublishAction.PUSHED,
            namespace="acme",
            content_hash=HASH,
            private=False,
            release_id="rel-1",
        )
        assert outcome.pushed
        assert outcome.ready
        assert outcome.summary() == (
            "Successfully pushed release rel-1 to namespace acme on the registry"
        )

    def test_already_present_summary(self) -> None:
        outcome = PublishOutcome(
            action=PublishAction.ALREADY_PRESENT,
            namespace="acme",
            content_hash=HASH,
            private=False,
        )
        assert not outcome.pushed
        assert "already in the registry" in outcome.summary()
        assert HASH.short in outcome.summary()

    def test_dry_run_summary(self) -> None:
        outcome = PublishOutcome(
            action=PublishAction.DRY_RUN,
            namespace="acme",
            content_hash=HASH,
            private=True,
        )
        assert outcome.summary().startswith("Dry run: would have pushed")

    def test_wait_timeout_still_succeeded(self) -> None:
        outcome = PublishOutcome(
            action=PublishAction.PUSHED,
            namespace="acme",
            content_hash=HASH,
            private=False,
            release_id="rel-1",
            wait_error=WaitTimeoutError("container", "rel-1", 5.0),
        )
        assert outcome.succeeded
        assert outcome.pushed
        assert not outcome.ready
