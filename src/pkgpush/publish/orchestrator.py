"""Publish workflow orchestration.

Sequences build, namespace resolution, dedup check, upload, readiness wait
and cache invalidation into one idempotent publish.

State Machine:
    BUILDING → NAMESPACE_RESOLVING → CHECKING → {SKIPPING | UPLOADING}
        → WAITING → INVALIDATING → DONE
    FAILED is reachable from every state and is terminal.

Transition rules:
    - A failure in any required state stamps the error with the stage name,
      moves to FAILED and re-raises. Nothing is retried as a whole; running
      the publish again is the retry, made safe by the hash check.
    - Already present: SKIPPING, then INVALIDATING.
    - Dry run with an upload needed: SKIPPING (no mutation), then INVALIDATING.
    - Invalidation runs after every dedup decision, not only after uploads,
      so a cached "not found" from before is corrected either way.
    - A readiness timeout is not a failure: the push committed, so the
      outcome carries the WaitTimeoutError and invalidation still runs.
    - Invalidation problems are warnings on the outcome, never failures.
    - With --bump, a publish that fails puts the original manifest back, so
      a rerun bumps from the same version again.

Example:
    >>> with RegistryClient(settings.registry) as client:
    ...     orchestrator = PublishOrchestrator(
    ...         client,
    ...         invalidator=CacheInvalidator(settings.query_cache_dir),
    ...     )
    ...     outcome = orchestrator.publish(manifest_path, manifest, PublishOptions())
    ...     print(outcome.summary())
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from pkgpush.builder import PackageBuilder
from pkgpush.errors import BuildError, PublishError, WaitTimeoutError
from pkgpush.manifest import bump_manifest_version
from pkgpush.publish.dedup import should_upload
from pkgpush.publish.namespace import IdentityPrompt, resolve_namespace
from pkgpush.publish.progress import Spinner
from pkgpush.publish.upload import push_release
from pkgpush.publish.wait import AvailabilityWaiter
from pkgpush.schemas.publish import (
    DEFAULT_TIMEOUT_SECONDS,
    PublishAction,
    PublishOutcome,
    PublishRequest,
)
from pkgpush.schemas.registry import WaitCondition
from pkgpush.telemetry import get_tracer

if TYPE_CHECKING:
    from pkgpush.publish.invalidate import CacheInvalidator
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.manifest import Manifest
    from pkgpush.schemas.registry import ReleaseStatus

logger = structlog.get_logger(__name__)


class PublishState(str, Enum):
    """States of one publish invocation."""

    BUILDING = "building"
    NAMESPACE_RESOLVING = "namespace-resolving"
    CHECKING = "checking"
    SKIPPING = "skipping"
    UPLOADING = "uploading"
    WAITING = "waiting"
    INVALIDATING = "invalidating"
    DONE = "done"
    FAILED = "failed"

    @property
    def label(self) -> str:
        """Human readable stage name used in error messages."""
        return _STATE_LABELS[self]


_STATE_LABELS: dict[PublishState, str] = {
    PublishState.BUILDING: "build",
    PublishState.NAMESPACE_RESOLVING: "namespace resolution",
    PublishState.CHECKING: "registry check",
    PublishState.SKIPPING: "skip",
    PublishState.UPLOADING: "upload",
    PublishState.WAITING: "wait",
    PublishState.INVALIDATING: "cache invalidation",
    PublishState.DONE: "done",
    PublishState.FAILED: "failed",
}


@dataclass(frozen=True)
class PublishOptions:
    """Caller-supplied options for a publish, before resolution."""

    namespace: str | None = None
    dry_run: bool = False
    quiet: bool = False
    wait: WaitCondition = WaitCondition.NONE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    interactive: bool = False
    bump: bool = False


class PublishOrchestrator:
    """Runs the publish state machine for one package.

    Collaborators are injected so tests can substitute fakes; only the
    registry client and the cache invalidator are required.

    Attributes:
        state: Current state.
        state_history: Every state entered, in order.
    """

    def __init__(
        self,
        client: RegistryClient,
        *,
        invalidator: CacheInvalidator,
        builder: PackageBuilder | None = None,
        waiter: AvailabilityWaiter | None = None,
        prompt: IdentityPrompt | None = None,
        interactive_spinner: bool | None = None,
    ) -> None:
        self._client = client
        self._invalidator = invalidator
        self._builder = builder or PackageBuilder()
        self._waiter = waiter or AvailabilityWaiter()
        self._prompt = prompt
        self._interactive_spinner = interactive_spinner
        self._tracer = get_tracer(__name__)
        self.state = PublishState.BUILDING
        self.state_history: list[PublishState] = []

    def _transition(self, state: PublishState) -> None:
        self.state = state
        self.state_history.append(state)
        logger.debug("publish_state", state=state.value)

    @contextmanager
    def _stage(self, state: PublishState) -> Iterator[None]:
        """Enter a state; on error stamp the stage, move to FAILED and re-raise."""
        self._transition(state)
        with self._tracer.start_as_current_span(f"pkgpush.publish.{state.value}"):
            try:
                yield
            except PublishError as e:
                if e.stage is None:
                    e.stage = state.label
                logger.error("publish_failed", stage=state.label, error=str(e))
                self._transition(PublishState.FAILED)
                raise
            except BaseException:
                self._transition(PublishState.FAILED)
                raise

    def publish(
        self,
        manifest_path: Path,
        manifest: Manifest,
        options: PublishOptions,
    ) -> PublishOutcome:
        """Publish the package described by a manifest.

        Args:
            manifest_path: Path to the manifest file.
            manifest: The parsed manifest.
            options: Publish options.

        Returns:
            PublishOutcome describing what happened.

        Raises:
            BuildError: The package could not be built.
            ConfigurationError: No namespace could be resolved.
            RegistryQueryError: A registry read failed.
            UploadError: The upload failed.
            RegistryRejectedError: The registry refused the release.
            InvariantViolation: The registry response broke its contract.
        """
        self.state_history = []
        original = _read_manifest_bytes(manifest_path) if options.bump else None
        try:
            return self._run(manifest_path, manifest, options)
        except PublishError:
            if original is not None:
                _restore_manifest(manifest_path, original)
            raise

    def _run(
        self,
        manifest_path: Path,
        manifest: Manifest,
        options: PublishOptions,
    ) -> PublishOutcome:
        with Spinner(options.quiet, interactive=self._interactive_spinner) as spinner:
            with self._stage(PublishState.BUILDING):
                if options.bump:
                    manifest_path, manifest = bump_manifest_version(manifest_path)
                spinner.start("Creating the package locally...")
                package, content_hash = self._builder.build(manifest_path)
                spinner.ok("Correctly built package locally")
                logger.info("package_hash", content_hash=str(content_hash))

            with self._stage(PublishState.NAMESPACE_RESOLVING):
                with spinner.suspend():
                    namespace = resolve_namespace(
                        options.namespace,
                        manifest,
                        options.interactive,
                        self._client,
                        self._prompt,
                        timeout=options.timeout_seconds,
                    )

            request = PublishRequest(
                namespace=namespace,
                private=manifest.is_private,
                content_hash=content_hash,
                dry_run=options.dry_run,
                quiet=options.quiet,
                wait=options.wait,
                timeout_seconds=options.timeout_seconds,
            )
            logger.info("publish_request", namespace=namespace, private=request.private)

            with self._stage(PublishState.CHECKING):
                spinner.start("Checking if package is already in the registry..")
                upload_needed = should_upload(
                    self._client, content_hash, timeout=request.timeout_seconds
                )

            release_id: str | None = None
            status: ReleaseStatus | None = None
            wait_error: WaitTimeoutError | None = None

            if not upload_needed:
                with self._stage(PublishState.SKIPPING):
                    action = PublishAction.ALREADY_PRESENT
                    spinner.ok("Package was already in the registry, no push needed")
            elif request.dry_run:
                with self._stage(PublishState.SKIPPING):
                    action = PublishAction.DRY_RUN
                    spinner.ok("Skipping push as dry-run is set")
            else:
                spinner.clear()
                with self._stage(PublishState.UPLOADING):
                    action = PublishAction.PUSHED
                    release_id = push_release(
                        self._client,
                        request.namespace,
                        package,
                        request.content_hash,
                        request.private,
                        request.timeout_seconds,
                        spinner,
                    )

                with self._stage(PublishState.WAITING):
                    try:
                        status = self._waiter.wait(
                            self._client,
                            request.wait,
                            release_id,
                            request.timeout_seconds,
                            spinner,
                        )
                    except WaitTimeoutError as e:
                        e.stage = PublishState.WAITING.label
                        wait_error = e
                        status = e.last_status

            with self._stage(PublishState.INVALIDATING):
                cache_warning = self._invalidator.invalidate()

            self._transition(PublishState.DONE)

        outcome = PublishOutcome(
            action=action,
            namespace=request.namespace,
            content_hash=request.content_hash,
            private=request.private,
            release_id=release_id,
            status=status,
            wait_error=wait_error,
            cache_warning=cache_warning,
        )
        logger.info(
            "publish_complete",
            action=outcome.action.value,
            namespace=outcome.namespace,
            content_hash=str(outcome.content_hash),
            release_id=outcome.release_id,
            ready=outcome.ready,
        )
        return outcome


def _read_manifest_bytes(manifest_path: Path) -> bytes:
    try:
        return manifest_path.read_bytes()
    except OSError as e:
        raise BuildError(str(manifest_path), f"failed to read manifest: {e}") from e


def _restore_manifest(manifest_path: Path, original: bytes) -> None:
    """Put back the manifest a failed publish bumped."""
    try:
        manifest_path.write_bytes(original)
    except OSError as e:
        logger.warning("manifest_restore_failed", path=str(manifest_path), error=str(e))
        return
    logger.info("manifest_restored", path=str(manifest_path))


__all__ = [
    "PublishOptions",
    "PublishOrchestrator",
    "PublishState",
]
