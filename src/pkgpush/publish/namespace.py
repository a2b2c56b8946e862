"""Namespace resolution for a push.

Precedence, first match wins:
    1. The explicit ``--namespace`` value
    2. The manifest package name's prefix before the first ``/``
    3. Non-interactive mode: ConfigurationError, no network call
    4. Query the authenticated identity and prompt for a namespace

Only step 4 talks to the registry or the user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import click
import structlog

from pkgpush.errors import ConfigurationError

if TYPE_CHECKING:
    from pkgpush.registry.client import RegistryClient
    from pkgpush.schemas.manifest import Manifest
    from pkgpush.schemas.registry import Identity

logger = structlog.get_logger(__name__)

PROMPT_MESSAGE = "Choose a namespace to push the package to"


class IdentityPrompt(Protocol):
    """Asks the user to pick one of their namespaces."""

    def choose_namespace(self, message: str, identity: Identity) -> str:
        """Return the chosen namespace."""
        ...


class ClickIdentityPrompt:
    """IdentityPrompt backed by click.prompt."""

    def choose_namespace(self, message: str, identity: Identity) -> str:
        if not identity.namespaces:
            raise ConfigurationError(
                f"User {identity.username} has no namespaces to push to: use --namespace NAME"
            )
        return click.prompt(
            message,
            type=click.Choice(identity.namespaces),
            default=identity.namespaces[0],
            err=True,
        )


def resolve_namespace(
    explicit: str | None,
    manifest: Manifest,
    interactive: bool,
    client: RegistryClient,
    prompt: IdentityPrompt | None = None,
    *,
    timeout: float | None = None,
) -> str:
    """Determine the namespace a package is pushed to.

    Args:
        explicit: Namespace given on the command line, if any.
        manifest: The package manifest.
        interactive: Whether prompting the user is allowed.
        client: Registry client, used only when prompting.
        prompt: Prompt capability. Defaults to ClickIdentityPrompt.
        timeout: Timeout for the identity query.

    Returns:
        The namespace.

    Raises:
        ConfigurationError: If no namespace can be determined without
            prompting and prompting is disabled.
        RegistryQueryError: If the identity query fails.
    """
    if explicit:
        logger.debug("namespace_resolved", source="explicit", namespace=explicit)
        return explicit

    hint = manifest.namespace_hint
    if hint:
        logger.debug("namespace_resolved", source="manifest", namespace=hint)
        return hint

    if not interactive:
        raise ConfigurationError("No package namespace specified: use --namespace NAME")

    identity = client.current_identity(timeout=timeout)
    chooser = prompt if prompt is not None else ClickIdentityPrompt()
    namespace = chooser.choose_namespace(PROMPT_MESSAGE, identity)
    logger.debug("namespace_resolved", source="prompt", namespace=namespace)
    return namespace


__all__ = ["ClickIdentityPrompt", "IdentityPrompt", "resolve_namespace"]
