"""Registry access for pkgpush.

Key Components:
- RegistryClient: GraphQL queries/mutations and signed-URL uploads
- RetryPolicy: Bounded exponential backoff for transient read failures
"""

from __future__ import annotations

from pkgpush.registry.client import DEFAULT_REQUEST_TIMEOUT, RegistryClient
from pkgpush.registry.resilience import RetryPolicy, is_transient

__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "RegistryClient",
    "RetryPolicy",
    "is_transient",
]
