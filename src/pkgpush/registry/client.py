"""GraphQL client for the package registry.

The registry exposes a GraphQL endpoint for queries and mutations, and hands
out pre-signed URLs for uploading package bytes. This client wraps both and
turns every transport, auth or protocol failure into a RegistryQueryError so
that callers never mistake a failed lookup for "not found".

Error mapping:
    | Failure | Raised | transient |
    |---------|--------|-----------|
    | Timeout / connection error | RegistryQueryError | True |
    | HTTP 5xx | RegistryQueryError | True |
    | HTTP 401 / 403 | RegistryQueryError | False |
    | Other HTTP 4xx | RegistryQueryError | False |
    | Non-JSON body / no ``data`` | RegistryQueryError | False |
    | GraphQL ``errors`` array | RegistryQueryError | False |
    | Byte transfer failure | UploadError | - |

Every method takes its own timeout; there is no client-wide deadline.

Example:
    >>> from pkgpush.registry import RegistryClient
    >>> from pkgpush.schemas.config import RegistryConfig
    >>>
    >>> with RegistryClient(RegistryConfig(token="...")) as client:
    ...     release = client.find_by_hash(content_hash)
    ...     if release is None:
    ...         print("not published yet")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import httpx
import structlog
from pydantic import ValidationError

from pkgpush.errors import InvariantViolation, RegistryQueryError, UploadError
from pkgpush.schemas.registry import (
    ContentHash,
    Identity,
    PushResult,
    ReleaseRecord,
    ReleaseStatus,
    SignedDestination,
)

if TYPE_CHECKING:
    from types import TracebackType

    from pkgpush.cache import QueryCache
    from pkgpush.schemas.config import RegistryConfig
    from pkgpush.schemas.publish import Package

logger = structlog.get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0
"""Timeout in seconds for requests that were not given one explicitly."""

UPLOAD_URL_EXPIRY_SECONDS = 60 * 30

# =============================================================================
# GraphQL documents
# =============================================================================

GET_PACKAGE_RELEASE = """
query GetPackageRelease($hash: String!) {
  getPackageRelease(hash: $hash) {
    id
    webcUrl
  }
}
"""

GENERATE_UPLOAD_URL = """
mutation GenerateUploadUrl($filename: String!, $expiresAfterSeconds: Int) {
  generateUploadUrl(input: {filename: $filename, expiresAfterSeconds: $expiresAfterSeconds}) {
    signedUrl {
      url
    }
  }
}
"""

PUSH_PACKAGE_RELEASE = """
mutation PushPackageRelease($namespace: String!, $signedUrl: String!, $private: Boolean) {
  pushPackageRelease(input: {namespace: $namespace, signedUrl: $signedUrl, private: $private}) {
    success
    message
    packageWebc {
      id
    }
  }
}
"""

GET_RELEASE_STATUS = """
query GetReleaseStatus($id: ID!) {
  packageWebcStatus(id: $id) {
    containerReady
    nativeExecutablesReady
    bindingsReady
  }
}
"""

GET_CURRENT_USER = """
query GetCurrentUserWithNamespaces {
  viewer {
    username
    namespaces {
      edges {
        node {
          globalName
        }
      }
    }
  }
}
"""

GET_PACKAGE_VERSION = """
query GetPackageVersion($name: String!, $version: String) {
  getPackageVersion(name: $name, version: $version) {
    id
    version
    description
    webcHash
  }
}
"""


class RegistryClient:
    """Client for registry queries, mutations and uploads.

    The client owns an httpx.Client unless one is injected. Use it as a
    context manager so the connection pool is closed on every exit path.

    Attributes:
        config: Registry connection settings.
    """

    def __init__(
        self,
        config: RegistryConfig,
        *,
        http_client: httpx.Client | None = None,
        query_cache: QueryCache | None = None,
        default_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize RegistryClient.

        Args:
            config: Registry URL, token and TLS settings.
            http_client: Optional pre-built httpx client (tests inject one
                backed by httpx.MockTransport).
            query_cache: Optional cache used by read-only lookups such as
                get_package_version. Publish-path queries never use it.
            default_timeout: Timeout for calls that do not pass their own.
        """
        self._config = config
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(verify=config.tls_verify)
        self._query_cache = query_cache
        self._default_timeout = default_timeout

        logger.debug(
            "registry_client_initialized",
            registry=self.registry_host,
            authenticated=config.token is not None,
        )

    @property
    def config(self) -> RegistryConfig:
        """Return the registry configuration."""
        return self._config

    @property
    def registry_host(self) -> str:
        """Host name of the registry, safe for logging."""
        return urlsplit(self._config.url).netloc

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.token is not None:
            headers["Authorization"] = f"Bearer {self._config.token.get_secret_value()}"
        return headers

    def _execute(
        self,
        operation: str,
        document: str,
        variables: dict[str, Any],
        timeout: float | None,
    ) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            RegistryQueryError: On any transport, HTTP, or GraphQL failure.
        """
        effective_timeout = timeout if timeout is not None else self._default_timeout
        log = logger.bind(registry=self.registry_host, operation=operation)

        try:
            response = self._http.post(
                self._config.url,
                json={"query": document, "variables": variables},
                headers=self._headers(),
                timeout=effective_timeout,
            )
        except httpx.TimeoutException as e:
            log.warning("registry_request_timeout", timeout=effective_timeout)
            raise RegistryQueryError(
                operation, f"request timed out after {effective_timeout:g}s", transient=True
            ) from e
        except httpx.TransportError as e:
            log.warning("registry_request_failed", error=str(e))
            raise RegistryQueryError(operation, str(e), transient=True) from e

        if response.status_code in (401, 403):
            raise RegistryQueryError(
                operation,
                f"authentication failed (HTTP {response.status_code}); check PKGPUSH_TOKEN",
            )
        if response.status_code >= 400:
            raise RegistryQueryError(
                operation,
                f"registry returned HTTP {response.status_code}",
                transient=response.status_code >= 500,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RegistryQueryError(operation, "malformed response (not JSON)") from e

        if not isinstance(body, dict):
            raise RegistryQueryError(operation, "malformed response (expected an object)")

        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise RegistryQueryError(operation, messages)

        data = body.get("data")
        if not isinstance(data, dict):
            raise RegistryQueryError(operation, "malformed response (missing data)")

        log.debug("registry_request_ok", status_code=response.status_code)
        return data

    # -------------------------------------------------------------------------
    # Publish operations
    # -------------------------------------------------------------------------

    def find_by_hash(
        self, content_hash: ContentHash, timeout: float | None = None
    ) -> ReleaseRecord | None:
        """Look up an existing release by content hash.

        Args:
            content_hash: Hash of the package content.
            timeout: Per-request timeout in seconds.

        Returns:
            The ReleaseRecord, or None if the registry has no such release.

        Raises:
            RegistryQueryError: If the lookup itself fails.
        """
        operation = "find_by_hash"
        data = self._execute(operation, GET_PACKAGE_RELEASE, {"hash": str(content_hash)}, timeout)
        payload = data.get("getPackageRelease")
        if payload is None:
            return None

        try:
            return ReleaseRecord(
                id=payload["id"],
                content_hash=str(content_hash),
                webc_url=payload.get("webcUrl"),
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise RegistryQueryError(operation, f"malformed release record: {e}") from e

    def request_upload_destination(
        self, content_hash: ContentHash, timeout: float | None = None
    ) -> SignedDestination:
        """Ask the registry for a pre-signed upload URL.

        Raises:
            RegistryQueryError: If the request fails.
            InvariantViolation: If the response carries no URL.
        """
        operation = "request_upload_destination"
        data = self._execute(
            operation,
            GENERATE_UPLOAD_URL,
            {
                "filename": content_hash.digest,
                "expiresAfterSeconds": UPLOAD_URL_EXPIRY_SECONDS,
            },
            timeout,
        )
        payload = data.get("generateUploadUrl") or {}
        signed = payload.get("signedUrl") or {}
        url = signed.get("url")
        if not url:
            raise InvariantViolation(operation, "signedUrl.url")
        return SignedDestination(url=url)

    def transfer(
        self,
        destination: SignedDestination,
        package: Package,
        timeout: float | None = None,
    ) -> None:
        """Upload package bytes to a pre-signed URL.

        Args:
            destination: Signed URL from request_upload_destination.
            package: The built package.
            timeout: Per-request timeout in seconds.

        Raises:
            UploadError: If the transfer fails for any reason.
        """
        effective_timeout = timeout if timeout is not None else self._default_timeout
        upload_host = urlsplit(destination.url).netloc

        try:
            response = self._http.put(
                destination.url,
                content=package.data,
                headers={"Content-Type": "application/gzip"},
                timeout=effective_timeout,
            )
        except httpx.HTTPError as e:
            raise UploadError(str(ContentHash.of(package.data)), str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise UploadError(
                str(ContentHash.of(package.data)),
                f"upload destination returned HTTP {response.status_code}",
            )

        logger.info("package_transferred", upload_host=upload_host, size=package.size)

    def register_release(
        self,
        namespace: str,
        destination: SignedDestination,
        private: bool,
        timeout: float | None = None,
    ) -> PushResult | None:
        """Register an uploaded package as a release.

        Returns:
            The PushResult, or None if the registry returned no payload.

        Raises:
            RegistryQueryError: If the request fails at transport level.
        """
        operation = "register_release"
        data = self._execute(
            operation,
            PUSH_PACKAGE_RELEASE,
            {"namespace": namespace, "signedUrl": destination.url, "private": private},
            timeout,
        )
        payload = data.get("pushPackageRelease")
        if payload is None:
            return None

        webc = payload.get("packageWebc") or {}
        return PushResult(
            success=bool(payload.get("success")),
            release_id=webc.get("id"),
            message=payload.get("message"),
        )

    def poll_status(self, release_id: str, timeout: float | None = None) -> ReleaseStatus:
        """Fetch readiness flags for a pushed release.

        Raises:
            RegistryQueryError: If the request fails or the release is unknown.
        """
        operation = "poll_status"
        data = self._execute(operation, GET_RELEASE_STATUS, {"id": release_id}, timeout)
        payload = data.get("packageWebcStatus")
        if payload is None:
            raise RegistryQueryError(operation, f"release {release_id} not found")

        return ReleaseStatus(
            release_id=release_id,
            container_ready=bool(payload.get("containerReady")),
            native_executables_ready=bool(payload.get("nativeExecutablesReady")),
            bindings_ready=bool(payload.get("bindingsReady")),
        )

    def current_identity(self, timeout: float | None = None) -> Identity:
        """Return the authenticated user and the namespaces they can push to.

        Raises:
            RegistryQueryError: If the request fails or nobody is logged in.
        """
        operation = "current_identity"
        data = self._execute(operation, GET_CURRENT_USER, {}, timeout)
        viewer = data.get("viewer")
        if viewer is None:
            raise RegistryQueryError(operation, "not logged in; set PKGPUSH_TOKEN")

        edges = (viewer.get("namespaces") or {}).get("edges") or []
        namespaces = [
            edge["node"]["globalName"]
            for edge in edges
            if edge and edge.get("node") and edge["node"].get("globalName")
        ]
        return Identity(username=viewer.get("username", ""), namespaces=namespaces)

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def get_package_version(
        self,
        name: str,
        version: str | None = None,
        *,
        use_cache: bool = True,
        timeout: float | None = None,
    ) -> dict[str, Any] | None:
        """Look up a package version by name, through the query cache.

        Both hits and misses are cached, which is why a publish must clear
        the cache afterwards.

        Args:
            name: Package name (namespace/name).
            version: Specific version, or None for the latest.
            use_cache: Read from and write to the query cache.
            timeout: Per-request timeout in seconds.

        Returns:
            The package version payload, or None if it does not exist.
        """
        operation = "get_package_version"
        variables = {"name": name, "version": version}
        cache = self._query_cache if use_cache else None

        if cache is not None:
            key = cache.key(operation, variables)
            cached = cache.get(key)
            if cached is not None:
                return cached.get("result")

        data = self._execute(operation, GET_PACKAGE_VERSION, variables, timeout)
        result = data.get("getPackageVersion")

        if cache is not None:
            cache.put(key, operation, {"result": result})
        return result


__all__ = ["DEFAULT_REQUEST_TIMEOUT", "RegistryClient"]
