"""Configuration schemas for pkgpush.

Settings come from the environment (there is no config file). Every model
is frozen so a settings object can be passed around freely.

Environment Variables:
    PKGPUSH_REGISTRY: Registry GraphQL endpoint URL.
    PKGPUSH_TOKEN: Bearer token for the registry (never logged).
    PKGPUSH_CACHE_DIR: Local cache root (default: ~/.cache/pkgpush).
    PKGPUSH_POLL_INTERVAL: Seconds between readiness polls.
    PKGPUSH_TLS_VERIFY: Set to false to skip TLS verification.
    PKGPUSH_QUERY_CACHE_TTL_SECONDS: Freshness of cached registry reads.

Example:
    >>> settings = PublishSettings.from_env()
    >>> settings.registry.url
    'https://registry.pkgpush.dev/graphql'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pkgpush.errors import ConfigurationError

DEFAULT_REGISTRY_URL = "https://registry.pkgpush.dev/graphql"
"""Registry endpoint used when PKGPUSH_REGISTRY is not set."""


def _check_registry_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError("Registry URL must start with 'http://' or 'https://'")
    return v


def _default_cache_dir() -> Path:
    return Path.home() / ".cache" / "pkgpush"


class RetryConfig(BaseModel):
    """Retry policy configuration for transient registry failures.

    Uses exponential backoff with optional jitter. Retries are always
    bounded by max_attempts.

    Examples:
        >>> config = RetryConfig(max_attempts=5, initial_delay_ms=200)
        >>> config.initial_delay_ms
        200
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of attempts, including the first one",
    )
    initial_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Initial delay between retries in milliseconds",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=5.0,
        description="Multiplier for exponential backoff",
    )
    max_delay_ms: int = Field(
        default=10000,
        ge=0,
        description="Maximum delay cap in milliseconds",
    )
    jitter: bool = Field(
        default=True,
        description="Add random jitter to delays",
    )


class RegistryConfig(BaseModel):
    """Connection settings for the package registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(
        default=DEFAULT_REGISTRY_URL,
        min_length=1,
        description="GraphQL endpoint of the registry",
    )
    token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent with every registry request",
    )
    tls_verify: bool = Field(
        default=True,
        description="Verify TLS certificates (disable only for local testing)",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the registry URL scheme."""
        return _check_registry_url(v)


class PublishSettings(BaseSettings):
    """Top-level settings for one pkgpush process.

    Fields are read from ``PKGPUSH_``-prefixed environment variables; empty
    values count as unset.

    Examples:
        >>> settings = PublishSettings()
        >>> settings.retry.max_attempts
        3
        >>> settings.query_cache_dir.name
        'queries'
    """

    model_config = SettingsConfigDict(
        env_prefix="PKGPUSH_",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    registry_url: str = Field(
        default=DEFAULT_REGISTRY_URL,
        min_length=1,
        validation_alias="PKGPUSH_REGISTRY",
        description="GraphQL endpoint of the registry",
    )
    token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent with every registry request",
    )
    tls_verify: bool = Field(
        default=True,
        description="Verify TLS certificates (disable only for local testing)",
    )
    cache_dir: Path = Field(
        default_factory=_default_cache_dir,
        description="Root of the local cache shared with other pkgpush commands",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        le=60,
        validation_alias="PKGPUSH_POLL_INTERVAL",
        description="Delay between readiness polls after a push",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)
    query_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        description="How long cached registry read results stay fresh",
    )

    @field_validator("registry_url")
    @classmethod
    def validate_registry_url(cls, v: str) -> str:
        """Validate the registry URL scheme."""
        return _check_registry_url(v)

    @field_validator("cache_dir")
    @classmethod
    def expand_cache_dir(cls, v: Path) -> Path:
        """Expand a leading ~ in a configured cache directory."""
        return v.expanduser()

    @property
    def registry(self) -> RegistryConfig:
        """Connection settings for the registry client."""
        return RegistryConfig(url=self.registry_url, token=self.token, tls_verify=self.tls_verify)

    @property
    def query_cache_dir(self) -> Path:
        """Directory holding cached registry query results."""
        return self.cache_dir / "queries"

    @classmethod
    def from_env(cls) -> PublishSettings:
        """Build settings from the process environment.

        Returns:
            Validated PublishSettings.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pkgpush configuration: {e}") from e


__all__ = [
    "DEFAULT_REGISTRY_URL",
    "PublishSettings",
    "RegistryConfig",
    "RetryConfig",
]
