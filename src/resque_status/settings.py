"""Key names and environment-driven settings for resque-status.

The three store keys are the on-the-wire contract with every other tool
that inspects the store directly, so their defaults must not change.
``StatusKeys`` makes them an immutable value passed into the registry
instead of process-wide globals, which lets a deployment namespace them
(``tenant-a:ResqueWorker``) without code changes.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** ``RESQUE_STATUS_*`` env vars and ``.env`` files
    - **Interoperable defaults:** Key names match existing deployments
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from resque_status.settings import StatusKeys
    >>> StatusKeys().worker
    'ResqueWorker'
    >>> StatusKeys().with_prefix("tenant-a:").paused
    'tenant-a:PausedWorker'

Tags:
    settings, configuration, pydantic, environment, resque-status

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .serializers import SerializerKind

DEFAULT_WORKER_KEY = "ResqueWorker"
DEFAULT_SCHEDULER_KEY = "ResqueSchedulerWorker"
DEFAULT_PAUSED_KEY = "PausedWorker"


@dataclass(frozen=True)
class StatusKeys:
    """Store keys of the three registry records.

    Attributes:
        worker: Hash of worker pid → encoded runtime arguments.
        scheduler: String holding the registered scheduler pid.
        paused: Set of paused worker names.
    """

    worker: str = DEFAULT_WORKER_KEY
    scheduler: str = DEFAULT_SCHEDULER_KEY
    paused: str = DEFAULT_PAUSED_KEY

    def with_prefix(self, prefix: str) -> StatusKeys:
        """Return a copy with every key namespaced by *prefix*."""
        if not prefix:
            return self
        return replace(
            self,
            worker=f"{prefix}{self.worker}",
            scheduler=f"{prefix}{self.scheduler}",
            paused=f"{prefix}{self.paused}",
        )

    def all(self) -> tuple[str, str, str]:
        return (self.worker, self.scheduler, self.paused)


class ResqueStatusSettings(BaseSettings):
    """resque-status configuration.

    All fields can be set via ``RESQUE_STATUS_*`` environment variables
    (e.g. ``RESQUE_STATUS_REDIS_URL=redis://cache:6379/2``) or a ``.env``
    file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESQUE_STATUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Redis ────────────────────────────────────────────────────
    redis_url: str = Field(default="redis://localhost:6379/0")
    socket_timeout: float | None = Field(
        default=5.0,
        description="Seconds before a store request is abandoned (None waits forever)",
    )

    # ── Keys ─────────────────────────────────────────────────────
    key_prefix: str = Field(default="", description="Namespace prepended to every key")
    worker_key: str = Field(default=DEFAULT_WORKER_KEY)
    scheduler_key: str = Field(default=DEFAULT_SCHEDULER_KEY)
    paused_key: str = Field(default=DEFAULT_PAUSED_KEY)

    # ── Payloads ─────────────────────────────────────────────────
    serializer: SerializerKind = Field(default=SerializerKind.JSON)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("worker_key", "scheduler_key", "paused_key")
    @classmethod
    def _non_empty_key(cls, value: str) -> str:
        if not value:
            raise ValueError("store key names must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {value!r}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value

    def keys(self) -> StatusKeys:
        """Build the :class:`StatusKeys` described by these settings."""
        return StatusKeys(
            worker=self.worker_key,
            scheduler=self.scheduler_key,
            paused=self.paused_key,
        ).with_prefix(self.key_prefix)


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, ResqueStatusSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ResqueStatusSettings:
    """Load, validate, and cache a :class:`ResqueStatusSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = ResqueStatusSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests and long-lived shells)."""
    _settings_cache.clear()


__all__ = [
    "DEFAULT_WORKER_KEY",
    "DEFAULT_SCHEDULER_KEY",
    "DEFAULT_PAUSED_KEY",
    "StatusKeys",
    "ResqueStatusSettings",
    "get_settings",
    "clear_settings_cache",
]
