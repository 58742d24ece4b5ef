# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.settings",
#   "purpose": "Environment-backed settings for object-store construction",
#   "sections": [
#     {
#       "id": "cloudsettings",
#       "name": "CloudSettings",
#       "anchor": "class-cloudsettings",
#       "kind": "class"
#     },
#     {
#       "id": "get-settings",
#       "name": "get_settings",
#       "anchor": "function-get-settings",
#       "kind": "function"
#     },
#     {
#       "id": "get-env-file-cache-ttl",
#       "name": "get_env_file_cache_ttl",
#       "anchor": "function-get-env-file-cache-ttl",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Environment-backed settings for object-store construction.

All knobs are read from ``CLOUDIO_*`` environment variables through
pydantic-settings.  Values that cannot be parsed fall back to the built-in
defaults instead of failing, because none of them change correctness, only
tuning:

- ``CLOUDIO_FILE_CACHE_TTL``: seconds a downstream file cache keeps entries.
- ``CLOUDIO_CONCURRENCY_BUDGET``: simultaneous budgeted network operations.
- ``CLOUDIO_REGION_PROBE_TIMEOUT``: seconds allowed for a bucket-region probe.
- ``CLOUDIO_REGION_CACHE_SIZE``: bucket → region entries kept in memory.
- ``CLOUDIO_DISABLED_PROVIDERS``: comma-separated provider tags to switch off.

Example:
    >>> from CloudIO.ObjectStore.settings import get_settings
    >>> get_settings().file_cache_ttl
    3600
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, FrozenSet, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_FILE_CACHE_TTL = 60 * 60
DEFAULT_REGION_PROBE_TIMEOUT = 10.0
DEFAULT_REGION_CACHE_SIZE = 32


def _default_concurrency_budget() -> int:
    return max(os.cpu_count() or 1, 8) * 4


def _lenient_int(value: Any, *, default: int, name: str, minimum: int = 0) -> int:
    """Parse *value* as an integer, falling back to *default* when unusable."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        logger.warning(
            "Ignoring unparseable %s=%r; using default %s",
            name,
            value,
            default,
            extra={"stage": "settings"},
        )
        return default
    if parsed < minimum:
        logger.warning(
            "Ignoring out-of-range %s=%r; using default %s",
            name,
            value,
            default,
            extra={"stage": "settings"},
        )
        return default
    return parsed


class CloudSettings(BaseSettings):
    """Process-level tuning for client construction and region discovery."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDIO_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    file_cache_ttl: int = Field(
        default=DEFAULT_FILE_CACHE_TTL,
        description="Time-to-live in seconds for the downstream file cache",
    )
    concurrency_budget: int = Field(
        default_factory=_default_concurrency_budget,
        description="Maximum number of budgeted network operations in flight",
    )
    region_probe_timeout: float = Field(
        default=DEFAULT_REGION_PROBE_TIMEOUT,
        gt=0.0,
        description="Timeout in seconds for the bucket-region probe",
    )
    region_cache_size: int = Field(
        default=DEFAULT_REGION_CACHE_SIZE,
        description="Capacity of the bucket → region cache",
    )
    disabled_providers: str = Field(
        default="",
        description="Comma-separated provider tags removed from the default capability set",
    )

    @field_validator("file_cache_ttl", mode="before")
    @classmethod
    def _parse_file_cache_ttl(cls, value: Any) -> int:
        return _lenient_int(
            value, default=DEFAULT_FILE_CACHE_TTL, name="CLOUDIO_FILE_CACHE_TTL"
        )

    @field_validator("concurrency_budget", mode="before")
    @classmethod
    def _parse_concurrency_budget(cls, value: Any) -> int:
        return _lenient_int(
            value,
            default=_default_concurrency_budget(),
            name="CLOUDIO_CONCURRENCY_BUDGET",
            minimum=1,
        )

    @field_validator("region_cache_size", mode="before")
    @classmethod
    def _parse_region_cache_size(cls, value: Any) -> int:
        return _lenient_int(
            value,
            default=DEFAULT_REGION_CACHE_SIZE,
            name="CLOUDIO_REGION_CACHE_SIZE",
            minimum=1,
        )

    @field_validator("region_probe_timeout", mode="before")
    @classmethod
    def _parse_region_probe_timeout(cls, value: Any) -> float:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_REGION_PROBE_TIMEOUT
        try:
            parsed = float(str(value).strip())
        except ValueError:
            logger.warning(
                "Ignoring unparseable CLOUDIO_REGION_PROBE_TIMEOUT=%r", value
            )
            return DEFAULT_REGION_PROBE_TIMEOUT
        return parsed if parsed > 0 else DEFAULT_REGION_PROBE_TIMEOUT

    def disabled_provider_set(self) -> FrozenSet[str]:
        """Return the normalised provider tags listed in ``disabled_providers``."""

        return frozenset(
            item.strip().lower() for item in self.disabled_providers.split(",") if item.strip()
        )


_settings: Optional[CloudSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> CloudSettings:
    """Return the memoised :class:`CloudSettings` built from the environment."""

    global _settings

    with _settings_lock:
        if _settings is None:
            _settings = CloudSettings()
        return _settings


def reset_settings() -> None:
    """Drop the memoised settings so the next access re-reads the environment."""

    global _settings

    with _settings_lock:
        _settings = None


def get_env_file_cache_ttl() -> int:
    """Return the file-cache TTL (seconds) configured in the environment right now."""

    return CloudSettings().file_cache_ttl


__all__ = [
    "CloudSettings",
    "DEFAULT_FILE_CACHE_TTL",
    "DEFAULT_REGION_CACHE_SIZE",
    "DEFAULT_REGION_PROBE_TIMEOUT",
    "get_env_file_cache_ttl",
    "get_settings",
    "reset_settings",
]
