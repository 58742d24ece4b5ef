"""Shared network policy handed to every provider client.

The provider SDK executes retries and timeouts itself; this module only
describes them, once, so every provider gets identical behaviour:

- **Retries**: ``max_retries`` (default 2) with exponential backoff starting
  at 100 ms, capped at 15 s, base 2, and a 10 s overall retry timeout.
- **Request timeout**: effectively disabled. The SDK's request clock starts
  before the body streams, so any finite value would abort large downloads.
- **Connect timeout**: left to the SDK's short default so connection setup
  stays bounded.
- **Plain HTTP**: allowed; the URL scheme decides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict

__all__ = [
    "BackoffPolicy",
    "DEFAULT_MAX_RETRIES",
    "DISABLED_TIMEOUT",
    "RETRY_TIMEOUT",
    "RetryPolicy",
    "get_client_options",
    "get_retry_config",
]

DEFAULT_MAX_RETRIES = 2
RETRY_TIMEOUT = timedelta(seconds=10)

# Large enough to never fire for a single transfer.
DISABLED_TIMEOUT = timedelta(days=365)


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff parameters (SDK defaults)."""

    init_backoff: timedelta = timedelta(milliseconds=100)
    max_backoff: timedelta = timedelta(seconds=15)
    base: float = 2.0

    def as_config(self) -> Dict[str, Any]:
        return {
            "init_backoff": self.init_backoff,
            "max_backoff": self.max_backoff,
            "base": self.base,
        }


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings applied to every constructed client."""

    max_retries: int = DEFAULT_MAX_RETRIES
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    retry_timeout: timedelta = RETRY_TIMEOUT

    def as_config(self) -> Dict[str, Any]:
        """Return the mapping accepted as ``retry_config`` by the store classes."""

        return {
            "max_retries": self.max_retries,
            "backoff": self.backoff.as_config(),
            "retry_timeout": self.retry_timeout,
        }


def get_retry_config(max_retries: int) -> Dict[str, Any]:
    """Return the SDK retry mapping for *max_retries* with the default backoff."""

    return RetryPolicy(max_retries=max_retries).as_config()


def get_client_options() -> Dict[str, Any]:
    """Return the SDK client options shared by every provider."""

    return {
        "timeout": DISABLED_TIMEOUT,
        "allow_http": True,
    }
