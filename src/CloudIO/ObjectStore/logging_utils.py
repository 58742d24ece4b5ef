"""
Logging helpers for object-store configuration.

Resolved configurations routinely contain access keys and tokens; these
helpers make sure such values never reach log output.
"""

from __future__ import annotations

from typing import Dict, Mapping

_SENSITIVE_MARKERS = ("secret", "key", "token", "password", "sas", "credential")
MASK = "***masked***"


def mask_sensitive_data(payload: Mapping[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs, typically a merged provider
            configuration.

    Returns:
        Copy of the payload where every value whose key looks sensitive is
        replaced with ``***masked***``.

    Examples:
        >>> mask_sensitive_data({"secret_access_key": "abc", "region": "eu-west-1"})
        {'secret_access_key': '***masked***', 'region': 'eu-west-1'}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if any(marker in lower for marker in _SENSITIVE_MARKERS):
            masked[key] = MASK
        else:
            masked[key] = value
    return masked


__all__ = ["MASK", "mask_sensitive_data"]
