"""Exception hierarchy shared across URL classification, config typing, and store construction.

Building a storage client spans URL parsing, key validation, credential
discovery, and the provider SDK's own validation.  Only the failures that the
caller must act on are modelled here; best-effort discovery steps (credential
files, region probes) never raise and therefore have no exception type.
"""

from __future__ import annotations

__all__ = [
    "CloudError",
    "InvalidInput",
    "UnknownConfigKey",
    "FeatureUnavailable",
    "ClientConstructionError",
]


class CloudError(RuntimeError):
    """Base exception for object-store configuration and construction failures."""


class InvalidInput(CloudError):
    """Raised when a path or URL cannot be classified into a known provider scheme."""


class UnknownConfigKey(CloudError):
    """Raised when an override key does not map to a typed key of the target provider."""

    def __init__(self, key: str) -> None:
        super().__init__(f"unknown configuration key: {key}")
        self.key = key


class FeatureUnavailable(CloudError):
    """Raised when the requested provider is not part of the enabled capability set."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"'{provider}' support is not enabled")
        self.provider = provider


class ClientConstructionError(CloudError):
    """Raised when the provider SDK rejects the final merged configuration."""
# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.errors",
#   "purpose": "Define the exception hierarchy used while resolving and building object stores",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "input", "name": "Input & Key Errors", "anchor": "INP", "kind": "api"},
#     {"id": "construction", "name": "Capability & Construction Errors", "anchor": "CON", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
