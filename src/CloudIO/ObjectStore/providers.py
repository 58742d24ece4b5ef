# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.providers",
#   "purpose": "Provider capability set mapping provider tags to obstore-backed client builders",
#   "sections": [
#     {"id": "protocol", "name": "ProviderBuilder", "anchor": "class-providerbuilder", "kind": "class"},
#     {"id": "builders", "name": "obstore Builders", "anchor": "BLD", "kind": "api"},
#     {"id": "registry", "name": "ProviderRegistry", "anchor": "class-providerregistry", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Provider capability set.

Each supported provider contributes one :class:`ProviderBuilder` that turns a
fully merged configuration into an ``obstore`` store.  The
:class:`ProviderRegistry` maps provider tags to builders; a provider that is
not registered (``obstore`` missing, or switched off through
``CLOUDIO_DISABLED_PROVIDERS``) fails at dispatch with
:class:`FeatureUnavailable`.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, FrozenSet, Mapping, Optional, Protocol

try:  # pragma: no cover - dependency check
    from obstore import store as _obstore_store
except ImportError:  # pragma: no cover - reported as FeatureUnavailable at dispatch
    _obstore_store = None  # type: ignore[assignment]

from .errors import ClientConstructionError, FeatureUnavailable
from .settings import get_settings
from .urls import CloudType

logger = logging.getLogger(__name__)

__all__ = [
    "AzureBuilder",
    "GCSBuilder",
    "HTTPBuilder",
    "LocalBuilder",
    "ProviderBuilder",
    "ProviderRegistry",
    "S3Builder",
    "default_provider_types",
    "default_registry",
]


class ProviderBuilder(Protocol):
    """Construct a provider client from merged configuration."""

    def build(
        self,
        store_url: str,
        config: Mapping[str, str],
        client_options: Mapping[str, Any],
        retry_config: Mapping[str, Any],
    ) -> Any:
        """Return a ready-to-use store; SDK validation errors propagate unchanged."""


class S3Builder:
    def build(self, store_url, config, client_options, retry_config):
        return _obstore_store.S3Store.from_url(
            store_url,
            config=dict(config),
            client_options=dict(client_options),
            retry_config=dict(retry_config),
        )


class AzureBuilder:
    def build(self, store_url, config, client_options, retry_config):
        return _obstore_store.AzureStore.from_url(
            store_url,
            config=dict(config),
            client_options=dict(client_options),
            retry_config=dict(retry_config),
        )


class GCSBuilder:
    def build(self, store_url, config, client_options, retry_config):
        return _obstore_store.GCSStore.from_url(
            store_url,
            config=dict(config),
            client_options=dict(client_options),
            retry_config=dict(retry_config),
        )


class HTTPBuilder:
    def build(self, store_url, config, client_options, retry_config):
        return _obstore_store.HTTPStore.from_url(
            store_url,
            client_options=dict(client_options),
            retry_config=dict(retry_config),
        )


class LocalBuilder:
    def build(self, store_url, config, client_options, retry_config):
        return _obstore_store.LocalStore()


class ProviderRegistry:
    """Mapping of provider tag → builder, consulted at dispatch time."""

    def __init__(self, builders: Optional[Mapping[CloudType, ProviderBuilder]] = None) -> None:
        self._builders: Dict[CloudType, ProviderBuilder] = dict(builders or {})

    def register(self, cloud_type: CloudType, builder: ProviderBuilder) -> None:
        self._builders[cloud_type] = builder

    def unregister(self, cloud_type: CloudType) -> None:
        self._builders.pop(cloud_type, None)

    def available(self) -> FrozenSet[CloudType]:
        return frozenset(self._builders)

    def __contains__(self, cloud_type: object) -> bool:
        return cloud_type in self._builders

    def get(self, cloud_type: CloudType) -> ProviderBuilder:
        try:
            return self._builders[cloud_type]
        except KeyError:
            raise FeatureUnavailable(cloud_type.value) from None

    def build(
        self,
        cloud_type: CloudType,
        store_url: str,
        config: Mapping[str, str],
        client_options: Mapping[str, Any],
        retry_config: Mapping[str, Any],
    ) -> Any:
        """Dispatch to the builder for *cloud_type*.

        Raises:
            FeatureUnavailable: If no builder is registered for the provider.
            ClientConstructionError: If the SDK rejects the configuration.
        """
        builder = self.get(cloud_type)
        try:
            store = builder.build(store_url, config, client_options, retry_config)
        except Exception as exc:
            raise ClientConstructionError(
                f"failed to build {cloud_type.value} client for {store_url}: {exc}"
            ) from exc
        logger.debug(
            "Object store constructed",
            extra={"stage": "build", "provider": cloud_type.value, "store_url": store_url},
        )
        return store


_OBSTORE_BUILDERS: Dict[CloudType, ProviderBuilder] = {
    CloudType.AWS: S3Builder(),
    CloudType.AZURE: AzureBuilder(),
    CloudType.GCP: GCSBuilder(),
    CloudType.HTTP: HTTPBuilder(),
    CloudType.FILE: LocalBuilder(),
}


_missing_obstore_reported = False
_report_lock = threading.Lock()


def _report_missing_obstore() -> None:
    global _missing_obstore_reported

    with _report_lock:
        if _missing_obstore_reported:
            return
        _missing_obstore_reported = True
    logger.warning(
        "obstore is not installed; no object-store providers are available. "
        "Install it via 'pip install obstore'."
    )


def default_registry() -> ProviderRegistry:
    """Return the registry of every provider usable in this process."""

    if _obstore_store is None:
        _report_missing_obstore()
        return ProviderRegistry()

    disabled = get_settings().disabled_provider_set()
    return ProviderRegistry(
        {
            cloud_type: builder
            for cloud_type, builder in _OBSTORE_BUILDERS.items()
            if cloud_type.value not in disabled
        }
    )


def default_provider_types() -> FrozenSet[CloudType]:
    return default_registry().available()
