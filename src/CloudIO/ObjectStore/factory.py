# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.factory",
#   "purpose": "Merge configuration sources and construct provider clients",
#   "sections": [
#     {
#       "id": "cloudstorefactory",
#       "name": "CloudStoreFactory",
#       "anchor": "class-cloudstorefactory",
#       "kind": "class"
#     },
#     {
#       "id": "build-object-store",
#       "name": "build_object_store",
#       "anchor": "function-build-object-store",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Object-store client factory.

Turns a URL plus :class:`CloudOptions` into a ready-to-use store.  For every
provider the merged configuration is, highest precedence first:

1. explicit overrides from the options,
2. provider-prefixed environment variables (``AWS_*``, ``AZURE_*``, ``GOOGLE_*``),
3. credential-file fallbacks (S3 only; each file is an independent attempt),
4. the discovered bucket region (S3 only).

Building an S3 client is a coroutine because region discovery may probe the
network; Azure and GCS builds are synchronous.  A build either returns a fully
configured store or raises; no partial state is ever handed back.

The factory owns all mutable shared state (the region cache, through its
:class:`RegionResolver`), so callers decide its lifetime and sharing scope.

Example:
    >>> factory = CloudStoreFactory.from_settings()
    >>> options = CloudOptions.from_untyped_config("s3://bucket/key", {"region": "eu-west-1"})
    >>> location, store = await factory.build("s3://bucket/key", options)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .config_keys import AzureConfigKey, ConfigBuilder, GCSConfigKey, S3ConfigKey
from .credentials import DEFAULT_AWS_CREDENTIAL_SOURCES, CredentialSource, read_config
from .logging_utils import mask_sensitive_data
from .options import CloudOptions
from .policy import get_client_options
from .providers import ProviderRegistry, default_registry
from .region import RegionCache, RegionResolver
from .settings import get_settings
from .urls import CloudLocation, CloudType

logger = logging.getLogger(__name__)

__all__ = ["CloudStoreFactory", "build_object_store"]


class CloudStoreFactory:
    """Resolve configuration and construct provider clients.

    Attributes:
        region_resolver: Region discovery (cache + probe) for S3 builds.
        registry: Capability set of buildable providers.
        credential_sources: Credential files consulted for S3 builds.
        environ: Environment mapping used for provider defaults; ``None``
            reads :data:`os.environ` at build time.
    """

    def __init__(
        self,
        *,
        region_resolver: Optional[RegionResolver] = None,
        registry: Optional[ProviderRegistry] = None,
        credential_sources: Sequence[CredentialSource] = DEFAULT_AWS_CREDENTIAL_SOURCES,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.region_resolver = region_resolver or RegionResolver()
        self.registry = registry if registry is not None else default_registry()
        self.credential_sources = tuple(credential_sources)
        self.environ = environ

    @classmethod
    def from_settings(cls, **overrides: Any) -> "CloudStoreFactory":
        """Create a factory sized and tuned from :class:`CloudSettings`."""

        settings = get_settings()
        overrides.setdefault(
            "region_resolver",
            RegionResolver(
                RegionCache(settings.region_cache_size),
                probe_timeout=settings.region_probe_timeout,
            ),
        )
        return cls(**overrides)

    # ------------------------------------------------------------------
    # Configuration resolution
    # ------------------------------------------------------------------

    async def resolve_aws_config(
        self, url: str, options: Optional[CloudOptions] = None
    ) -> Dict[str, str]:
        """Return the merged S3 configuration for *url*.

        Raises:
            InvalidInput: If *url* cannot be classified or has no bucket.
        """
        options = options or CloudOptions()
        location = CloudLocation.from_url(url)

        builder = ConfigBuilder.from_env(S3ConfigKey, self.environ)
        builder.with_configs(options.aws or ())
        # One attempt per file: a missing ~/.aws/config must not hide ~/.aws/credentials.
        for source in self.credential_sources:
            read_config(builder, (source,))
        await self.region_resolver.resolve(builder, location.bucket)

        config = builder.as_config()
        self._log_config(CloudType.AWS, url, config)
        return config

    def resolve_azure_config(
        self, url: str, options: Optional[CloudOptions] = None
    ) -> Dict[str, str]:
        """Return the merged Azure configuration for *url*."""

        options = options or CloudOptions()
        builder = ConfigBuilder.from_env(AzureConfigKey, self.environ)
        builder.with_configs(options.azure or ())
        config = builder.as_config()
        self._log_config(CloudType.AZURE, url, config)
        return config

    def resolve_gcp_config(
        self, url: str, options: Optional[CloudOptions] = None
    ) -> Dict[str, str]:
        """Return the merged GCS configuration for *url*."""

        options = options or CloudOptions()
        builder = ConfigBuilder.from_env(GCSConfigKey, self.environ)
        builder.with_configs(options.gcp or ())
        config = builder.as_config()
        self._log_config(CloudType.GCP, url, config)
        return config

    # ------------------------------------------------------------------
    # Client construction
    # ------------------------------------------------------------------

    async def build_aws(self, url: str, options: Optional[CloudOptions] = None) -> Any:
        """Build the S3 store for *url* (may probe the bucket region)."""

        options = options or CloudOptions()
        self.registry.get(CloudType.AWS)
        config = await self.resolve_aws_config(url, options)
        return self._construct(CloudType.AWS, url, config, options)

    def build_azure(self, url: str, options: Optional[CloudOptions] = None) -> Any:
        """Build the Azure store for *url*."""

        options = options or CloudOptions()
        config = self.resolve_azure_config(url, options)
        return self._construct(CloudType.AZURE, url, config, options)

    def build_gcp(self, url: str, options: Optional[CloudOptions] = None) -> Any:
        """Build the GCS store for *url*."""

        options = options or CloudOptions()
        config = self.resolve_gcp_config(url, options)
        return self._construct(CloudType.GCP, url, config, options)

    def build_http(self, url: str, options: Optional[CloudOptions] = None) -> Any:
        """Build the plain HTTP(S) store for *url*."""

        return self._construct(CloudType.HTTP, url, {}, options or CloudOptions())

    def build_local(self, url: str = "file:///", options: Optional[CloudOptions] = None) -> Any:
        """Build the local filesystem store."""

        return self._construct(CloudType.FILE, url, {}, options or CloudOptions())

    async def build(
        self, url: str, options: Optional[CloudOptions] = None
    ) -> Tuple[CloudLocation, Any]:
        """Classify *url* and build the matching store.

        Args:
            url: URL or filesystem path.
            options: Connection options; defaults to :class:`CloudOptions`.

        Returns:
            ``(location, store)`` where *location* gives the bucket, the key
            prefix within the store, and any glob expansion.

        Raises:
            InvalidInput: If *url* matches no known scheme.
            FeatureUnavailable: If the provider is not in the capability set.
            ClientConstructionError: If the SDK rejects the merged configuration.
        """
        location = CloudLocation.from_url(url)
        cloud_type = location.cloud_type

        if cloud_type is CloudType.AWS:
            store = await self.build_aws(url, options)
        elif cloud_type is CloudType.AZURE:
            store = self.build_azure(url, options)
        elif cloud_type is CloudType.GCP:
            store = self.build_gcp(url, options)
        elif cloud_type is CloudType.HTTP:
            store = self.build_http(url, options)
        else:
            store = self.build_local(url, options)
        return location, store

    def _construct(
        self,
        cloud_type: CloudType,
        url: str,
        config: Mapping[str, str],
        options: CloudOptions,
    ) -> Any:
        location = CloudLocation.from_url(url)
        return self.registry.build(
            cloud_type,
            location.store_url,
            config,
            get_client_options(),
            options.retry_config(),
        )

    @staticmethod
    def _log_config(cloud_type: CloudType, url: str, config: Mapping[str, str]) -> None:
        logger.debug(
            "Resolved %s configuration",
            cloud_type.value,
            extra={
                "stage": "config",
                "url": url,
                "config": mask_sensitive_data(dict(config)),
            },
        )


async def build_object_store(
    url: str,
    options: Optional[CloudOptions],
    factory: CloudStoreFactory,
) -> Tuple[CloudLocation, Any]:
    """Build the store for *url* through *factory*; see :meth:`CloudStoreFactory.build`."""

    return await factory.build(url, options)
