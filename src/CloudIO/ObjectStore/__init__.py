# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.__init__",
#   "purpose": "Object-store configuration resolution and client construction.",
#   "sections": []
# }
# === /NAVMAP ===

"""Object-store configuration resolution and client construction.

This package turns a URL (or filesystem path) plus optional overrides into a
ready-to-use ``obstore`` client for S3, Azure Blob, Google Cloud Storage,
plain HTTP, or the local filesystem.

Architecture:
- urls: provider classification and bucket/prefix extraction
- config_keys: typed per-provider keys and the merge builder
- credentials: best-effort ``~/.aws`` credential-file fallback
- region: bucket-region LRU cache and budgeted network probe
- options: immutable :class:`CloudOptions`
- providers: capability set of obstore-backed builders
- factory: :class:`CloudStoreFactory`, which merges everything and builds

Example:
    >>> from CloudIO.ObjectStore import CloudOptions, CloudStoreFactory
    >>> factory = CloudStoreFactory.from_settings()
    >>> options = CloudOptions.from_untyped_config("s3://bucket/key", {"region": "eu-west-1"})
    >>> location, store = await factory.build("s3://bucket/key", options)
"""

from CloudIO.ObjectStore.config_keys import (
    AzureConfigKey,
    ConfigBuilder,
    GCSConfigKey,
    S3ConfigKey,
    parse_untyped_config,
)
from CloudIO.ObjectStore.credentials import (
    DEFAULT_AWS_CREDENTIAL_SOURCES,
    CredentialFileRule,
    read_config,
)
from CloudIO.ObjectStore.errors import (
    ClientConstructionError,
    CloudError,
    FeatureUnavailable,
    InvalidInput,
    UnknownConfigKey,
)
from CloudIO.ObjectStore.factory import CloudStoreFactory, build_object_store
from CloudIO.ObjectStore.options import CloudOptions
from CloudIO.ObjectStore.policy import RetryPolicy, get_client_options, get_retry_config
from CloudIO.ObjectStore.providers import ProviderRegistry, default_registry
from CloudIO.ObjectStore.region import DEFAULT_FALLBACK_REGION, RegionCache, RegionResolver
from CloudIO.ObjectStore.settings import CloudSettings, get_env_file_cache_ttl, get_settings
from CloudIO.ObjectStore.urls import CloudLocation, CloudType, local_path_from_url, parse_url

__all__ = [
    # URLs
    "CloudType",
    "CloudLocation",
    "parse_url",
    "local_path_from_url",
    # Keys
    "S3ConfigKey",
    "AzureConfigKey",
    "GCSConfigKey",
    "ConfigBuilder",
    "parse_untyped_config",
    # Credentials
    "CredentialFileRule",
    "DEFAULT_AWS_CREDENTIAL_SOURCES",
    "read_config",
    # Region
    "RegionCache",
    "RegionResolver",
    "DEFAULT_FALLBACK_REGION",
    # Options & policy
    "CloudOptions",
    "RetryPolicy",
    "get_client_options",
    "get_retry_config",
    # Construction
    "CloudStoreFactory",
    "ProviderRegistry",
    "build_object_store",
    "default_registry",
    # Settings
    "CloudSettings",
    "get_settings",
    "get_env_file_cache_ttl",
    # Errors
    "CloudError",
    "InvalidInput",
    "UnknownConfigKey",
    "FeatureUnavailable",
    "ClientConstructionError",
]
