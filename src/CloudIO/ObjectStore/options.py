# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.options",
#   "purpose": "Immutable per-provider connection options with a builder-style API",
#   "sections": [
#     {
#       "id": "cloudoptions",
#       "name": "CloudOptions",
#       "anchor": "class-cloudoptions",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Connection options for object-store clients.

:class:`CloudOptions` carries what a caller may override for a single query or
session: the retry count, the downstream file-cache TTL, and typed
configuration pairs for one provider.  Instances are frozen; every ``with_*``
method returns a new instance, so options can be shared and hashed freely.

Example:
    >>> options = CloudOptions().with_aws([(S3ConfigKey.REGION, "eu-west-1")])
    >>> options.with_max_retries(5).max_retries
    5
    >>> CloudOptions.from_untyped_config("s3://bucket/key", {"aws_region": "eu-west-1"}).aws
    ((<S3ConfigKey.REGION: 'region'>, 'eu-west-1'),)
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Collection,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Type,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field

from .config_keys import (
    AzureConfigKey,
    GCSConfigKey,
    K,
    S3ConfigKey,
    UntypedConfig,
    parse_untyped_config,
)
from .errors import FeatureUnavailable
from .policy import DEFAULT_MAX_RETRIES, RetryPolicy
from .settings import get_env_file_cache_ttl
from .urls import CloudType

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checkers only
    from .factory import CloudStoreFactory
    from .urls import CloudLocation

__all__ = ["CloudOptions"]

TypedConfig = Union[Mapping[Any, str], Iterable[Tuple[Any, str]]]


def _collect(configs: TypedConfig, key_type: Type[K]) -> Tuple[Tuple[K, str], ...]:
    pairs = configs.items() if isinstance(configs, Mapping) else configs
    return tuple((key_type.parse(key), str(value)) for key, value in pairs)


class CloudOptions(BaseModel):
    """Options to connect to the supported cloud providers.

    Attributes:
        max_retries: Retries the SDK performs per request (default 2).
        file_cache_ttl: Seconds a downstream file cache keeps entries; read
            from ``CLOUDIO_FILE_CACHE_TTL`` when the options are created.
        aws: Typed S3 configuration pairs, in application order.
        azure: Typed Azure configuration pairs, in application order.
        gcp: Typed GCS configuration pairs, in application order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    file_cache_ttl: int = Field(default_factory=get_env_file_cache_ttl, ge=0)
    aws: Optional[Tuple[Tuple[S3ConfigKey, str], ...]] = None
    azure: Optional[Tuple[Tuple[AzureConfigKey, str], ...]] = None
    gcp: Optional[Tuple[Tuple[GCSConfigKey, str], ...]] = None

    def with_max_retries(self, max_retries: int) -> "CloudOptions":
        """Return a copy with the maximum number of retries set."""

        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got: {max_retries}")
        return self.model_copy(update={"max_retries": max_retries})

    def with_aws(self, configs: TypedConfig) -> "CloudOptions":
        """Return a copy with the S3 configuration replaced by *configs*."""

        return self.model_copy(update={"aws": _collect(configs, S3ConfigKey)})

    def with_azure(self, configs: TypedConfig) -> "CloudOptions":
        """Return a copy with the Azure configuration replaced by *configs*."""

        return self.model_copy(update={"azure": _collect(configs, AzureConfigKey)})

    def with_gcp(self, configs: TypedConfig) -> "CloudOptions":
        """Return a copy with the GCS configuration replaced by *configs*."""

        return self.model_copy(update={"gcp": _collect(configs, GCSConfigKey)})

    @classmethod
    def from_untyped_config(
        cls,
        url: str,
        config: UntypedConfig = (),
        *,
        available: Optional[Collection[CloudType]] = None,
    ) -> "CloudOptions":
        """Build options from an untyped mapping, typed for the provider of *url*.

        Args:
            url: URL or path deciding which provider the keys belong to.
            config: Untyped ``key → value`` pairs.
            available: Providers that can be built; defaults to the providers
                of the default capability set.

        Raises:
            InvalidInput: If *url* has an unknown scheme.
            UnknownConfigKey: If a key is not valid for the provider.
            FeatureUnavailable: If the provider is not enabled.
        """
        cloud_type = CloudType.from_str(url)
        if cloud_type in (CloudType.FILE, CloudType.HTTP):
            return cls()

        if available is None:
            from .providers import default_provider_types

            available = default_provider_types()
        if cloud_type not in available:
            raise FeatureUnavailable(cloud_type.value)

        if cloud_type is CloudType.AWS:
            return cls().with_aws(parse_untyped_config(config, S3ConfigKey))
        if cloud_type is CloudType.AZURE:
            return cls().with_azure(parse_untyped_config(config, AzureConfigKey))
        return cls().with_gcp(parse_untyped_config(config, GCSConfigKey))

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries)

    def retry_config(self) -> Dict[str, Any]:
        """Return the SDK ``retry_config`` mapping for these options."""

        return self.retry_policy().as_config()

    async def build_aws(self, url: str, factory: "CloudStoreFactory") -> Any:
        """Build the S3 store for *url* through *factory*."""

        return await factory.build_aws(url, self)

    def build_azure(self, url: str, factory: "CloudStoreFactory") -> Any:
        """Build the Azure store for *url* through *factory*."""

        return factory.build_azure(url, self)

    def build_gcp(self, url: str, factory: "CloudStoreFactory") -> Any:
        """Build the GCS store for *url* through *factory*."""

        return factory.build_gcp(url, self)

    async def build(
        self, url: str, factory: "CloudStoreFactory"
    ) -> Tuple["CloudLocation", Any]:
        """Build whichever store *url* needs; returns ``(location, store)``."""

        return await factory.build(url, self)
