"""Typed configuration keys for each storage provider.

Users hand over configuration as untyped ``{"key": "value"}`` mappings; this
module turns them into provider-specific enum keys so that typos surface
immediately as :class:`UnknownConfigKey` instead of being silently ignored by
the SDK.  Each enum value is the canonical name the SDK accepts, and parsing
also honours the provider-prefixed aliases used by environment variables
(``AWS_REGION``, ``azure_storage_account_name``, ``google_bucket`` ...).

:class:`ConfigBuilder` is the mutable view over one build call: environment
defaults first, then explicit overrides, then fallbacks fill the gaps.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import (
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from .errors import UnknownConfigKey

__all__ = [
    "AzureConfigKey",
    "ConfigBuilder",
    "Configs",
    "GCSConfigKey",
    "S3ConfigKey",
    "parse_untyped_config",
]


class _AliasedKey(str, Enum):
    """Enum keyed by canonical name, resolving aliases case-insensitively."""

    @classmethod
    def env_prefix(cls) -> str:
        raise NotImplementedError

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        raise NotImplementedError

    @classmethod
    def _missing_(cls, value: object) -> Optional["_AliasedKey"]:
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        canonical = cls._aliases().get(normalized, normalized)
        for member in cls:
            if member.value == canonical:
                return member
        return None

    @classmethod
    def parse(cls: Type[K], key: str) -> K:
        """Return the member named by *key*, raising :class:`UnknownConfigKey` otherwise."""

        try:
            return cls(key)
        except ValueError:
            raise UnknownConfigKey(key) from None

    def __str__(self) -> str:
        return self.value


K = TypeVar("K", bound=_AliasedKey)

# A plain list of pairs keeps ordering and lets later duplicates overwrite
# earlier ones when applied to a builder.
Configs = List[Tuple[K, str]]


class S3ConfigKey(_AliasedKey):
    """Amazon S3 (and S3-compatible) configuration keys."""

    ACCESS_KEY_ID = "access_key_id"
    SECRET_ACCESS_KEY = "secret_access_key"
    REGION = "region"
    DEFAULT_REGION = "default_region"
    BUCKET = "bucket"
    ENDPOINT = "endpoint"
    TOKEN = "token"
    IMDSV1_FALLBACK = "imdsv1_fallback"
    VIRTUAL_HOSTED_STYLE_REQUEST = "virtual_hosted_style_request"
    UNSIGNED_PAYLOAD = "unsigned_payload"
    CHECKSUM = "checksum_algorithm"
    METADATA_ENDPOINT = "metadata_endpoint"
    CONTAINER_CREDENTIALS_RELATIVE_URI = "container_credentials_relative_uri"
    COPY_IF_NOT_EXISTS = "copy_if_not_exists"
    CONDITIONAL_PUT = "conditional_put"
    SKIP_SIGNATURE = "skip_signature"
    DISABLE_TAGGING = "disable_tagging"
    S3_EXPRESS = "s3_express"
    REQUEST_PAYER = "request_payer"

    @classmethod
    def env_prefix(cls) -> str:
        return "AWS_"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return _S3_ALIASES


class AzureConfigKey(_AliasedKey):
    """Azure Blob Storage / ADLS Gen2 configuration keys."""

    ACCOUNT_NAME = "account_name"
    ACCESS_KEY = "account_key"
    CLIENT_ID = "client_id"
    CLIENT_SECRET = "client_secret"
    AUTHORITY_ID = "tenant_id"
    SAS_KEY = "sas_key"
    TOKEN = "token"
    USE_EMULATOR = "use_emulator"
    ENDPOINT = "endpoint"
    MSI_ENDPOINT = "msi_endpoint"
    OBJECT_ID = "object_id"
    MSI_RESOURCE_ID = "msi_resource_id"
    FEDERATED_TOKEN_FILE = "federated_token_file"
    USE_FABRIC_ENDPOINT = "use_fabric_endpoint"
    USE_AZURE_CLI = "use_azure_cli"
    SKIP_SIGNATURE = "skip_signature"
    CONTAINER_NAME = "container_name"
    DISABLE_TAGGING = "disable_tagging"

    @classmethod
    def env_prefix(cls) -> str:
        return "AZURE_"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return _AZURE_ALIASES


class GCSConfigKey(_AliasedKey):
    """Google Cloud Storage configuration keys."""

    SERVICE_ACCOUNT = "service_account"
    SERVICE_ACCOUNT_KEY = "service_account_key"
    BUCKET = "bucket"
    APPLICATION_CREDENTIALS = "application_credentials"
    SKIP_SIGNATURE = "skip_signature"

    @classmethod
    def env_prefix(cls) -> str:
        return "GOOGLE_"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return _GCS_ALIASES


_S3_ALIASES: Dict[str, str] = {
    "aws_access_key_id": "access_key_id",
    "aws_secret_access_key": "secret_access_key",
    "aws_region": "region",
    "aws_default_region": "default_region",
    "aws_bucket": "bucket",
    "aws_bucket_name": "bucket",
    "bucket_name": "bucket",
    "aws_endpoint": "endpoint",
    "aws_endpoint_url": "endpoint",
    "endpoint_url": "endpoint",
    "aws_session_token": "token",
    "aws_token": "token",
    "session_token": "token",
    "aws_imdsv1_fallback": "imdsv1_fallback",
    "aws_virtual_hosted_style_request": "virtual_hosted_style_request",
    "aws_unsigned_payload": "unsigned_payload",
    "aws_checksum_algorithm": "checksum_algorithm",
    "aws_metadata_endpoint": "metadata_endpoint",
    "aws_container_credentials_relative_uri": "container_credentials_relative_uri",
    "aws_copy_if_not_exists": "copy_if_not_exists",
    "aws_conditional_put": "conditional_put",
    "aws_skip_signature": "skip_signature",
    "aws_disable_tagging": "disable_tagging",
    "aws_s3_express": "s3_express",
    "aws_request_payer": "request_payer",
}

_AZURE_ALIASES: Dict[str, str] = {
    "azure_storage_account_name": "account_name",
    "azure_storage_account_key": "account_key",
    "azure_storage_access_key": "account_key",
    "azure_storage_master_key": "account_key",
    "access_key": "account_key",
    "master_key": "account_key",
    "azure_storage_client_id": "client_id",
    "azure_client_id": "client_id",
    "azure_storage_client_secret": "client_secret",
    "azure_client_secret": "client_secret",
    "azure_storage_tenant_id": "tenant_id",
    "azure_storage_authority_id": "tenant_id",
    "azure_tenant_id": "tenant_id",
    "azure_authority_id": "tenant_id",
    "authority_id": "tenant_id",
    "azure_storage_sas_key": "sas_key",
    "azure_storage_sas_token": "sas_key",
    "sas_token": "sas_key",
    "azure_storage_token": "token",
    "bearer_token": "token",
    "azure_storage_use_emulator": "use_emulator",
    "azure_storage_endpoint": "endpoint",
    "azure_endpoint": "endpoint",
    "azure_msi_endpoint": "msi_endpoint",
    "azure_identity_endpoint": "msi_endpoint",
    "identity_endpoint": "msi_endpoint",
    "azure_object_id": "object_id",
    "azure_msi_resource_id": "msi_resource_id",
    "azure_federated_token_file": "federated_token_file",
    "azure_use_fabric_endpoint": "use_fabric_endpoint",
    "azure_use_azure_cli": "use_azure_cli",
    "azure_skip_signature": "skip_signature",
    "azure_container_name": "container_name",
    "azure_disable_tagging": "disable_tagging",
}

_GCS_ALIASES: Dict[str, str] = {
    "google_service_account": "service_account",
    "google_service_account_path": "service_account",
    "service_account_path": "service_account",
    "google_service_account_key": "service_account_key",
    "google_bucket": "bucket",
    "google_bucket_name": "bucket",
    "bucket_name": "bucket",
    "google_application_credentials": "application_credentials",
    "google_skip_signature": "skip_signature",
}


UntypedConfig = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def parse_untyped_config(config: UntypedConfig, key_type: Type[K]) -> Configs[K]:
    """Convert untyped ``(key, value)`` pairs into typed pairs for *key_type*.

    Args:
        config: Mapping or iterable of string pairs; order is preserved.
        key_type: Provider key enum (``S3ConfigKey``, ``AzureConfigKey``, ...).

    Returns:
        List of ``(typed_key, value)`` pairs in input order, duplicates kept.

    Raises:
        UnknownConfigKey: On the first key that is not valid for *key_type*.

    Examples:
        >>> parse_untyped_config({"aws_region": "eu-west-1"}, S3ConfigKey)
        [(<S3ConfigKey.REGION: 'region'>, 'eu-west-1')]
    """
    pairs = config.items() if isinstance(config, Mapping) else config
    return [(key_type.parse(key), str(value)) for key, value in pairs]


class ConfigBuilder(Generic[K]):
    """Mutable key → value view used while merging configuration sources."""

    def __init__(self, key_type: Type[K]) -> None:
        self.key_type = key_type
        self._values: Dict[K, str] = {}

    @classmethod
    def from_env(
        cls, key_type: Type[K], environ: Optional[Mapping[str, str]] = None
    ) -> "ConfigBuilder[K]":
        """Seed a builder from provider-prefixed environment variables.

        Environment names that do not parse as a key are skipped; only
        user-supplied overrides are validated strictly.
        """
        environ = os.environ if environ is None else environ
        builder = cls(key_type)
        prefix = key_type.env_prefix()
        for name, value in environ.items():
            if not name.upper().startswith(prefix) or not value:
                continue
            try:
                key = key_type(name)
            except ValueError:
                continue
            builder.with_config(key, value)
        return builder

    def with_config(self, key: K, value: str) -> "ConfigBuilder[K]":
        self._values[key] = value
        return self

    def with_configs(self, configs: Iterable[Tuple[K, str]]) -> "ConfigBuilder[K]":
        for key, value in configs:
            self.with_config(key, value)
        return self

    def get_config_value(self, key: K) -> Optional[str]:
        return self._values.get(key)

    def is_set(self, key: K) -> bool:
        return key in self._values

    def as_config(self) -> Dict[str, str]:
        """Return the merged configuration keyed by canonical SDK names."""

        return {key.value: value for key, value in self._values.items()}

    def __repr__(self) -> str:
        return f"ConfigBuilder({self.key_type.__name__}, keys={sorted(self.as_config())})"
