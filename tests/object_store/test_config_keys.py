"""Tests for typed configuration keys and the merge builder."""

import pytest

from CloudIO.ObjectStore import (
    AzureConfigKey,
    ConfigBuilder,
    GCSConfigKey,
    S3ConfigKey,
    UnknownConfigKey,
    parse_untyped_config,
)


@pytest.mark.parametrize(
    "key_type,raw,expected",
    [
        (S3ConfigKey, "region", S3ConfigKey.REGION),
        (S3ConfigKey, "aws_region", S3ConfigKey.REGION),
        (S3ConfigKey, "AWS_SECRET_ACCESS_KEY", S3ConfigKey.SECRET_ACCESS_KEY),
        (S3ConfigKey, "endpoint_url", S3ConfigKey.ENDPOINT),
        (AzureConfigKey, "azure_storage_account_name", AzureConfigKey.ACCOUNT_NAME),
        (AzureConfigKey, "account_key", AzureConfigKey.ACCESS_KEY),
        (GCSConfigKey, "google_service_account", GCSConfigKey.SERVICE_ACCOUNT),
        (GCSConfigKey, "BUCKET", GCSConfigKey.BUCKET),
    ],
)
def test_parse_resolves_canonical_names_and_aliases(key_type, raw, expected):
    assert key_type.parse(raw) is expected


def test_parse_untyped_config_preserves_order_and_duplicates():
    config = [("region", "us-west-2"), ("aws_access_key_id", "AKIA"), ("region", "eu-west-1")]

    typed = parse_untyped_config(config, S3ConfigKey)

    assert typed == [
        (S3ConfigKey.REGION, "us-west-2"),
        (S3ConfigKey.ACCESS_KEY_ID, "AKIA"),
        (S3ConfigKey.REGION, "eu-west-1"),
    ]


@pytest.mark.parametrize("position", [0, 1, 2])
def test_unknown_key_rejected_at_any_position(position):
    config = [("region", "eu-west-1"), ("aws_access_key_id", "AKIA")]
    config.insert(position, ("not_a_real_key", "x"))

    with pytest.raises(UnknownConfigKey) as excinfo:
        parse_untyped_config(config, S3ConfigKey)

    assert excinfo.value.key == "not_a_real_key"
    assert "not_a_real_key" in str(excinfo.value)


def test_key_of_other_provider_is_unknown():
    with pytest.raises(UnknownConfigKey):
        parse_untyped_config({"azure_storage_account_name": "acct"}, S3ConfigKey)


class TestConfigBuilder:
    def test_from_env_reads_prefixed_variables(self):
        environ = {
            "AWS_REGION": "us-west-2",
            "AWS_ACCESS_KEY_ID": "AKIA",
            "AWS_PROFILE": "dev",  # not a store key
            "AWS_TOKEN": "",  # empty values are skipped
            "AZURE_STORAGE_ACCOUNT_NAME": "acct",  # other provider
            "HOME": "/root",
        }

        builder = ConfigBuilder.from_env(S3ConfigKey, environ)

        assert builder.as_config() == {"region": "us-west-2", "access_key_id": "AKIA"}

    def test_later_values_overwrite(self):
        builder = ConfigBuilder(S3ConfigKey)
        builder.with_configs([(S3ConfigKey.REGION, "a"), (S3ConfigKey.REGION, "b")])
        assert builder.get_config_value(S3ConfigKey.REGION) == "b"

    def test_is_set(self):
        builder = ConfigBuilder(GCSConfigKey).with_config(GCSConfigKey.BUCKET, "b")
        assert builder.is_set(GCSConfigKey.BUCKET)
        assert not builder.is_set(GCSConfigKey.SERVICE_ACCOUNT)

    def test_repr_lists_keys_without_values(self):
        builder = ConfigBuilder(S3ConfigKey).with_config(S3ConfigKey.SECRET_ACCESS_KEY, "hunter2")
        assert "secret_access_key" in repr(builder)
        assert "hunter2" not in repr(builder)
