"""Tests for the credential-file fallback."""

from pathlib import Path

import pytest

from CloudIO.ObjectStore import ConfigBuilder, CredentialFileRule, S3ConfigKey, read_config
from CloudIO.ObjectStore import credentials as credentials_module


def _sources(config_path: Path, credentials_path: Path):
    return (
        (config_path, (CredentialFileRule.of(r"region = (.*)\n", S3ConfigKey.REGION),)),
        (
            credentials_path,
            (
                CredentialFileRule.of(r"aws_access_key_id = (.*)\n", S3ConfigKey.ACCESS_KEY_ID),
                CredentialFileRule.of(
                    r"aws_secret_access_key = (.*)\n", S3ConfigKey.SECRET_ACCESS_KEY
                ),
            ),
        ),
    )


@pytest.fixture
def aws_files(tmp_path):
    config_path = tmp_path / "config"
    credentials_path = tmp_path / "credentials"
    config_path.write_text("[default]\nregion = eu-central-1\n", encoding="utf-8")
    credentials_path.write_text(
        "[default]\naws_access_key_id = AKIAFILE\naws_secret_access_key = filesecret\n",
        encoding="utf-8",
    )
    return config_path, credentials_path


@pytest.fixture
def read_calls(monkeypatch):
    calls = []
    original = credentials_module._read_text

    def _recording(path):
        calls.append(path)
        return original(path)

    monkeypatch.setattr(credentials_module, "_read_text", _recording)
    return calls


def test_fills_missing_keys(aws_files):
    builder = ConfigBuilder(S3ConfigKey)

    assert read_config(builder, _sources(*aws_files)) is True

    assert builder.as_config() == {
        "region": "eu-central-1",
        "access_key_id": "AKIAFILE",
        "secret_access_key": "filesecret",
    }


def test_existing_values_win(aws_files):
    builder = ConfigBuilder(S3ConfigKey).with_config(S3ConfigKey.ACCESS_KEY_ID, "AKIAENV")

    read_config(builder, _sources(*aws_files))

    assert builder.get_config_value(S3ConfigKey.ACCESS_KEY_ID) == "AKIAENV"
    assert builder.get_config_value(S3ConfigKey.SECRET_ACCESS_KEY) == "filesecret"


def test_fully_configured_group_is_not_opened(aws_files, read_calls):
    config_path, credentials_path = aws_files
    builder = ConfigBuilder(S3ConfigKey).with_configs(
        [(S3ConfigKey.ACCESS_KEY_ID, "a"), (S3ConfigKey.SECRET_ACCESS_KEY, "b")]
    )

    read_config(builder, _sources(config_path, credentials_path))

    assert read_calls == [config_path]


def test_each_file_read_once_per_group(aws_files, read_calls):
    config_path, credentials_path = aws_files

    read_config(ConfigBuilder(S3ConfigKey), _sources(config_path, credentials_path))

    assert read_calls == [config_path, credentials_path]


def test_missing_file_leaves_builder_unchanged(tmp_path):
    builder = ConfigBuilder(S3ConfigKey).with_config(S3ConfigKey.REGION, "us-west-2")

    ok = read_config(builder, _sources(tmp_path / "nope", tmp_path / "missing"))

    assert ok is False
    assert builder.as_config() == {"region": "us-west-2"}


def test_invalid_utf8_aborts_quietly(tmp_path):
    config_path = tmp_path / "config"
    config_path.write_bytes(b"region = \xff\xfe\n")

    builder = ConfigBuilder(S3ConfigKey)

    assert read_config(builder, _sources(config_path, tmp_path / "credentials")) is False
    assert builder.as_config() == {}


def test_unmatched_pattern_ends_the_call(tmp_path):
    config_path = tmp_path / "empty-config"
    config_path.write_text("[default]\noutput = json\n", encoding="utf-8")

    builder = ConfigBuilder(S3ConfigKey)

    assert read_config(builder, _sources(config_path, tmp_path / "credentials")[:1]) is False
    assert builder.as_config() == {}


def test_separate_calls_succeed_independently(tmp_path, aws_files):
    _, credentials_path = aws_files
    config_path = tmp_path / "sso-config"
    config_path.write_text("[default]\noutput = json\n", encoding="utf-8")
    config_source, credentials_source = _sources(config_path, credentials_path)

    builder = ConfigBuilder(S3ConfigKey)

    assert read_config(builder, (config_source,)) is False
    assert read_config(builder, (credentials_source,)) is True
    assert builder.as_config() == {
        "access_key_id": "AKIAFILE",
        "secret_access_key": "filesecret",
    }


def test_home_directory_expanded(tmp_path, monkeypatch):
    aws_dir = tmp_path / ".aws"
    aws_dir.mkdir()
    (aws_dir / "config").write_text("region = ap-south-1\n", encoding="utf-8")
    monkeypatch.setenv("HOME", str(tmp_path))

    builder = ConfigBuilder(S3ConfigKey)
    sources = ((Path("~/.aws/config"), (CredentialFileRule.of(r"region = (.*)\n", S3ConfigKey.REGION),)),)

    assert read_config(builder, sources) is True
    assert builder.get_config_value(S3ConfigKey.REGION) == "ap-south-1"
