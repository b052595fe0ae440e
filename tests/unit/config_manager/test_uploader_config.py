"""Tests for uploader configuration resolution."""

import pytest

from s3_multipart.config_manager.config import ConfigManager
from s3_multipart.config_manager.helpers import parse_bytes
from s3_multipart.config_manager.uploader_config import UploaderConfig
from s3_multipart.const import DEFAULT_PART_SIZE, DEFAULT_REQUEST_TIMEOUT_SECS
from s3_multipart.exceptions import ConfigLoadError

ENV_VARS = (
    "S3MP_ACCESS_KEY_ID",
    "S3MP_SECRET_ACCESS_KEY",
    "S3MP_SESSION_TOKEN",
    "S3MP_REGION",
    "S3MP_ENDPOINT",
    "S3MP_PART_SIZE",
    "S3MP_REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "s3_multipart.config_manager.config.CONFIG_DIR", tmp_path / "home"
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1234, 1234),
        ("1234", 1234),
        ("5MiB", 5 * 1024**2),
        ("8 mb", 8 * 1024**2),
        ("64K", 64 * 1024),
        ("1GiB", 1024**3),
        ("10b", 10),
    ],
)
def test_parse_bytes(raw, expected) -> None:
    assert parse_bytes(raw) == expected


@pytest.mark.parametrize("raw", ["", "MiB", "12parsecs", "1.5MiB"])
def test_parse_bytes_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_bytes(raw)


def test_defaults_without_any_source() -> None:
    config = ConfigManager().resolve_effective_config()

    assert config.part_size == DEFAULT_PART_SIZE
    assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT_SECS
    assert config.missing_credentials() == [
        "access_key_id",
        "secret_access_key",
        "session_token",
        "region",
        "endpoint",
    ]


def test_precedence_file_then_env_then_cli(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "region: eu-west-1\n"
        "endpoint: https://file.example\n"
        "part_size: 6MiB\n"
        "request_timeout: 30\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("S3MP_ENDPOINT", "https://env.example")
    monkeypatch.setenv("S3MP_PART_SIZE", "7MiB")

    config = ConfigManager(config_path).resolve_effective_config(
        {"part_size": "9MiB", "region": None}
    )

    assert config.region == "eu-west-1"
    assert config.endpoint == "https://env.example"
    assert config.part_size == 9 * 1024**2
    assert config.request_timeout == 30


def test_default_file_is_read_when_present(tmp_path) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / "config.yaml").write_text("region: ap-south-1\n", encoding="utf-8")

    assert ConfigManager().resolve_effective_config().region == "ap-south-1"


def test_empty_env_values_are_ignored(monkeypatch) -> None:
    monkeypatch.setenv("S3MP_REGION", "")

    assert ConfigManager().resolve_effective_config().region is None


def test_missing_explicit_file(tmp_path) -> None:
    with pytest.raises(ConfigLoadError):
        ConfigManager(tmp_path / "nope.yaml").resolve_effective_config()


def test_non_mapping_yaml(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigLoadError):
        ConfigManager(config_path).resolve_effective_config()


def test_invalid_yaml(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("region: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigLoadError):
        ConfigManager(config_path).resolve_effective_config()


def test_part_size_below_minimum(monkeypatch) -> None:
    monkeypatch.setenv("S3MP_PART_SIZE", "1MiB")

    with pytest.raises(ConfigLoadError):
        ConfigManager().resolve_effective_config()


def test_to_credentials(monkeypatch) -> None:
    monkeypatch.setenv("S3MP_ACCESS_KEY_ID", "ASIAKEY")
    monkeypatch.setenv("S3MP_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("S3MP_SESSION_TOKEN", "token")
    monkeypatch.setenv("S3MP_REGION", "us-east-1")
    monkeypatch.setenv("S3MP_ENDPOINT", "http://localhost:9000")

    credentials = ConfigManager().resolve_effective_config().to_credentials()

    assert credentials.access_key_id == "ASIAKEY"
    assert credentials.session_token.get_secret_value() == "token"
    assert credentials.endpoint == "http://localhost:9000"


def test_to_credentials_names_missing_fields() -> None:
    config = UploaderConfig(access_key_id="ASIAKEY", region="us-east-1")

    with pytest.raises(ValueError) as exc_info:
        config.to_credentials()

    message = str(exc_info.value)
    assert "secret_access_key" in message
    assert "session_token" in message
    assert "endpoint" in message
    assert "region" not in message
