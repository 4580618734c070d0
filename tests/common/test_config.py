"""Tests for environment-driven storage settings."""

from __future__ import annotations

import pytest

from blobstore.common import config
from blobstore.common.config import StorageSettings, get_settings

ENV_VARS = (
    "STORAGE_BACKEND",
    "STORAGE_IDENTITY",
    "STORAGE_SECRET_KEY",
    "STORAGE_BUCKET",
    "STORAGE_ENDPOINT_URL",
    "STORAGE_REGION",
    "STORAGE_ADDRESSING_STYLE",
    "STORAGE_USE_SSL",
    "STORAGE_PUBLIC_ACL_MODE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "ENV_FILE", tmp_path / ".env")


def test_defaults():
    settings = StorageSettings.from_environment()

    assert settings.STORAGE_BACKEND == "s3"
    assert settings.STORAGE_IDENTITY is None
    assert settings.STORAGE_SECRET_KEY is None
    assert settings.STORAGE_USE_SSL is True
    assert settings.STORAGE_PUBLIC_ACL_MODE == "atomic"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", " S3 ")
    monkeypatch.setenv("STORAGE_IDENTITY", "svc@example.iam")
    monkeypatch.setenv("STORAGE_SECRET_KEY", "secret")
    monkeypatch.setenv("STORAGE_BUCKET", "bucket")
    monkeypatch.setenv("STORAGE_ENDPOINT_URL", "https://storage.googleapis.com")
    monkeypatch.setenv("STORAGE_USE_SSL", "false")
    monkeypatch.setenv("STORAGE_ADDRESSING_STYLE", "Virtual")
    monkeypatch.setenv("STORAGE_PUBLIC_ACL_MODE", "follow_up")

    settings = StorageSettings.from_environment()
    options = settings.provider_options()

    assert settings.STORAGE_BACKEND == "s3"
    assert options.identity == "svc@example.iam"
    assert options.secret_key == "secret"
    assert options.bucket == "bucket"
    assert options.endpoint_url == "https://storage.googleapis.com"
    assert options.use_ssl is False
    assert options.addressing_style == "virtual"
    assert options.public_acl_mode == "follow_up"


def test_blank_credentials_are_missing(monkeypatch):
    monkeypatch.setenv("STORAGE_IDENTITY", "  ")
    monkeypatch.setenv("STORAGE_SECRET_KEY", "")

    options = StorageSettings.from_environment().provider_options()

    assert options.identity is None
    assert options.secret_key is None
    assert not options.has_credentials


def test_env_file_does_not_override_environment(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\nSTORAGE_BUCKET='from-file'\nSTORAGE_REGION=eu-west-1\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(config, "ENV_FILE", env_file)
    monkeypatch.setenv("STORAGE_BUCKET", "from-env")

    settings = StorageSettings.from_environment()

    assert settings.STORAGE_BUCKET == "from-env"
    assert settings.STORAGE_REGION == "eu-west-1"


@pytest.mark.parametrize(
    "overrides",
    [
        {"STORAGE_BACKEND": "ftp"},
        {"STORAGE_ADDRESSING_STYLE": "sideways"},
        {"STORAGE_PUBLIC_ACL_MODE": "sometimes"},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ValueError):
        StorageSettings(**overrides)


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("STORAGE_BUCKET", "first")
    first = get_settings()
    monkeypatch.setenv("STORAGE_BUCKET", "second")

    assert get_settings() is first
    get_settings.cache_clear()  # type: ignore[attr-defined]
    assert get_settings().STORAGE_BUCKET == "second"
