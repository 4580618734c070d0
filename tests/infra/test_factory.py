"""Tests for provider construction."""

from unittest.mock import patch

import pytest

from blobstore.common.config import StorageSettings
from blobstore.infra.storage.client import BlobIdentifier, ProviderOptions
from blobstore.infra.storage.errors import StorageError, StorageErrorCode
from blobstore.infra.storage.factory import build_storage_provider, create_provider
from blobstore.infra.storage.s3_provider import S3StorageProvider


def test_create_s3_provider():
    options = ProviderOptions(bucket="b", identity="id", secret_key="s")

    provider = create_provider("S3", options)

    assert isinstance(provider, S3StorageProvider)
    assert provider.options is options


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported storage backend"):
        create_provider("azure", ProviderOptions(bucket="b"))


def test_build_from_settings_without_credentials_defers_failure():
    settings = StorageSettings(STORAGE_BUCKET="bucket")

    with patch.object(S3StorageProvider, "_build_client") as build:
        provider = build_storage_provider(settings)
        with pytest.raises(StorageError) as excinfo:
            provider.delete(BlobIdentifier(container="c", key="k"))

    assert excinfo.value.code == StorageErrorCode.GENERIC_EXCEPTION
    build.assert_not_called()


def test_build_uses_cached_settings(monkeypatch, tmp_path):
    from blobstore.common import config

    monkeypatch.setattr(config, "ENV_FILE", tmp_path / ".env")
    monkeypatch.setenv("STORAGE_BACKEND", "s3")
    monkeypatch.setenv("STORAGE_BUCKET", "env-bucket")

    provider = build_storage_provider()

    assert provider.bucket == "env-bucket"
