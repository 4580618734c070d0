from __future__ import annotations

from unittest.mock import patch

import pytest

from blobstore.common.config import get_settings
from blobstore.infra.storage.client import ProviderOptions
from blobstore.infra.storage.s3_provider import S3StorageProvider
from tests.infra.fake_s3 import FakeS3Client
from tests.infra.harness import BlobHarness

TEST_BUCKET = "blobstore-test-bucket"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def fake_s3():
    client = FakeS3Client()
    client.create_bucket(TEST_BUCKET)
    with patch.object(S3StorageProvider, "_build_client", return_value=client):
        yield client


@pytest.fixture()
def provider(fake_s3):
    return S3StorageProvider(
        ProviderOptions(
            bucket=TEST_BUCKET,
            identity="test-identity",
            secret_key="test-secret",
        )
    )


@pytest.fixture()
def exception_provider(fake_s3):
    return S3StorageProvider(
        ProviderOptions(bucket=TEST_BUCKET, identity=None, secret_key=None)
    )


@pytest.fixture()
def harness(fake_s3, provider, exception_provider):
    return BlobHarness(
        client=fake_s3,
        bucket=TEST_BUCKET,
        provider=provider,
        exception_provider=exception_provider,
    )
