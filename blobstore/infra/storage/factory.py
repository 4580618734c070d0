"""Provider construction from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from blobstore.common import config
from blobstore.infra.storage.client import ProviderOptions, StorageProvider
from blobstore.infra.storage.s3_provider import S3StorageProvider

if TYPE_CHECKING:
    from blobstore.common.config import StorageSettings


def create_provider(backend: str, options: ProviderOptions) -> StorageProvider:
    """Build the provider for ``backend`` bound to ``options``.

    Credentials are not checked here; a provider without them fails on
    first use instead.

    Raises:
        ValueError: If ``backend`` is not supported.
    """
    normalized = (backend or "").strip().lower()
    if normalized == S3StorageProvider.backend:
        return S3StorageProvider(options)
    raise ValueError(f"Unsupported storage backend: {backend!r}")


def build_storage_provider(settings: "StorageSettings | None" = None) -> StorageProvider:
    """Build the provider configured by ``STORAGE_*`` settings."""
    settings = settings or config.get_settings()
    return create_provider(settings.STORAGE_BACKEND, settings.provider_options())
