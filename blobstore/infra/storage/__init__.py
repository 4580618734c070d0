"""Blob storage abstraction layer.

This package provides a protocol-based abstraction for blob storage backends
with a normalized error taxonomy. The reference backend speaks the S3 API
(AWS S3, MinIO, Google Cloud Storage interoperability).
"""

from .client import (
    AccessLevel,
    BlobDescriptor,
    BlobIdentifier,
    ProviderOptions,
    StorageProvider,
)
from .errors import StorageError, StorageErrorCode, normalize_error
from .factory import build_storage_provider, create_provider
from .s3_provider import S3StorageProvider

__all__ = [
    "AccessLevel",
    "BlobDescriptor",
    "BlobIdentifier",
    "ProviderOptions",
    "S3StorageProvider",
    "StorageError",
    "StorageErrorCode",
    "StorageProvider",
    "build_storage_provider",
    "create_provider",
    "normalize_error",
]
