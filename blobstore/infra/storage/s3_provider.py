"""S3-compatible storage provider implementation.

This module provides the reference ``StorageProvider`` backend. It works with
AWS S3, MinIO, and Google Cloud Storage through its S3 interoperability
endpoint (HMAC keys).

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import timedelta
from functools import cached_property
from typing import Any, BinaryIO, Iterator
from urllib.parse import quote, urlsplit

import boto3
from botocore.config import Config

from blobstore.infra.observability.metrics import observe_operation
from blobstore.infra.storage.client import (
    DEFAULT_CONTENT_TYPE,
    PUBLIC_ACL_ATOMIC,
    AccessLevel,
    BlobDescriptor,
    BlobIdentifier,
    ProviderOptions,
    container_prefix,
)
from blobstore.infra.storage.errors import (
    StorageError,
    StorageErrorCode,
    classify_backend_code,
    normalize_error,
)

logger = logging.getLogger("storage")

PUBLIC_READ_ACL = "public-read"
# SigV4 presigned URLs are valid for at most seven days
MAX_ACCESS_URL_SECONDS = 7 * 24 * 60 * 60
# delete_objects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


def _expiry_seconds(expires_in: timedelta | int) -> int:
    if isinstance(expires_in, timedelta):
        seconds = int(expires_in.total_seconds())
    else:
        seconds = int(expires_in)
    if seconds <= 0 or seconds > MAX_ACCESS_URL_SECONDS:
        raise StorageError(
            f"Access URL lifetime must be between 1 and {MAX_ACCESS_URL_SECONDS} "
            f"seconds, got {seconds}",
            operation="generate_access_url",
        )
    return seconds


class S3StorageProvider:
    """S3-compatible blob storage provider.

    Bound to one bucket. Containers are the first segment of the object key.
    The boto3 client is created on first use, so construction never fails;
    a provider without credentials raises ``GENERIC_EXCEPTION`` from every
    operation.
    """

    backend = "s3"

    def __init__(self, options: ProviderOptions) -> None:
        self._options = options

    @property
    def options(self) -> ProviderOptions:
        return self._options

    @property
    def bucket(self) -> str:
        return self._options.bucket

    @staticmethod
    def _build_client(options: ProviderOptions) -> Any:
        """Create a boto3 S3 client from provider options."""
        addressing_style = (options.addressing_style or "path").strip().lower()
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
        )
        return boto3.client(
            "s3",
            endpoint_url=options.endpoint_url,
            region_name=options.region,
            aws_access_key_id=options.identity,
            aws_secret_access_key=options.secret_key,
            use_ssl=bool(options.use_ssl),
            config=config,
        )

    @cached_property
    def _client(self) -> Any:
        return self._build_client(self._options)

    def _connect(self, operation: str) -> Any:
        if not self._options.has_credentials:
            raise StorageError(
                "Storage credentials are not configured (identity and secret key are required)",
                operation=operation,
            )
        return self._client

    @contextmanager
    def _operation(
        self, operation: str, blob: BlobIdentifier | str | None = None
    ) -> Iterator[None]:
        with observe_operation(self.backend, operation):
            try:
                yield
            except Exception as exc:
                error = normalize_error(exc, operation=operation)
                self._log_failure(operation, blob, error)
                if error is exc:
                    raise
                raise error from exc

    def _log_failure(
        self, operation: str, blob: BlobIdentifier | str | None, error: StorageError
    ) -> None:
        level = (
            logging.INFO
            if error.code is StorageErrorCode.NOT_FOUND
            else logging.WARNING
        )
        logger.log(
            level,
            "storage_operation_failed backend=%s operation=%s code=%s bucket=%s blob=%s error=%s",
            self.backend,
            operation,
            error.code.name,
            self.bucket,
            blob,
            error.message,
            extra={
                "extra": {
                    "backend": self.backend,
                    "operation": operation,
                    "code": error.code.name,
                    "bucket": self.bucket,
                    "blob": str(blob) if blob is not None else None,
                }
            },
        )

    def save(
        self,
        blob: BlobIdentifier,
        content: BinaryIO | bytes,
        *,
        content_type: str | None = None,
        is_public: bool = False,
    ) -> None:
        """Upload content, applying the public ACL atomically or as a follow-up."""
        atomic_acl = is_public and self._options.public_acl_mode == PUBLIC_ACL_ATOMIC
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": blob.path,
            "Body": content,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
        }
        if atomic_acl:
            params["ACL"] = PUBLIC_READ_ACL

        with self._operation("save", blob):
            client = self._connect("save")
            client.put_object(**params)
            if is_public and not atomic_acl:
                self._make_public(client, blob)

    def _make_public(self, client: Any, blob: BlobIdentifier) -> None:
        try:
            client.put_object_acl(Bucket=self.bucket, Key=blob.path, ACL=PUBLIC_READ_ACL)
        except Exception:
            # The blob must not stay behind with the wrong visibility
            self._discard(client, blob)
            raise

    def _discard(self, client: Any, blob: BlobIdentifier) -> None:
        try:
            client.delete_object(Bucket=self.bucket, Key=blob.path)
        except Exception as exc:
            logger.exception(
                "storage_rollback_failed backend=%s bucket=%s blob=%s error=%s",
                self.backend,
                self.bucket,
                blob,
                exc,
                extra={
                    "extra": {
                        "backend": self.backend,
                        "bucket": self.bucket,
                        "blob": blob.path,
                    }
                },
            )

    def fetch(self, blob: BlobIdentifier) -> BinaryIO:
        """Return the streaming body of a blob; the caller closes it."""
        with self._operation("fetch", blob):
            client = self._connect("fetch")
            response = client.get_object(Bucket=self.bucket, Key=blob.path)
            return response["Body"]

    def delete(self, blob: BlobIdentifier) -> None:
        with self._operation("delete", blob):
            self._connect("delete").delete_object(Bucket=self.bucket, Key=blob.path)

    def copy(self, source: BlobIdentifier, destination: BlobIdentifier) -> None:
        with self._operation("copy", source):
            self._connect("copy").copy_object(
                Bucket=self.bucket,
                Key=destination.path,
                CopySource={"Bucket": self.bucket, "Key": source.path},
            )

    def generate_access_url(
        self,
        blob: BlobIdentifier,
        expires_in: timedelta | int,
        access: AccessLevel = AccessLevel.READ,
    ) -> str:
        """Generate a presigned GET (read) or PUT (write) URL."""
        with self._operation("generate_access_url", blob):
            client = self._connect("generate_access_url")
            seconds = _expiry_seconds(expires_in)
            method = (
                "get_object" if AccessLevel(access) is AccessLevel.READ else "put_object"
            )
            url = client.generate_presigned_url(
                method,
                Params={"Bucket": self.bucket, "Key": blob.path},
                ExpiresIn=seconds,
            )
            if not url:
                raise StorageError(
                    "Generated presigned URL is empty", operation="generate_access_url"
                )
            return str(url)

    def get_descriptor(self, blob: BlobIdentifier) -> BlobDescriptor:
        """Get blob metadata without downloading the content."""
        with self._operation("get_descriptor", blob):
            client = self._connect("get_descriptor")
            response = client.head_object(Bucket=self.bucket, Key=blob.path)

        size = response.get("ContentLength")
        return BlobDescriptor(
            identifier=blob,
            size_bytes=int(size) if size is not None else 0,
            content_type=response.get("ContentType"),
            etag=response.get("ETag"),
            last_modified=response.get("LastModified"),
        )

    def _iter_keys(self, client: Any, container: str) -> Iterator[dict[str, Any]]:
        prefix = container_prefix(container)
        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for item in page.get("Contents", []):
                key = item["Key"][len(prefix):]
                # Folder markers and keys with an empty leading segment have no identifier
                if not key or key.startswith("/"):
                    continue
                yield item

    def list_blobs(self, container: str) -> list[BlobDescriptor]:
        """List every blob of a container, following pagination."""
        with self._operation("list_blobs", container):
            items = list(self._iter_keys(self._connect("list_blobs"), container))

        return [
            BlobDescriptor(
                identifier=BlobIdentifier.from_path(item["Key"]),
                size_bytes=int(item.get("Size") or 0),
                content_type=None,
                etag=item.get("ETag"),
                last_modified=item.get("LastModified"),
            )
            for item in items
        ]

    def delete_container(self, container: str) -> int:
        """Delete every blob of a container in batches; return the count."""
        deleted = 0
        with self._operation("delete_container", container):
            client = self._connect("delete_container")
            keys = [item["Key"] for item in self._iter_keys(client, container)]
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start : start + DELETE_BATCH_SIZE]
                response = client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
                errors = response.get("Errors") or []
                if errors:
                    first = errors[0]
                    raise StorageError(
                        f"Failed to delete {len(errors)} blob(s) from container "
                        f"{container!r}: {first.get('Code')} {first.get('Message')}",
                        code=classify_backend_code(str(first.get("Code") or "")),
                        operation="delete_container",
                    )
                deleted += len(batch)
        return deleted

    def get_public_url(self, blob: BlobIdentifier) -> str:
        """Return the unsigned URL under which a public blob is readable."""
        with self._operation("get_public_url", blob):
            endpoint = urlsplit(self._connect("get_public_url").meta.endpoint_url)
            key = quote(blob.path, safe="/")
            style = (self._options.addressing_style or "path").strip().lower()
            if style == "virtual":
                return f"{endpoint.scheme}://{self.bucket}.{endpoint.netloc}/{key}"
            return f"{endpoint.scheme}://{endpoint.netloc}/{self.bucket}/{key}"
