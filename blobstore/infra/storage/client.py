"""Storage provider protocol and data types.

This module defines the uniform interface every blob storage backend
implements, together with the value types passed across it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import BinaryIO, Protocol

from blobstore.infra.storage.errors import StorageError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
PATH_SEPARATOR = "/"

PUBLIC_ACL_ATOMIC = "atomic"
PUBLIC_ACL_FOLLOW_UP = "follow_up"
PUBLIC_ACL_MODES = (PUBLIC_ACL_ATOMIC, PUBLIC_ACL_FOLLOW_UP)


class AccessLevel(str, Enum):
    """Capability granted by a generated access URL."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class BlobIdentifier:
    """Names a stored blob by container and key.

    The container becomes the first path segment, so it may not contain
    the separator. Keys may be nested (``a/b/c``).
    """

    container: str
    key: str

    def __post_init__(self) -> None:
        if not self.container:
            raise ValueError("container must be a non-empty string")
        if not self.key:
            raise ValueError("key must be a non-empty string")
        if PATH_SEPARATOR in self.container:
            raise ValueError(
                f"container must not contain {PATH_SEPARATOR!r}: {self.container!r}"
            )
        if self.key.startswith(PATH_SEPARATOR):
            raise ValueError(f"key must not start with {PATH_SEPARATOR!r}: {self.key!r}")

    @property
    def path(self) -> str:
        return f"{self.container}{PATH_SEPARATOR}{self.key}"

    @classmethod
    def from_path(cls, path: str) -> "BlobIdentifier":
        container, sep, key = path.partition(PATH_SEPARATOR)
        if not sep:
            raise ValueError(f"path has no container segment: {path!r}")
        return cls(container=container, key=key)

    def __str__(self) -> str:
        return self.path


def container_prefix(container: str) -> str:
    """Return the key prefix shared by every blob of ``container``."""
    if not container or PATH_SEPARATOR in container:
        raise ValueError(f"invalid container name: {container!r}")
    return f"{container}{PATH_SEPARATOR}"


@dataclass(frozen=True, slots=True)
class ProviderOptions:
    """Credentials and target bucket a provider is bound to.

    ``identity`` and ``secret_key`` may be missing; the provider is still
    constructed and reports the problem on first use.
    """

    bucket: str
    identity: str | None = None
    secret_key: str | None = None
    endpoint_url: str | None = None
    region: str | None = None
    addressing_style: str = "path"
    use_ssl: bool = True
    public_acl_mode: str = PUBLIC_ACL_ATOMIC

    @property
    def has_credentials(self) -> bool:
        return bool(self.identity) and bool(self.secret_key)

    def __repr__(self) -> str:
        return (
            f"ProviderOptions(bucket={self.bucket!r}, identity={self.identity!r}, "
            f"secret_key={'***' if self.secret_key else None}, "
            f"endpoint_url={self.endpoint_url!r}, region={self.region!r})"
        )


@dataclass(frozen=True, slots=True)
class BlobDescriptor:
    """Metadata of a stored blob."""

    identifier: BlobIdentifier
    size_bytes: int
    content_type: str | None
    etag: str | None
    last_modified: datetime | None


class StorageProvider(Protocol):
    """Protocol defining the interface for blob storage backends.

    Implementations hold no per-call state and may be shared between
    threads. Every failure is raised as ``StorageError``.
    """

    def save(
        self,
        blob: BlobIdentifier,
        content: BinaryIO | bytes,
        *,
        content_type: str | None = None,
        is_public: bool = False,
    ) -> None:
        """Upload content under ``blob``.

        Args:
            blob: Target blob.
            content: Readable binary stream or raw bytes. Streams are not
                closed by the provider.
            content_type: MIME type; defaults to ``application/octet-stream``.
            is_public: Make the blob readable anonymously.

        Raises:
            StorageError: If the upload, or the public visibility change,
                fails. A failed visibility change leaves no object behind.
        """
        ...

    def fetch(self, blob: BlobIdentifier) -> BinaryIO:
        """Return a readable stream of the blob's bytes.

        The caller owns the returned stream and must close it.

        Raises:
            StorageError: ``NOT_FOUND`` if the blob does not exist.
        """
        ...

    def delete(self, blob: BlobIdentifier) -> None:
        """Delete a blob.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def copy(self, source: BlobIdentifier, destination: BlobIdentifier) -> None:
        """Copy ``source`` to ``destination`` inside the bucket.

        Raises:
            StorageError: ``NOT_FOUND`` if the source does not exist.
        """
        ...

    def generate_access_url(
        self,
        blob: BlobIdentifier,
        expires_in: timedelta | int,
        access: AccessLevel = AccessLevel.READ,
    ) -> str:
        """Generate a time-limited URL granting ``access`` to one blob.

        Args:
            blob: Target blob.
            expires_in: Lifetime as a timedelta or in seconds.
            access: ``READ`` for a GET URL, ``WRITE`` for a PUT URL.

        Raises:
            StorageError: If the lifetime is out of range or signing fails.
        """
        ...

    def get_descriptor(self, blob: BlobIdentifier) -> BlobDescriptor:
        """Get blob metadata without downloading the content.

        Raises:
            StorageError: ``NOT_FOUND`` if the blob does not exist.
        """
        ...

    def list_blobs(self, container: str) -> list[BlobDescriptor]:
        """List every blob stored in ``container``."""
        ...

    def delete_container(self, container: str) -> int:
        """Delete every blob in ``container`` and return how many were removed."""
        ...

    def get_public_url(self, blob: BlobIdentifier) -> str:
        """Return the unsigned URL of a blob."""
        ...


__all__ = [
    "AccessLevel",
    "BlobDescriptor",
    "BlobIdentifier",
    "DEFAULT_CONTENT_TYPE",
    "ProviderOptions",
    "PUBLIC_ACL_ATOMIC",
    "PUBLIC_ACL_FOLLOW_UP",
    "PUBLIC_ACL_MODES",
    "StorageError",
    "StorageProvider",
    "container_prefix",
]
