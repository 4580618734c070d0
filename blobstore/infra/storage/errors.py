"""Normalized storage errors.

Backends raise their own exception types; ``normalize_error`` collapses them
into ``StorageError`` carrying one of a small closed set of codes.

Failures caused by unusable credentials, an unreachable endpoint or a
malformed request all surface as ``GENERIC_EXCEPTION``. S3 reports some
credential problems with dedicated codes, but HEAD responses carry no body,
so a bare 403 cannot be told apart from a real permission problem. Callers
must not rely on telling these cases apart.
"""

from __future__ import annotations

from enum import IntEnum

from botocore.exceptions import ClientError


class StorageErrorCode(IntEnum):
    GENERIC_EXCEPTION = 1
    NOT_FOUND = 2
    ACCESS_DENIED = 3


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    def __init__(
        self,
        message: str,
        *,
        code: StorageErrorCode = StorageErrorCode.GENERIC_EXCEPTION,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.operation = operation

    @property
    def error_code(self) -> int:
        return int(self.code)

    def __repr__(self) -> str:
        return (
            f"StorageError(code={self.code.name}, operation={self.operation!r}, "
            f"message={self.message!r})"
        )


_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})

_ACCESS_DENIED_CODES = frozenset({"AccessDenied", "AllAccessDisabled"})


def client_error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code") or "")


def classify_backend_code(code: str) -> StorageErrorCode:
    """Map an S3 error code string onto a normalized error code."""
    if code in _NOT_FOUND_CODES:
        return StorageErrorCode.NOT_FOUND
    if code in _ACCESS_DENIED_CODES:
        return StorageErrorCode.ACCESS_DENIED
    return StorageErrorCode.GENERIC_EXCEPTION


def classify(exc: BaseException) -> StorageErrorCode:
    """Map a backend exception onto a normalized error code."""
    if isinstance(exc, StorageError):
        return exc.code
    if isinstance(exc, ClientError):
        return classify_backend_code(client_error_code(exc))
    return StorageErrorCode.GENERIC_EXCEPTION


def normalize_error(exc: BaseException, *, operation: str | None = None) -> StorageError:
    """Wrap ``exc`` into a ``StorageError``; existing ones pass through."""
    if isinstance(exc, StorageError):
        return exc
    code = classify(exc)
    prefix = f"Failed to {operation.replace('_', ' ')}" if operation else "Storage failure"
    return StorageError(f"{prefix}: {exc}", code=code, operation=operation)
