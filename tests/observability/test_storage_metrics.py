import pytest
from prometheus_client import REGISTRY

from blobstore.infra.storage.client import BlobIdentifier
from blobstore.infra.storage.errors import StorageError
from tests.infra.harness import generate_random_blob, random_blob


def _count(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "blob_storage_operations_total",
        {"backend": "s3", "operation": operation, "outcome": outcome},
    )
    return value or 0.0


def _latency_count(operation: str) -> float:
    value = REGISTRY.get_sample_value(
        "blob_storage_operation_duration_seconds_count",
        {"backend": "s3", "operation": operation},
    )
    return value or 0.0


def test_successful_operation_counted(provider):
    before_ok = _count("save", "ok")
    before_latency = _latency_count("save")

    provider.save(random_blob(), generate_random_blob())

    assert _count("save", "ok") == before_ok + 1
    assert _latency_count("save") == before_latency + 1


def test_not_found_counted_by_code(provider):
    before = _count("fetch", "not_found")

    with pytest.raises(StorageError):
        provider.fetch(random_blob())

    assert _count("fetch", "not_found") == before + 1


def test_missing_credentials_counted_as_generic(exception_provider):
    before = _count("delete", "generic_exception")

    with pytest.raises(StorageError):
        exception_provider.delete(BlobIdentifier(container="c", key="k"))

    assert _count("delete", "generic_exception") == before + 1
