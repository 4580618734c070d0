from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

from blobstore.infra.storage.errors import classify

# Low-cardinality labels only: never put containers or keys in a label
OPERATIONS = Counter(
    "blob_storage_operations_total",
    "Total blob storage operations",
    ["backend", "operation", "outcome"],
)

LATENCY = Histogram(
    "blob_storage_operation_duration_seconds",
    "Blob storage operation latency in seconds",
    ["backend", "operation"],
)


@contextmanager
def observe_operation(backend: str, operation: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        OPERATIONS.labels(backend, operation, classify(exc).name.lower()).inc()
        raise
    else:
        OPERATIONS.labels(backend, operation, "ok").inc()
    finally:
        LATENCY.labels(backend, operation).observe(time.perf_counter() - start)
