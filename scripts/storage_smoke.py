#!/usr/bin/env python3
"""Round-trip a random blob through the configured storage backend.

Usage:
  .venv/bin/python scripts/storage_smoke.py
  .venv/bin/python scripts/storage_smoke.py --size 65536 --public --check-url

Reads STORAGE_* settings from the environment (or .env). Everything written
under the generated container is deleted afterwards unless --keep is given.
"""

from __future__ import annotations

import argparse
import io
import logging
import os
import sys
import uuid
from datetime import timedelta

import requests

from blobstore.common.config import get_settings
from blobstore.common.logging import setup_logging
from blobstore.infra.storage.client import AccessLevel, BlobIdentifier, StorageProvider
from blobstore.infra.storage.errors import StorageError
from blobstore.infra.storage.factory import build_storage_provider
from blobstore.infra.storage.streams import stream_equals

logger = logging.getLogger("scripts.storage_smoke")

DEFAULT_CONTAINER_PREFIX = "smoke"


def run_smoke(
    provider: StorageProvider,
    *,
    size: int = 256,
    container_prefix: str = DEFAULT_CONTAINER_PREFIX,
    public: bool = False,
    check_url: bool = False,
    keep: bool = False,
) -> BlobIdentifier:
    container = f"{container_prefix}{uuid.uuid4().hex}"
    blob = BlobIdentifier(container=container, key=uuid.uuid4().hex)
    payload = os.urandom(size)
    try:
        provider.save(blob, io.BytesIO(payload), is_public=public)
        logger.info("saved blob=%s size=%s public=%s", blob, size, public)

        body = provider.fetch(blob)
        try:
            if not stream_equals(io.BytesIO(payload), body):
                raise RuntimeError(f"Fetched content of {blob} differs from what was saved")
        finally:
            body.close()
        logger.info("fetched blob=%s content matches", blob)

        if check_url:
            url = provider.generate_access_url(
                blob, timedelta(minutes=5), AccessLevel.READ
            )
            resp = requests.get(url, timeout=30)
            resp.raise_for_status()
            if resp.content != payload:
                raise RuntimeError(f"Access URL of {blob} served different content")
            logger.info("access url of blob=%s serves matching content", blob)
    finally:
        if not keep:
            removed = provider.delete_container(container)
            logger.info("deleted container=%s blobs=%s", container, removed)
    return blob


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Round-trip a random blob through the configured storage backend"
    )
    parser.add_argument(
        "--size", type=int, default=256, help="Payload size in bytes (default: 256)"
    )
    parser.add_argument(
        "--container-prefix",
        default=DEFAULT_CONTAINER_PREFIX,
        help="Prefix of the generated container name",
    )
    parser.add_argument(
        "--public", action="store_true", help="Save the blob with public visibility"
    )
    parser.add_argument(
        "--check-url",
        action="store_true",
        help="Also download the blob through a signed access URL",
    )
    parser.add_argument(
        "--keep", action="store_true", help="Do not delete the generated container"
    )
    args = parser.parse_args()

    setup_logging()
    provider = build_storage_provider(get_settings())
    try:
        blob = run_smoke(
            provider,
            size=args.size,
            container_prefix=args.container_prefix,
            public=args.public,
            check_url=args.check_url,
            keep=args.keep,
        )
    except StorageError as exc:
        logger.error("smoke test failed code=%s error=%s", exc.code.name, exc.message)
        sys.exit(1)
    print(f"Round-trip succeeded for {blob}")


if __name__ == "__main__":
    main()
