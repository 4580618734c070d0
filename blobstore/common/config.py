from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from blobstore.infra.storage.client import (
    PUBLIC_ACL_ATOMIC,
    PUBLIC_ACL_MODES,
    ProviderOptions,
)

ENV_FILE = Path(".env")

SUPPORTED_BACKENDS: tuple[str, ...] = ("s3",)
ADDRESSING_STYLES: tuple[str, ...] = ("path", "virtual", "auto")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class StorageSettings:
    STORAGE_BACKEND: str = "s3"
    STORAGE_IDENTITY: str | None = None
    STORAGE_SECRET_KEY: str | None = None
    STORAGE_BUCKET: str = ""
    STORAGE_ENDPOINT_URL: str | None = None
    STORAGE_REGION: str | None = None
    STORAGE_ADDRESSING_STYLE: str = "path"
    STORAGE_USE_SSL: bool = True
    STORAGE_PUBLIC_ACL_MODE: str = PUBLIC_ACL_ATOMIC

    def __post_init__(self) -> None:
        self.STORAGE_BACKEND = self.STORAGE_BACKEND.strip().lower()
        if self.STORAGE_BACKEND not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}; "
                f"got {self.STORAGE_BACKEND!r}."
            )
        self.STORAGE_ADDRESSING_STYLE = self.STORAGE_ADDRESSING_STYLE.strip().lower()
        if self.STORAGE_ADDRESSING_STYLE not in ADDRESSING_STYLES:
            raise ValueError(
                f"STORAGE_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        self.STORAGE_PUBLIC_ACL_MODE = self.STORAGE_PUBLIC_ACL_MODE.strip().lower()
        if self.STORAGE_PUBLIC_ACL_MODE not in PUBLIC_ACL_MODES:
            raise ValueError(
                f"STORAGE_PUBLIC_ACL_MODE must be one of {', '.join(PUBLIC_ACL_MODES)}."
            )

    @classmethod
    def from_environment(cls) -> "StorageSettings":
        _load_env_file()
        return cls(
            STORAGE_BACKEND=os.environ.get("STORAGE_BACKEND", cls.STORAGE_BACKEND),
            STORAGE_IDENTITY=_as_optional(os.environ.get("STORAGE_IDENTITY")),
            STORAGE_SECRET_KEY=_as_optional(os.environ.get("STORAGE_SECRET_KEY")),
            STORAGE_BUCKET=os.environ.get("STORAGE_BUCKET", cls.STORAGE_BUCKET),
            STORAGE_ENDPOINT_URL=_as_optional(os.environ.get("STORAGE_ENDPOINT_URL")),
            STORAGE_REGION=_as_optional(os.environ.get("STORAGE_REGION")),
            STORAGE_ADDRESSING_STYLE=os.environ.get(
                "STORAGE_ADDRESSING_STYLE", cls.STORAGE_ADDRESSING_STYLE
            ),
            STORAGE_USE_SSL=_as_bool(
                os.environ.get("STORAGE_USE_SSL"), cls.STORAGE_USE_SSL
            ),
            STORAGE_PUBLIC_ACL_MODE=os.environ.get(
                "STORAGE_PUBLIC_ACL_MODE", cls.STORAGE_PUBLIC_ACL_MODE
            ),
        )

    def provider_options(self) -> ProviderOptions:
        return ProviderOptions(
            bucket=self.STORAGE_BUCKET,
            identity=self.STORAGE_IDENTITY,
            secret_key=self.STORAGE_SECRET_KEY,
            endpoint_url=self.STORAGE_ENDPOINT_URL,
            region=self.STORAGE_REGION,
            addressing_style=self.STORAGE_ADDRESSING_STYLE,
            use_ssl=self.STORAGE_USE_SSL,
            public_acl_mode=self.STORAGE_PUBLIC_ACL_MODE,
        )


@lru_cache(maxsize=1)
def get_settings() -> StorageSettings:
    return StorageSettings.from_environment()
