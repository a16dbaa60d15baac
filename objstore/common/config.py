from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_UPLOAD_FOLDER_MAX_FILES = 10000
DEFAULT_TRANSFER_MAX_WORKERS = 8
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
class Settings:
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str | None = None
    S3_ADDRESSING_STYLE: str = "path"
    S3_USE_SSL: bool = True
    S3_SIGNATURE_VERSION: str = "s3v4"
    UPLOAD_FOLDER_MAX_FILES: int = DEFAULT_UPLOAD_FOLDER_MAX_FILES
    TRANSFER_MAX_WORKERS: int = DEFAULT_TRANSFER_MAX_WORKERS
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        self.S3_ADDRESSING_STYLE = (self.S3_ADDRESSING_STYLE or "path").strip().lower()
        if self.S3_ADDRESSING_STYLE not in ADDRESSING_STYLES:
            raise ValueError(
                "S3_ADDRESSING_STYLE must be one of: " + ", ".join(ADDRESSING_STYLES)
            )
        if self.UPLOAD_FOLDER_MAX_FILES <= 0:
            raise ValueError("UPLOAD_FOLDER_MAX_FILES must be a positive integer.")
        if self.TRANSFER_MAX_WORKERS <= 0:
            raise ValueError("TRANSFER_MAX_WORKERS must be a positive integer.")

    def __repr__(self) -> str:
        secret = "***" if self.S3_SECRET_ACCESS_KEY else None
        return (
            f"Settings(S3_ACCESS_KEY_ID={self.S3_ACCESS_KEY_ID!r}, "
            f"S3_SECRET_ACCESS_KEY={secret!r}, S3_REGION={self.S3_REGION!r}, "
            f"S3_ENDPOINT_URL={self.S3_ENDPOINT_URL!r})"
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ACCESS_KEY_ID=_as_optional(os.environ.get("S3_ACCESS_KEY_ID")),
            S3_SECRET_ACCESS_KEY=_as_optional(os.environ.get("S3_SECRET_ACCESS_KEY")),
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_SIGNATURE_VERSION=os.environ.get(
                "S3_SIGNATURE_VERSION", cls.S3_SIGNATURE_VERSION
            ),
            UPLOAD_FOLDER_MAX_FILES=int(
                os.environ.get("UPLOAD_FOLDER_MAX_FILES", cls.UPLOAD_FOLDER_MAX_FILES)
            ),
            TRANSFER_MAX_WORKERS=int(
                os.environ.get("TRANSFER_MAX_WORKERS", cls.TRANSFER_MAX_WORKERS)
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            LOG_JSON=_as_bool(os.environ.get("LOG_JSON"), cls.LOG_JSON),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
