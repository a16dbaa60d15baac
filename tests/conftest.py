from __future__ import annotations

import pytest

from objstore.common import config as config_module
from objstore.common.config import Settings, get_settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and .env out of every test."""
    for name in (
        "S3_ACCESS_KEY_ID",
        "S3_SECRET_ACCESS_KEY",
        "S3_REGION",
        "S3_ENDPOINT_URL",
        "S3_ADDRESSING_STYLE",
        "S3_USE_SSL",
        "S3_SIGNATURE_VERSION",
        "UPLOAD_FOLDER_MAX_FILES",
        "TRANSFER_MAX_WORKERS",
        "LOG_LEVEL",
        "LOG_JSON",
        "ENABLE_METRICS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "ENV_FILE", tmp_path / ".env")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        S3_ACCESS_KEY_ID="test-key",
        S3_SECRET_ACCESS_KEY="test-secret",
        S3_REGION="us-east-1",
        TRANSFER_MAX_WORKERS=4,
        ENABLE_METRICS=False,
    )
