"""Thin client over S3-compatible object storage."""

from objstore.infra.storage.client import (
    ClientConfig,
    LocalFileNotFoundError,
    ObjectACL,
    ObjectPage,
    OperationResult,
    StorageError,
    UploadReceipt,
)
from objstore.services.object_store import (
    DeleteSummary,
    ObjectStoreClient,
    TransferOutcome,
)

__all__ = [
    "ClientConfig",
    "DeleteSummary",
    "LocalFileNotFoundError",
    "ObjectACL",
    "ObjectPage",
    "ObjectStoreClient",
    "OperationResult",
    "StorageError",
    "TransferOutcome",
    "UploadReceipt",
]

__version__ = "0.1.0"
