"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    ClientConfig,
    DeletedObjects,
    FolderUploadRefused,
    LocalFileNotFoundError,
    ObjectACL,
    ObjectPage,
    ObjectSummary,
    OperationResult,
    StorageClient,
    StorageError,
    UploadReceipt,
)

__all__ = [
    "ClientConfig",
    "DeletedObjects",
    "FolderUploadRefused",
    "LocalFileNotFoundError",
    "ObjectACL",
    "ObjectPage",
    "ObjectSummary",
    "OperationResult",
    "StorageClient",
    "StorageError",
    "UploadReceipt",
]
