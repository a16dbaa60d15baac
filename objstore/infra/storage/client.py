"""Storage client protocol and data types.

This module defines the abstract interface for object storage operations
(listing, single-shot upload, streamed download and batch delete) together
with the immutable value types exchanged across it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Generic, Protocol, Sequence, TypeVar

from objstore.common.config import ADDRESSING_STYLES, Settings

T = TypeVar("T")


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class LocalFileNotFoundError(StorageError, FileNotFoundError):
    """Raised when a local upload source is missing or not a regular file."""


class FolderUploadRefused(StorageError):
    """Raised when a folder upload is refused before any upload starts."""


class ObjectACL(str, enum.Enum):
    """Canned access control lists accepted by S3-compatible stores."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AUTHENTICATED_READ = "authenticated-read"
    AWS_EXEC_READ = "aws-exec-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"
    LOG_DELIVERY_WRITE = "log-delivery-write"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Credentials and addressing options for one storage client.

    Instances are immutable, so several clients with different credentials
    can coexist in one process.
    """

    access_key: str
    secret_key: str = field(repr=False)
    region: str
    endpoint_url: str | None = None
    addressing_style: str = "path"
    use_ssl: bool = True
    signature_version: str = "s3v4"

    def __post_init__(self) -> None:
        if self.addressing_style not in ADDRESSING_STYLES:
            raise ValueError(
                f"addressing_style must be one of {', '.join(ADDRESSING_STYLES)}"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        if not settings.S3_ACCESS_KEY_ID or not settings.S3_SECRET_ACCESS_KEY:
            raise StorageError(
                "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY are required"
            )
        return cls(
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            addressing_style=settings.S3_ADDRESSING_STYLE,
            use_ssl=settings.S3_USE_SSL,
            signature_version=settings.S3_SIGNATURE_VERSION,
        )


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """One entry of a listing page."""

    key: str
    size_bytes: int = 0
    etag: str | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True, slots=True)
class ObjectPage:
    """A single page of a prefix listing."""

    bucket: str
    prefix: str
    objects: tuple[ObjectSummary, ...] = ()
    is_truncated: bool = False
    next_continuation_token: str | None = None

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.objects]


@dataclass(frozen=True, slots=True)
class UploadReceipt:
    """Metadata returned by the store for a completed upload."""

    bucket: str
    key: str
    etag: str | None = None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class DeletedObjects:
    """Outcome of one batch delete call."""

    deleted: tuple[str, ...] = ()
    errors: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[T]):
    """Either a payload or an error, never both.

    Single round-trip operations return this instead of raising so callers
    can tell "succeeded with data" from "failed with a described error".
    """

    data: T | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        if self.data is not None and self.error is not None:
            raise ValueError("OperationResult cannot hold both data and error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "OperationResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult[T]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Return the payload, raising the stored error if there is one."""
        if self.error is not None:
            raise self.error
        return self.data


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations raise ``StorageError`` on failure; they never return
    partial results silently.
    """

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ObjectPage:
        """List one page of objects whose key starts with ``prefix``.

        Args:
            bucket: Bucket name.
            prefix: Key prefix to filter on.
            continuation_token: Token from a previous truncated page.
            max_keys: Page size limit; the service default applies when None.

        Returns:
            ObjectPage with the keys and the truncation flag.

        Raises:
            StorageError: If the listing fails.
        """
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        acl: ObjectACL | str | None = None,
        content_type: str | None = None,
    ) -> UploadReceipt:
        """Upload a payload in a single request.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            body: Whole object content.
            acl: Optional canned ACL applied to the object.
            content_type: MIME type of the object.

        Returns:
            UploadReceipt describing the stored object.

        Raises:
            StorageError: If the ACL is unknown or the upload fails.
        """
        ...

    def download_object(
        self, *, bucket: str, object_key: str, destination: Path
    ) -> int:
        """Stream an object into a local file.

        Returns:
            Number of bytes written.

        Raises:
            StorageError: If the object cannot be fetched or written.
        """
        ...

    def delete_objects(
        self, *, bucket: str, object_keys: Sequence[str]
    ) -> DeletedObjects:
        """Delete up to one listing page of objects in one request.

        Raises:
            StorageError: If the request itself fails.
        """
        ...
