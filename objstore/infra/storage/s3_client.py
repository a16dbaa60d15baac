"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from objstore.infra.observability.metrics import LATENCY, OPERATIONS
from objstore.infra.storage.client import (
    ClientConfig,
    DeletedObjects,
    ObjectACL,
    ObjectPage,
    ObjectSummary,
    StorageError,
    UploadReceipt,
)

# DeleteObjects accepts at most this many keys per request
MAX_DELETE_BATCH = 1000
DOWNLOAD_CHUNK_BYTES = 1024 * 1024


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. The underlying boto3 client is
    thread-safe and is shared by every worker of a batch transfer.
    """

    def __init__(
        self,
        *,
        config: ClientConfig,
        max_pool_connections: int = 10,
        record_metrics: bool = True,
    ) -> None:
        """Initialize the S3 client from an immutable client configuration.

        Args:
            config: Credentials, region and addressing options.
            max_pool_connections: Size of the botocore HTTP connection pool.
            record_metrics: Record prometheus metrics for each call.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._config = config
        self._record_metrics = record_metrics
        self._client = self._build_client(config, max_pool_connections)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @staticmethod
    def _build_client(config: ClientConfig, max_pool_connections: int) -> Any:
        """Create a boto3 S3 client without touching process-wide defaults."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        botocore_config = Config(
            signature_version=config.signature_version,
            max_pool_connections=max_pool_connections,
            s3={"addressing_style": config.addressing_style},
        )

        # A dedicated session keeps credentials off boto3's default session
        session = boto3.Session()
        return session.client(
            "s3",
            endpoint_url=config.endpoint_url,
            region_name=config.region,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            use_ssl=bool(config.use_ssl),
            config=botocore_config,
        )

    @contextmanager
    def _observe(self, operation: str) -> Iterator[None]:
        if not self._record_metrics:
            yield
            return
        started = time.perf_counter()
        outcome = "error"
        try:
            yield
            outcome = "ok"
        finally:
            OPERATIONS.labels(operation=operation, outcome=outcome).inc()
            LATENCY.labels(operation=operation).observe(
                time.perf_counter() - started
            )

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ObjectPage:
        """List one page of objects under a prefix."""
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        if max_keys is not None:
            params["MaxKeys"] = int(max_keys)

        with self._observe("list_objects"):
            try:
                response = self._client.list_objects_v2(**params)
            except Exception as exc:
                raise StorageError(f"Failed to list objects: {exc}") from exc

        objects = tuple(
            ObjectSummary(
                key=str(item["Key"]),
                size_bytes=int(item.get("Size") or 0),
                etag=item.get("ETag"),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents") or []
        )
        return ObjectPage(
            bucket=bucket,
            prefix=prefix,
            objects=objects,
            is_truncated=bool(response.get("IsTruncated")),
            next_continuation_token=response.get("NextContinuationToken"),
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        acl: ObjectACL | str | None = None,
        content_type: str | None = None,
    ) -> UploadReceipt:
        """Upload a payload in a single request."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key, "Body": body}
        if acl:
            try:
                params["ACL"] = ObjectACL(acl).value
            except ValueError as exc:
                raise StorageError(f"Unsupported ACL: {acl}") from exc
        if content_type:
            params["ContentType"] = content_type

        with self._observe("put_object"):
            try:
                response = self._client.put_object(**params)
            except Exception as exc:
                raise StorageError(f"Failed to upload object: {exc}") from exc

        return UploadReceipt(
            bucket=bucket,
            key=object_key,
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
        )

    def download_object(
        self, *, bucket: str, object_key: str, destination: Path
    ) -> int:
        """Stream an object into a local file."""
        written = 0
        with self._observe("get_object"):
            try:
                response = self._client.get_object(Bucket=bucket, Key=object_key)
            except Exception as exc:
                raise StorageError(f"Failed to get object: {exc}") from exc

            body = response["Body"]
            try:
                with open(destination, "wb") as fh:
                    for chunk in body.iter_chunks(chunk_size=DOWNLOAD_CHUNK_BYTES):
                        fh.write(chunk)
                        written += len(chunk)
            except Exception as exc:
                # drop the partial file
                Path(destination).unlink(missing_ok=True)
                raise StorageError(
                    f"Failed to write object to {destination}: {exc}"
                ) from exc
            finally:
                body.close()
        return written

    def delete_objects(
        self, *, bucket: str, object_keys: Sequence[str]
    ) -> DeletedObjects:
        """Delete objects in batches of at most ``MAX_DELETE_BATCH`` keys."""
        deleted: list[str] = []
        errors: list[tuple[str, str]] = []
        for start in range(0, len(object_keys), MAX_DELETE_BATCH):
            batch = object_keys[start : start + MAX_DELETE_BATCH]
            with self._observe("delete_objects"):
                try:
                    response = self._client.delete_objects(
                        Bucket=bucket,
                        Delete={
                            "Objects": [{"Key": key} for key in batch],
                            "Quiet": False,
                        },
                    )
                except Exception as exc:
                    raise StorageError(f"Failed to delete objects: {exc}") from exc

            deleted.extend(str(item["Key"]) for item in response.get("Deleted") or [])
            errors.extend(
                (str(item.get("Key")), str(item.get("Message") or item.get("Code")))
                for item in response.get("Errors") or []
            )
        return DeletedObjects(deleted=tuple(deleted), errors=tuple(errors))
