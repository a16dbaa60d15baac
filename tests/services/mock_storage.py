"""In-memory mock storage client for testing the object store façade."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from objstore.infra.storage.client import (
    DeletedObjects,
    ObjectACL,
    ObjectPage,
    ObjectSummary,
    StorageError,
    UploadReceipt,
)


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient for testing.

    Objects are stored per ``"bucket/key"``. Listing pages hold at most
    ``page_size`` keys in lexicographic order, like S3.
    """

    page_size: int = 1000
    objects: dict[str, bytes] = field(default_factory=dict)
    acls: dict[str, str | None] = field(default_factory=dict)
    fail_keys: set[str] = field(default_factory=set)
    undeletable_keys: set[str] = field(default_factory=set)
    list_error: Exception | None = None
    put_calls: int = 0
    get_calls: int = 0
    list_calls: int = 0
    delete_calls: list[list[str]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def seed(self, bucket: str, keys: Sequence[str], body: bytes = b"x") -> None:
        """Test helper to store objects without going through put_object."""
        for key in keys:
            self.objects[f"{bucket}/{key}"] = body

    def keys_in(self, bucket: str, prefix: str = "") -> list[str]:
        start = f"{bucket}/"
        return sorted(
            name[len(start) :]
            for name in self.objects
            if name.startswith(start) and name[len(start) :].startswith(prefix)
        )

    def list_objects(
        self,
        *,
        bucket: str,
        prefix: str,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ObjectPage:
        with self._lock:
            self.list_calls += 1
            if self.list_error is not None:
                raise self.list_error
            keys = self.keys_in(bucket, prefix)
        if continuation_token:
            keys = [key for key in keys if key > continuation_token]
        limit = min(max_keys or self.page_size, self.page_size)
        page, rest = keys[:limit], keys[limit:]
        return ObjectPage(
            bucket=bucket,
            prefix=prefix,
            objects=tuple(
                ObjectSummary(key=key, size_bytes=len(self.objects[f"{bucket}/{key}"]))
                for key in page
            ),
            is_truncated=bool(rest),
            next_continuation_token=page[-1] if rest else None,
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
        with self._lock:
            self.put_calls += 1
        if object_key in self.fail_keys:
            raise StorageError(f"Failed to upload object: AccessDenied for {object_key}")
        try:
            acl_value = ObjectACL(acl).value if acl else None
        except ValueError as exc:
            raise StorageError(f"Unsupported ACL: {acl}") from exc
        with self._lock:
            self.objects[f"{bucket}/{object_key}"] = bytes(body)
            self.acls[f"{bucket}/{object_key}"] = acl_value
        return UploadReceipt(bucket=bucket, key=object_key, etag=f'"etag-{object_key}"')

    def download_object(
        self, *, bucket: str, object_key: str, destination: Path
    ) -> int:
        with self._lock:
            self.get_calls += 1
        if object_key in self.fail_keys:
            raise StorageError(f"Failed to get object: NoSuchKey {object_key}")
        body = self.objects[f"{bucket}/{object_key}"]
        destination.write_bytes(body)
        return len(body)

    def delete_objects(
        self, *, bucket: str, object_keys: Sequence[str]
    ) -> DeletedObjects:
        self.delete_calls.append(list(object_keys))
        deleted: list[str] = []
        errors: list[tuple[str, str]] = []
        with self._lock:
            for key in object_keys:
                if key in self.undeletable_keys:
                    errors.append((key, "Access Denied"))
                    continue
                self.objects.pop(f"{bucket}/{key}", None)
                deleted.append(key)
        return DeletedObjects(deleted=tuple(deleted), errors=tuple(errors))
