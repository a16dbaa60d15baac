"""Object store façade.

``ObjectStoreClient`` gives a uniform request/result surface over a
``StorageClient`` backend: single round-trip calls return an
``OperationResult`` instead of raising, and batch transfers run on a bounded
thread pool and return one ``TransferOutcome`` per item.
"""

from __future__ import annotations

import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from fnmatch import fnmatch
from os import PathLike
from pathlib import Path
from typing import Callable, Sequence

from objstore.common.config import Settings, get_settings
from objstore.infra.storage.client import (
    ClientConfig,
    FolderUploadRefused,
    LocalFileNotFoundError,
    ObjectACL,
    ObjectPage,
    OperationResult,
    StorageClient,
    StorageError,
    UploadReceipt,
)
from objstore.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("objstore.storage")

StrPath = str | PathLike[str]


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    """Outcome of one item of a batch upload or download."""

    key: str
    local_path: Path
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class DeleteSummary:
    """Totals for a delete-by-prefix run."""

    deleted_count: int = 0
    pages: int = 0
    errors: tuple[tuple[str, str], ...] = ()


CompletionCallback = Callable[[TransferOutcome], None]


def _join_key(prefix: str, name: str) -> str:
    prefix = prefix.rstrip("/")
    return f"{prefix}/{name}" if prefix else name


class ObjectStoreClient:
    """List, upload, download and delete objects in a bucket.

    The client holds no mutable state besides its backend handle, so one
    instance can be shared across threads.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        storage_client: StorageClient | None = None,
        settings: Settings | None = None,
        max_workers: int | None = None,
        upload_folder_max_files: int | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._max_workers = (
            self._settings.TRANSFER_MAX_WORKERS if max_workers is None else max_workers
        )
        self._max_folder_files = (
            self._settings.UPLOAD_FOLDER_MAX_FILES
            if upload_folder_max_files is None
            else upload_folder_max_files
        )
        if self._max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if self._max_folder_files <= 0:
            raise ValueError("upload_folder_max_files must be positive")
        self._storage = storage_client or self._build_storage_client(
            config, self._settings, self._max_workers
        )

    @staticmethod
    def _build_storage_client(
        config: ClientConfig | None, settings: Settings, max_workers: int
    ) -> StorageClient:
        """Build the S3 backend from an explicit config or from settings."""
        return S3StorageClient(
            config=config or ClientConfig.from_settings(settings),
            max_pool_connections=max(10, max_workers),
            record_metrics=settings.ENABLE_METRICS,
        )

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def upload_folder_max_files(self) -> int:
        return self._max_folder_files

    def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        *,
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> OperationResult[ObjectPage]:
        """List one page of objects whose key starts with ``prefix``.

        Does not paginate; follow ``next_continuation_token`` for more.
        """
        try:
            page = self._storage.list_objects(
                bucket=bucket,
                prefix=prefix,
                continuation_token=continuation_token,
                max_keys=max_keys,
            )
        except StorageError as exc:
            logger.error(
                "Could not list objects. [event=list_objects_failed] "
                "(bucket=%s, prefix=%s, error=%s)",
                bucket,
                prefix,
                exc,
                extra={"extra": {"bucket": bucket, "prefix": prefix}},
            )
            return OperationResult.failure(exc)

        for key in page.keys:
            logger.debug("object key=%s", key)
        return OperationResult.success(page)

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        acl: ObjectACL | str | None = None,
        *,
        content_type: str | None = None,
    ) -> OperationResult[UploadReceipt]:
        """Upload an in-memory payload in a single request."""
        try:
            receipt = self._storage.put_object(
                bucket=bucket,
                object_key=key,
                body=body,
                acl=acl,
                content_type=content_type,
            )
        except StorageError as exc:
            logger.error(
                "Could not upload object. [event=put_object_failed] "
                "(bucket=%s, key=%s, error=%s)",
                bucket,
                key,
                exc,
                extra={"extra": {"bucket": bucket, "key": key}},
            )
            return OperationResult.failure(exc)
        return OperationResult.success(receipt)

    def upload_file(
        self,
        bucket: str,
        local_path: StrPath,
        key: str,
        acl: ObjectACL | str | None = None,
        *,
        content_type: str | None = None,
    ) -> OperationResult[UploadReceipt]:
        """Read a local file into memory and upload it in one request.

        Fails with ``LocalFileNotFoundError`` and makes no remote call when
        ``local_path`` is not an existing regular file.
        """
        path = Path(local_path)
        if not path.is_file():
            error = LocalFileNotFoundError(f"Local file not found: {path}")
            logger.error(
                "Upload skipped, source file missing. [event=upload_source_missing] "
                "(path=%s)",
                path,
                extra={"extra": {"path": str(path), "key": key}},
            )
            return OperationResult.failure(error)

        try:
            body = path.read_bytes()
        except OSError as exc:
            logger.error(
                "Could not read upload source. [event=upload_read_failed] "
                "(path=%s, error=%s)",
                path,
                exc,
            )
            return OperationResult.failure(exc)

        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0]
        return self.put_object(bucket, key, body, acl, content_type=content_type)

    def download_object(
        self, bucket: str, key: str, destination: StrPath
    ) -> OperationResult[Path]:
        """Stream one object to ``destination``, creating parent directories."""
        target = Path(destination)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._storage.download_object(
                bucket=bucket, object_key=key, destination=target
            )
        except (StorageError, OSError) as exc:
            logger.error(
                "Could not download object. [event=download_object_failed] "
                "(bucket=%s, key=%s, error=%s)",
                bucket,
                key,
                exc,
                extra={"extra": {"bucket": bucket, "key": key}},
            )
            return OperationResult.failure(exc)
        return OperationResult.success(target)

    def delete_by_prefix(
        self, bucket: str, prefix: str
    ) -> OperationResult[DeleteSummary]:
        """Delete every object under ``prefix``, one listing page at a time.

        The loop follows continuation tokens, so a key that could not be
        deleted is sent and reported once. Stops once a listing is not
        truncated.
        """
        deleted_count = 0
        pages = 0
        errors: list[tuple[str, str]] = []
        failed: set[str] = set()
        token: str | None = None

        while True:
            try:
                page = self._storage.list_objects(
                    bucket=bucket, prefix=prefix, continuation_token=token
                )
            except StorageError as exc:
                logger.error(
                    "Could not list objects for deletion. [event=delete_list_failed] "
                    "(bucket=%s, prefix=%s, deleted=%d, error=%s)",
                    bucket,
                    prefix,
                    deleted_count,
                    exc,
                )
                return OperationResult.failure(exc)

            keys = [key for key in page.keys if key not in failed]
            if not keys:
                if not page.is_truncated or not page.next_continuation_token:
                    break
                token = page.next_continuation_token
                continue
            for key in keys:
                logger.debug("Going to delete key=%s", key)

            try:
                result = self._storage.delete_objects(bucket=bucket, object_keys=keys)
            except StorageError as exc:
                logger.error(
                    "Batch delete failed. [event=delete_batch_failed] "
                    "(bucket=%s, prefix=%s, deleted=%d, error=%s)",
                    bucket,
                    prefix,
                    deleted_count,
                    exc,
                )
                return OperationResult.failure(exc)

            pages += 1
            deleted_count += len(result.deleted)
            for key, message in result.errors:
                if key in failed:
                    continue
                failed.add(key)
                errors.append((key, message))
                logger.error(
                    "Could NOT delete %s, error: %s [event=delete_object_failed]",
                    key,
                    message,
                )

            if not page.is_truncated or not page.next_continuation_token:
                break
            token = page.next_continuation_token
            logger.info(
                "Deleting remaining objects. [event=delete_next_page] "
                "(prefix=%s, deleted=%d)",
                prefix,
                deleted_count,
            )

        logger.info(
            "Deleted %d objects under prefix %s in %d pages.",
            deleted_count,
            prefix,
            pages,
            extra={
                "extra": {
                    "bucket": bucket,
                    "prefix": prefix,
                    "deleted": deleted_count,
                    "pages": pages,
                }
            },
        )
        return OperationResult.success(
            DeleteSummary(deleted_count=deleted_count, pages=pages, errors=tuple(errors))
        )

    def _collect_folder_files(self, folder: Path, pattern: str | None) -> list[Path]:
        if not folder.is_dir():
            raise FolderUploadRefused(
                f"Aborted. Folder '{folder}' is empty or does not exist."
            )
        # The ceiling applies to every direct file, before the pattern filter
        entries = sorted(entry for entry in folder.iterdir() if entry.is_file())
        if len(entries) > self._max_folder_files:
            raise FolderUploadRefused(
                f"Aborted. Folder '{folder}' holds {len(entries)} files, more than "
                f"{self._max_folder_files}; signed requests of a batch this large "
                "may fall outside the allowed clock skew."
            )
        files = [
            entry for entry in entries if pattern is None or fnmatch(entry.name, pattern)
        ]
        if not files:
            raise FolderUploadRefused(
                f"Aborted. Folder '{folder}' is empty or does not exist."
            )
        return files

    def upload_folder(
        self,
        bucket: str,
        local_folder: StrPath,
        remote_prefix: str,
        *,
        pattern: str | None = None,
        acl: ObjectACL | str | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> list[TransferOutcome]:
        """Upload the direct files of ``local_folder`` under ``remote_prefix``.

        Subdirectories are skipped. Nothing is uploaded when the folder is
        missing, empty, or holds more files than ``upload_folder_max_files``.
        ``on_complete`` fires once per file, in completion order.
        """
        folder = Path(local_folder)
        try:
            files = self._collect_folder_files(folder, pattern)
        except FolderUploadRefused as exc:
            logger.error(
                "%s [event=upload_folder_refused]",
                exc,
                extra={"extra": {"folder": str(folder), "bucket": bucket}},
            )
            return []

        def upload_one(path: Path, key: str) -> TransferOutcome:
            result = self.upload_file(bucket, path, key, acl)
            return TransferOutcome(key=key, local_path=path, error=result.error)

        tasks = [(path, _join_key(remote_prefix, path.name)) for path in files]
        return self._run_batch("Uploaded", tasks, upload_one, on_complete)

    def download_objects(
        self,
        bucket: str,
        output_dir: StrPath,
        prefix: str,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> list[TransferOutcome]:
        """Download one listing page under ``prefix`` into ``output_dir``.

        Each object lands at ``output_dir / key``; the key's slashes become
        subdirectories. Directory marker keys (ending in ``/``) are skipped.
        """
        listing = self.list_objects(bucket, prefix)
        if not listing.ok or listing.data is None:
            return []

        root = Path(output_dir)
        tasks = [(root / key, key) for key in listing.data.keys if not key.endswith("/")]
        if not tasks:
            logger.info(
                "No objects to download. [event=download_nothing] (prefix=%s)", prefix
            )
            return []
        if listing.data.is_truncated:
            logger.warning(
                "Listing truncated, only the first page is downloaded. "
                "[event=download_truncated] (prefix=%s, count=%d)",
                prefix,
                len(tasks),
            )

        resolved_root = root.resolve()

        def download_one(target: Path, key: str) -> TransferOutcome:
            if not target.resolve().is_relative_to(resolved_root):
                error = StorageError(f"Object key '{key}' escapes output directory")
                return TransferOutcome(key=key, local_path=target, error=error)
            logger.debug("Going to download key=%s", key)
            result = self.download_object(bucket, key, target)
            return TransferOutcome(key=key, local_path=target, error=result.error)

        return self._run_batch("Downloaded", tasks, download_one, on_complete)

    def _run_batch(
        self,
        verb: str,
        tasks: Sequence[tuple[Path, str]],
        worker: Callable[[Path, str], TransferOutcome],
        on_complete: CompletionCallback | None,
    ) -> list[TransferOutcome]:
        total = len(tasks)
        outcomes: list[TransferOutcome] = []
        workers = min(self._max_workers, total)
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="objstore"
        ) as pool:
            futures = [pool.submit(worker, path, key) for path, key in tasks]
            for progress, future in enumerate(as_completed(futures), start=1):
                outcome = future.result()
                outcomes.append(outcome)
                if outcome.ok:
                    logger.info("[%d/%d] %s %s", progress, total, verb, outcome.key)
                else:
                    logger.error(
                        "[%d/%d] Could NOT transfer %s, error: %s",
                        progress,
                        total,
                        outcome.key,
                        outcome.error,
                    )
                if on_complete is not None:
                    try:
                        on_complete(outcome)
                    except Exception:
                        logger.exception(
                            "Completion callback raised. "
                            "[event=completion_callback_failed] (key=%s)",
                            outcome.key,
                        )

        failed = [outcome.key for outcome in outcomes if not outcome.ok]
        if failed:
            logger.error(
                "Failed keys: %s [event=batch_partial_failure]",
                ", ".join(failed),
                extra={"extra": {"failed": len(failed), "total": total}},
            )
        else:
            logger.info("%s %d files successfully!", verb, total)
        return outcomes
