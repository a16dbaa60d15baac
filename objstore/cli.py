"""Command line access to an S3-compatible bucket.

Usage:
  objstore ls isky wm/test
  objstore put staging ./data/clip.mp4 upload/today/movie.mp4 --acl public-read
  objstore put-dir isky ./dist wm/test --pattern "*.png"
  objstore get isky ./out wm/test
  objstore rm isky wm/test

Credentials come from S3_ACCESS_KEY_ID / S3_SECRET_ACCESS_KEY / S3_REGION
(environment or .env).
"""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from objstore.common.config import get_settings
from objstore.common.logging import setup_logging
from objstore.infra.storage.client import ObjectACL, StorageError
from objstore.services.object_store import ObjectStoreClient, TransferOutcome

logger = logging.getLogger("objstore.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="objstore", description="List, upload, download and delete objects"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Concurrent transfers for put-dir/get (default: TRANSFER_MAX_WORKERS)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("ls", help="List one page of keys under a prefix")
    ls.add_argument("bucket")
    ls.add_argument("prefix", nargs="?", default="")

    put = sub.add_parser("put", help="Upload a single file")
    put.add_argument("bucket")
    put.add_argument("path")
    put.add_argument("key")
    put.add_argument("--acl", choices=[acl.value for acl in ObjectACL], default=None)

    put_dir = sub.add_parser("put-dir", help="Upload the files of a folder")
    put_dir.add_argument("bucket")
    put_dir.add_argument("folder")
    put_dir.add_argument("prefix")
    put_dir.add_argument("--pattern", default=None, help="Filename glob, e.g. *.png")
    put_dir.add_argument(
        "--acl", choices=[acl.value for acl in ObjectACL], default=None
    )

    get = sub.add_parser("get", help="Download one page of objects under a prefix")
    get.add_argument("bucket")
    get.add_argument("output_dir")
    get.add_argument("prefix")

    rm = sub.add_parser("rm", help="Delete every object under a prefix")
    rm.add_argument("bucket")
    rm.add_argument("prefix")
    return parser


def _batch_status(outcomes: list[TransferOutcome]) -> int:
    if not outcomes:
        return 1
    return 0 if all(outcome.ok for outcome in outcomes) else 1


def run(args: argparse.Namespace, client: ObjectStoreClient) -> int:
    if args.command == "ls":
        result = client.list_objects(args.bucket, args.prefix)
        if not result.ok or result.data is None:
            logger.error("ls failed: %s", result.error)
            return 1
        for key in result.data.keys:
            print(key)
        if result.data.is_truncated:
            logger.info("More objects exist beyond this page.")
        return 0

    if args.command == "put":
        result = client.upload_file(args.bucket, args.path, args.key, args.acl)
        if not result.ok:
            logger.error("put failed: %s", result.error)
            return 1
        print(f"Uploaded {args.path} to s3://{args.bucket}/{args.key}")
        return 0

    if args.command == "put-dir":
        outcomes = client.upload_folder(
            args.bucket, args.folder, args.prefix, pattern=args.pattern, acl=args.acl
        )
        return _batch_status(outcomes)

    if args.command == "get":
        listing = client.list_objects(args.bucket, args.prefix)
        if not listing.ok:
            logger.error("get failed: %s", listing.error)
            return 1
        outcomes = client.download_objects(args.bucket, args.output_dir, args.prefix)
        return 0 if all(outcome.ok for outcome in outcomes) else 1

    if args.command == "rm":
        result = client.delete_by_prefix(args.bucket, args.prefix)
        if not result.ok or result.data is None:
            logger.error("rm failed: %s", result.error)
            return 1
        print(f"Deleted {result.data.deleted_count} objects")
        return 1 if result.data.errors else 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    try:
        client = ObjectStoreClient(settings=settings, max_workers=args.workers)
    except (StorageError, ValueError) as exc:
        logger.error("Storage client not configured: %s", exc)
        return 2
    return run(args, client)


if __name__ == "__main__":
    raise SystemExit(main())
