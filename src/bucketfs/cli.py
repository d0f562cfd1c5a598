"""bucketfs CLI - inspect and edit a store directory from the command line.

Usage:
    python -m bucketfs buckets
    python -m bucketfs mb <bucket>
    python -m bucketfs rb <bucket>
    python -m bucketfs ls <bucket>
    python -m bucketfs put <bucket> <key> <file> [--content-type TYPE]
    python -m bucketfs get <bucket> <key> [--out FILE]
    python -m bucketfs rm <bucket> <key>
    python -m bucketfs cp <src-bucket> <src-key> <dst-bucket> <dst-key>

Global options (before the command):
    --root DIR          Store root (default: BUCKETFS_ROOT or OS temp dir)
    --rate-limit RATE   Read ceiling for get, e.g. 1000, 10K, 1.1M
    --log-level LEVEL   Logging level (default: WARNING)

Exit codes:
    0: Success
    1: Internal error (unexpected)
    2: Store error (no such bucket, object not found, invalid input, ...)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from bucketfs.observability.tracing import configure_tracing
from bucketfs.rate_limit.limiter import InvalidRateLimitError
from bucketfs.storage.errors import ObjectStorageError, ReadFailureError
from bucketfs.storage.file_store import FileStore
from bucketfs.storage.models import Bucket, StoredObject


def _iso(value: datetime) -> str:
    return value.isoformat()


def _object_to_dict(obj: StoredObject) -> dict[str, Any]:
    return {
        "content_type": obj.content_type,
        "creation_date": _iso(obj.creation_date),
        "key": obj.name,
        "md5": obj.md5,
        "modified_date": _iso(obj.modified_date),
        "size": obj.size,
    }


def _bucket_to_dict(bucket: Bucket) -> dict[str, Any]:
    return {"creation_date": _iso(bucket.creation_date), "name": bucket.name}


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def cmd_buckets(store: FileStore, args: argparse.Namespace) -> int:
    _output_json({"buckets": [_bucket_to_dict(b) for b in store.buckets()]})
    return 0


def cmd_make_bucket(store: FileStore, args: argparse.Namespace) -> int:
    _output_json({"bucket": _bucket_to_dict(store.create_bucket(args.bucket))})
    return 0


def cmd_remove_bucket(store: FileStore, args: argparse.Namespace) -> int:
    store.delete_bucket(args.bucket)
    _output_json({"deleted": args.bucket})
    return 0


def cmd_list(store: FileStore, args: argparse.Namespace) -> int:
    objects = store.list_objects(args.bucket)
    _output_json({"bucket": args.bucket, "objects": [_object_to_dict(o) for o in objects]})
    return 0


def cmd_put(store: FileStore, args: argparse.Namespace) -> int:
    with open(args.file, "rb") as f:
        obj = store.store_object(args.bucket, args.key, f, args.content_type)
    _output_json({"object": _object_to_dict(obj)})
    return 0


def cmd_get(store: FileStore, args: argparse.Namespace) -> int:
    obj = store.get_object(args.bucket, args.key)
    if obj.stream is None:
        raise ReadFailureError(
            message="No content stream opened", bucket=args.bucket, key=args.key
        )
    with obj.stream as stream:
        if args.out:
            with open(args.out, "wb") as f:
                for chunk in stream:
                    f.write(chunk)
            _output_json({"object": _object_to_dict(obj), "written_to": args.out})
        else:
            for chunk in stream:
                sys.stdout.buffer.write(chunk)
            sys.stdout.buffer.flush()
    return 0


def cmd_remove(store: FileStore, args: argparse.Namespace) -> int:
    removed = store.delete_object(args.bucket, args.key)
    _output_json({"bucket": args.bucket, "key": args.key, "removed": removed})
    return 0


def cmd_copy(store: FileStore, args: argparse.Namespace) -> int:
    obj = store.copy_object(args.src_bucket, args.src_key, args.dst_bucket, args.dst_key)
    _output_json({"bucket": args.dst_bucket, "object": _object_to_dict(obj)})
    return 0


COMMAND_DISPATCH = {
    "buckets": cmd_buckets,
    "mb": cmd_make_bucket,
    "rb": cmd_remove_bucket,
    "ls": cmd_list,
    "put": cmd_put,
    "get": cmd_get,
    "rm": cmd_remove,
    "cp": cmd_copy,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bucketfs",
        description="bucketfs - file-backed bucket/key/value store",
    )
    parser.add_argument("--root", metavar="DIR", default=None, help="Store root directory")
    parser.add_argument(
        "--rate-limit",
        metavar="RATE",
        default=None,
        help="Read ceiling in bytes/second (e.g. 1000, 10K, 1.1M, 1G)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("buckets", help="List buckets")

    for name, description in [
        ("mb", "Create a bucket"),
        ("rb", "Delete an empty bucket"),
        ("ls", "List a bucket's objects"),
    ]:
        bucket_parser = subparsers.add_parser(name, help=description)
        bucket_parser.add_argument("bucket")

    put_parser = subparsers.add_parser("put", help="Store a file as an object")
    put_parser.add_argument("bucket")
    put_parser.add_argument("key")
    put_parser.add_argument("file", metavar="FILE")
    put_parser.add_argument("--content-type", default=None, help="Declared MIME type")

    get_parser = subparsers.add_parser("get", help="Write an object's content")
    get_parser.add_argument("bucket")
    get_parser.add_argument("key")
    get_parser.add_argument(
        "--out", metavar="FILE", default=None, help="Destination file (stdout if omitted)"
    )

    rm_parser = subparsers.add_parser("rm", help="Delete an object")
    rm_parser.add_argument("bucket")
    rm_parser.add_argument("key")

    cp_parser = subparsers.add_parser("cp", help="Copy an object")
    cp_parser.add_argument("src_bucket")
    cp_parser.add_argument("src_key")
    cp_parser.add_argument("dst_bucket")
    cp_parser.add_argument("dst_key")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error (unexpected)
        2: Store error or invalid input
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    configure_tracing()

    try:
        store = FileStore(root=Path(args.root) if args.root else None, rate_limit=args.rate_limit)
        return COMMAND_DISPATCH[args.command](store, args)
    except (ObjectStorageError, InvalidRateLimitError, OSError) as e:
        _output_json({"error": type(e).__name__, "message": str(e)})
        return 2
    except Exception as e:
        # Fail-closed: unexpected errors return exit code 1
        _output_json({"error": "INTERNAL_ERROR", "message": str(e)})
        return 1
