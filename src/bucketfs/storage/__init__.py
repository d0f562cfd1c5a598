"""bucketfs object storage.

Emulates a flat bucket/key/value store on a local directory tree, with
MD5 content checksums, YAML metadata side-files and rate-limited reads.

Backends:
- FileStore (bucketfs.storage.file_store): local filesystem

Environment Variables:
    BUCKETFS_ROOT: Store root directory (default: OS temp dir / bucketfs)
    BUCKETFS_RATE_LIMIT: Read ceiling for content streams (default: unlimited)
"""

from bucketfs.storage.errors import (
    BackendFailureError,
    BucketNotEmptyError,
    MetadataCorruptError,
    NoSuchBucketError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    ReadFailureError,
    WriteFailureError,
)
from bucketfs.storage.models import Bucket, ObjectMetadata, StoredObject
from bucketfs.storage.object_store import ObjectStore

__all__ = [
    "BackendFailureError",
    "Bucket",
    "BucketNotEmptyError",
    "MetadataCorruptError",
    "NoSuchBucketError",
    "ObjectMetadata",
    "ObjectNotFoundError",
    "ObjectStorageError",
    "ObjectStore",
    "PathTraversalError",
    "ReadFailureError",
    "StoredObject",
    "WriteFailureError",
]
