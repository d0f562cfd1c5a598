"""bucketfs object storage error types.

Every failure the store can detect is raised as a typed exception. I/O and
parse errors are wrapped rather than swallowed so that the protocol layer in
front of the store decides what the client sees.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        bucket: Bucket name associated with the operation (if applicable).
        key: Object key associated with the operation (if applicable).
    """

    default_message = "Object storage error"

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class NoSuchBucketError(ObjectStorageError):
    """Raised when an operation names a bucket that is not registered."""

    default_message = "No such bucket"


class BucketNotEmptyError(ObjectStorageError):
    """Raised when deleting a bucket that still holds objects."""

    default_message = "Bucket not empty"

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        object_count: int = 0,
    ) -> None:
        super().__init__(message, bucket=bucket)
        self.object_count = object_count


class ObjectNotFoundError(ObjectStorageError):
    """Raised when no sentinel exists for the requested key."""

    default_message = "Object not found"


class PathTraversalError(ObjectStorageError):
    """Raised when a key or bucket name cannot be mapped safely onto the tree.

    Covers "../" segments, absolute paths, NUL bytes, backslashes and
    hidden segments that would collide with the reserved sentinel directory.
    """

    default_message = "Invalid key: path traversal detected"


class BackendFailureError(ObjectStorageError):
    """Base for failures of the filesystem itself; keeps the original error.

    Attributes:
        cause: The underlying OSError or parse error, if any.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)
        self.cause = cause


class MetadataCorruptError(BackendFailureError):
    """Raised when an object's metadata side-file is missing or unparseable.

    A sentinel without readable metadata means the object cannot be
    described, so it is reported instead of being silently defaulted.
    """

    default_message = "Object metadata is corrupt"


class ReadFailureError(BackendFailureError):
    """Raised when the filesystem fails while reading object content."""

    default_message = "Failed to read object"


class WriteFailureError(BackendFailureError):
    """Raised when the filesystem fails while writing or removing data.

    This indicates the backend itself failed (disk full, permission denied,
    I/O error) rather than a logical error like a missing bucket.
    """

    default_message = "Failed to write object"
