"""bucketfs object store interface definition.

Provides the ObjectStore interface consumed by protocol front-ends that
translate remote-storage requests into store calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import BinaryIO

from bucketfs.storage.models import Bucket, StoredObject

Content = bytes | BinaryIO | Iterable[bytes]


class ObjectStore(ABC):
    """Abstract base class for bucket/key/value stores.

    Implementations:
    - FileStore: Local filesystem tree
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    @abstractmethod
    def buckets(self) -> list[Bucket]:
        """Return every registered bucket in registration order."""
        ...

    @abstractmethod
    def get_bucket(self, name: str) -> Bucket | None:
        """Return the bucket called ``name``, or None if it is not registered."""
        ...

    @abstractmethod
    def create_bucket(self, name: str) -> Bucket:
        """Create a bucket. Creating an existing bucket returns it unchanged.

        Raises:
            PathTraversalError: If the name is not a single safe path segment.
            WriteFailureError: If the backing directory cannot be created.
        """
        ...

    @abstractmethod
    def delete_bucket(self, name: str) -> None:
        """Delete an empty bucket.

        Raises:
            NoSuchBucketError: If the bucket is not registered.
            BucketNotEmptyError: If the bucket still holds objects.
            WriteFailureError: If the backing directory cannot be removed.
        """
        ...

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object with an open, rate-limited content stream.

        The caller owns the stream and must close it.

        Raises:
            NoSuchBucketError: If the bucket is not registered.
            ObjectNotFoundError: If no object is stored under ``key``.
            MetadataCorruptError: If the metadata side-file is missing or unparseable.
            ReadFailureError: If the content cannot be opened.
            PathTraversalError: If the key is unsafe.
        """
        ...

    @abstractmethod
    def head_object(self, bucket: str, key: str) -> StoredObject:
        """Describe an object without opening its content.

        Raises the same errors as ``get_object``.
        """
        ...

    @abstractmethod
    def store_object(
        self,
        bucket: str,
        key: str,
        content: Content,
        content_type: str | None = None,
    ) -> StoredObject:
        """Store (or fully replace) an object.

        Args:
            bucket: Name of a registered bucket.
            key: Object key; slashes produce nested directories.
            content: Bytes, a binary file object, or an iterable of byte chunks.
            content_type: Declared MIME type (default application/octet-stream).

        Raises:
            NoSuchBucketError: If the bucket is not registered.
            PathTraversalError: If the key is unsafe.
            WriteFailureError: If the backend cannot complete the write.
            TypeError: If the content is not bytes-like.
        """
        ...

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> bool:
        """Delete an object. Deleting a missing key is a no-op.

        Returns:
            True if an object was removed.

        Raises:
            NoSuchBucketError: If the bucket is not registered.
            PathTraversalError: If the key is unsafe.
            WriteFailureError: If the backend cannot remove the object.
        """
        ...

    @abstractmethod
    def copy_object(
        self,
        src_bucket: str,
        src_key: str,
        dst_bucket: str,
        dst_key: str,
    ) -> StoredObject:
        """Copy an object. Copying an object onto itself performs no writes.

        Raises:
            NoSuchBucketError: If either bucket is not registered.
            ObjectNotFoundError: If the source object does not exist.
            WriteFailureError: If the destination cannot be written.
        """
        ...

    @abstractmethod
    def list_objects(self, bucket: str) -> list[StoredObject]:
        """List a bucket's objects sorted byte-lexicographically by key.

        Raises:
            NoSuchBucketError: If the bucket is not registered.
        """
        ...
