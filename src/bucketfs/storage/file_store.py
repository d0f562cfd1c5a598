"""bucketfs filesystem object store.

Emulates a flat bucket/key namespace on an ordinary directory tree:

    {root}/{bucket}/{key segments}/.fakes3_metadataFFF/
        content     # raw object bytes
        metadata    # YAML record: md5, content type, size, modified date

Writes are staged in a hidden sibling directory and published by renaming
it into the sentinel's place, so readers never see content without the
metadata that describes it, and an interrupted write leaves only a hidden
directory that listings ignore.

Environment Variables:
    BUCKETFS_ROOT: Root directory (default: tempfile.gettempdir() / bucketfs)
    BUCKETFS_RATE_LIMIT: Read ceiling for content streams (default: unlimited)
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import threading
import uuid
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from bucketfs.rate_limit.limiter import (
    DEFAULT_CHUNK_SIZE,
    RateLimitedReader,
    parse_rate_limit,
)
from bucketfs.storage.config import load_store_config
from bucketfs.storage.enumerator import ObjectEnumerator
from bucketfs.storage.errors import (
    BucketNotEmptyError,
    MetadataCorruptError,
    NoSuchBucketError,
    ObjectNotFoundError,
    ReadFailureError,
    WriteFailureError,
)
from bucketfs.storage.index import BucketIndex
from bucketfs.storage.metadata import MetadataCodec
from bucketfs.storage.models import DEFAULT_CONTENT_TYPE, Bucket, ObjectMetadata, StoredObject
from bucketfs.storage.object_store import Content, ObjectStore
from bucketfs.storage.paths import (
    CONTENT_FILE,
    METADATA_FILE,
    RETIRED_PREFIX,
    SENTINEL_DIR,
    STAGING_PREFIX,
    PathCodec,
    validate_bucket_name,
)
from bucketfs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=UTC)


def _as_bytes(chunk: object) -> bytes:
    if not isinstance(chunk, (bytes, bytearray, memoryview)):
        raise TypeError(
            f"Object content must be bytes-like, got {type(chunk).__name__}; "
            "open files in binary mode and encode text before storing it"
        )
    return bytes(chunk)


def _iter_chunks(content: Content) -> Iterator[bytes]:
    """Yield byte chunks from bytes, a binary file object, or an iterable.

    Raises:
        TypeError: If the content, or any chunk it produces, is not bytes-like.
    """
    if isinstance(content, (bytes, bytearray, memoryview)):
        yield bytes(content)
        return
    if isinstance(content, str):
        raise TypeError("Object content must be bytes-like, got str; encode it first")

    read = getattr(content, "read", None)
    if read is not None:
        while True:
            chunk = read(DEFAULT_CHUNK_SIZE)
            if not chunk:
                return
            yield _as_bytes(chunk)

    for chunk in content:
        yield _as_bytes(chunk)


class FileStore(ObjectStore):
    """Filesystem-backed bucket/key/value store.

    Buckets are discovered at construction from the top-level directories
    under the root. Each instance holds its own read rate limit; changing
    it affects streams opened afterwards only.

    Within one process, reads and sentinel swaps are serialized by a lock,
    so a reader always pairs content with its own metadata. Separate
    processes sharing a root are not coordinated.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        rate_limit: str | int | float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Store root. If None, uses BUCKETFS_ROOT or the OS temp directory.
            rate_limit: Read ceiling as a number or "10K"-style text. If None,
                uses BUCKETFS_RATE_LIMIT (unset means unlimited). Assign
                ``store.rate_limit = None`` to switch limiting off later.

        Raises:
            InvalidRateLimitError: If the rate limit is malformed.
            WriteFailureError: If the root directory cannot be created.
        """
        config = load_store_config(root=root, rate_limit=rate_limit)
        self._root = config.root.resolve()
        self._rate_limit = config.rate_limit
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailureError(message=f"Failed to create store root: {e}", cause=e) from e

        self._codec = PathCodec(self._root)
        self._enumerator = ObjectEnumerator(self._codec, self._load_metadata_only)
        self._index = BucketIndex.discover(self._root)
        self._swap_lock = threading.Lock()

        logger.debug(
            "FileStore initialized with root=%s buckets=%d rate_limit=%s",
            self._root,
            len(self._index),
            self._rate_limit,
        )

    @property
    def backend_name(self) -> str:
        return "filesystem"

    @property
    def root(self) -> Path:
        return self._root

    @property
    def rate_limit(self) -> int | None:
        """Read ceiling in bytes per second applied to newly opened streams."""
        return self._rate_limit

    @rate_limit.setter
    def rate_limit(self, value: str | int | float | None) -> None:
        self._rate_limit = parse_rate_limit(value)
        logger.debug("Rate limit set to %s", self._rate_limit)

    # ------------------------------------------------------------------ buckets

    def buckets(self) -> list[Bucket]:
        return self._index.all()

    def get_bucket(self, name: str) -> Bucket | None:
        return self._index.get(name)

    def _require_bucket(self, name: str) -> Bucket:
        bucket = self._index.get(name)
        if bucket is None:
            raise NoSuchBucketError(bucket=name)
        return bucket

    @traced_storage_operation("create_bucket", keyed=False)
    def create_bucket(self, name: str) -> Bucket:
        validate_bucket_name(name)
        folder = self._codec.bucket_folder(name)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            created = _timestamp(folder.stat().st_ctime)
        except OSError as e:
            raise WriteFailureError(
                message=f"Failed to create bucket directory: {e}", bucket=name, cause=e
            ) from e

        bucket = self._index.register(Bucket(name=name, creation_date=created))
        logger.debug("Created bucket %s", name)
        return bucket

    @traced_storage_operation("delete_bucket", keyed=False)
    def delete_bucket(self, name: str) -> None:
        self._require_bucket(name)

        # The filesystem is authoritative; the cached collection may be stale.
        if self._enumerator.has_objects(name):
            remaining = sum(1 for _ in self._enumerator.iter_keys(name))
            raise BucketNotEmptyError(bucket=name, object_count=remaining)

        try:
            shutil.rmtree(self._codec.bucket_folder(name))
        except FileNotFoundError:
            logger.warning("Bucket directory for %s already removed", name)
        except OSError as e:
            raise WriteFailureError(
                message=f"Failed to remove bucket directory: {e}", bucket=name, cause=e
            ) from e

        self._index.unregister(name)
        logger.debug("Deleted bucket %s", name)

    # ------------------------------------------------------------------ reads

    def _describe(self, key: str, sentinel: Path, metadata: ObjectMetadata) -> StoredObject:
        created = _timestamp(sentinel.stat().st_ctime)
        modified = metadata.modified_date
        if modified is None:
            modified = _timestamp((sentinel / CONTENT_FILE).stat().st_mtime)
        return StoredObject(
            name=key,
            md5=metadata.md5,
            content_type=metadata.content_type,
            size=metadata.size,
            creation_date=created,
            modified_date=modified,
        )

    def _load(self, bucket: str, key: str, *, open_stream: bool) -> StoredObject:
        """Assemble an object from its sentinel directory.

        Metadata is read and the content opened under the swap lock; an open
        file handle keeps pointing at the same content after later swaps.
        """
        sentinel = self._codec.sentinel_for(bucket, key)

        with self._swap_lock:
            if not sentinel.is_dir():
                raise ObjectNotFoundError(bucket=bucket, key=key)

            try:
                metadata = MetadataCodec.read(sentinel)
            except MetadataCorruptError as e:
                raise MetadataCorruptError(
                    message=e.message, bucket=bucket, key=key, cause=e.cause
                ) from e

            try:
                obj = self._describe(key, sentinel, metadata)
                if open_stream:
                    obj.stream = RateLimitedReader.open(sentinel / CONTENT_FILE, self._rate_limit)
            except ReadFailureError as e:
                raise ReadFailureError(
                    message=e.message, bucket=bucket, key=key, cause=e.cause
                ) from e
            except OSError as e:
                raise ReadFailureError(
                    message=f"Failed to read object: {e}", bucket=bucket, key=key, cause=e
                ) from e

        return obj

    def _load_metadata_only(self, bucket: str, key: str) -> StoredObject:
        return self._load(bucket, key, open_stream=False)

    @traced_storage_operation("get_object")
    def get_object(self, bucket: str, key: str) -> StoredObject:
        self._require_bucket(bucket)
        return self._load(bucket, key, open_stream=True)

    @traced_storage_operation("head_object")
    def head_object(self, bucket: str, key: str) -> StoredObject:
        self._require_bucket(bucket)
        return self._load(bucket, key, open_stream=False)

    @traced_storage_operation("list_objects", keyed=False)
    def list_objects(self, bucket: str) -> list[StoredObject]:
        bucket_obj = self._require_bucket(bucket)
        objects = self._enumerator.list_objects(bucket)
        bucket_obj.objects = list(objects)
        return objects

    # ------------------------------------------------------------------ writes

    def _new_staging_dir(self, obj_dir: Path, bucket: str, key: str) -> Path:
        staging = obj_dir / f"{STAGING_PREFIX}{uuid.uuid4().hex}"
        try:
            staging.mkdir(parents=True)
        except OSError as e:
            raise WriteFailureError(
                message=f"Failed to create object directory: {e}",
                bucket=bucket,
                key=key,
                cause=e,
            ) from e
        return staging

    def _discard(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove %s: %s", path.name, e)

    def _abandon(self, staging: Path, bucket: str) -> None:
        """Drop an unpublished staging directory and any parents it created."""
        self._discard(staging)
        self._prune_empty_parents(staging.parent, self._codec.bucket_folder(bucket))

    def _publish(self, staging: Path, obj_dir: Path) -> Path:
        """Swap a fully written staging directory into the sentinel's place."""
        sentinel = obj_dir / SENTINEL_DIR
        retired: Path | None = None

        with self._swap_lock:
            if sentinel.exists():
                retired = obj_dir / f"{RETIRED_PREFIX}{uuid.uuid4().hex}"
                sentinel.rename(retired)
            try:
                staging.rename(sentinel)
            except OSError:
                if retired is not None:
                    retired.rename(sentinel)
                raise

        if retired is not None:
            self._discard(retired)
        return sentinel

    @traced_storage_operation("store_object")
    def store_object(
        self,
        bucket: str,
        key: str,
        content: Content,
        content_type: str | None = None,
    ) -> StoredObject:
        bucket_obj = self._require_bucket(bucket)
        obj_dir = self._codec.location_for(bucket, key)
        staging = self._new_staging_dir(obj_dir, bucket, key)

        md5 = hashlib.md5()
        size = 0
        try:
            with open(staging / CONTENT_FILE, "wb") as f:
                for chunk in _iter_chunks(content):
                    f.write(chunk)
                    md5.update(chunk)
                    size += len(chunk)

            metadata = ObjectMetadata(
                md5=md5.hexdigest(),
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                size=size,
                modified_date=datetime.now(UTC).replace(microsecond=0),
            )
            MetadataCodec.write(staging, metadata)
            sentinel = self._publish(staging, obj_dir)
            obj = self._describe(key, sentinel, metadata)
        except OSError as e:
            self._abandon(staging, bucket)
            raise WriteFailureError(
                message=f"Failed to write object: {e}", bucket=bucket, key=key, cause=e
            ) from e
        except WriteFailureError as e:
            self._abandon(staging, bucket)
            raise WriteFailureError(
                message=e.message, bucket=bucket, key=key, cause=e.cause
            ) from e
        except Exception:
            self._abandon(staging, bucket)
            raise

        bucket_obj.add(obj)
        logger.debug(
            "Stored object: bucket=%s key=%s size=%d md5=%s", bucket, key, size, obj.md5
        )
        return obj

    def _prune_empty_parents(self, start: Path, stop: Path) -> None:
        current = start
        while current != stop and stop in current.parents:
            try:
                current.rmdir()
            except OSError:
                # Not empty: another key or an in-flight write still lives here.
                return
            current = current.parent

    @traced_storage_operation("delete_object")
    def delete_object(self, bucket: str, key: str) -> bool:
        bucket_obj = self._require_bucket(bucket)
        obj_dir = self._codec.location_for(bucket, key)
        sentinel = obj_dir / SENTINEL_DIR

        retired: Path | None = None
        try:
            with self._swap_lock:
                if sentinel.is_dir():
                    retired = obj_dir / f"{RETIRED_PREFIX}{uuid.uuid4().hex}"
                    sentinel.rename(retired)
            if retired is not None:
                shutil.rmtree(retired)
        except OSError as e:
            raise WriteFailureError(
                message=f"Failed to delete object: {e}", bucket=bucket, key=key, cause=e
            ) from e

        # Keys nested under this one keep their directories.
        self._prune_empty_parents(obj_dir, self._codec.bucket_folder(bucket))
        bucket_obj.remove(key)

        if retired is None:
            logger.debug("Delete of missing object ignored: bucket=%s key=%s", bucket, key)
            return False
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)
        return True

    @traced_storage_operation("copy_object")
    def copy_object(
        self,
        src_bucket: str,
        src_key: str,
        dst_bucket: str,
        dst_key: str,
    ) -> StoredObject:
        self._require_bucket(src_bucket)
        dst = self._require_bucket(dst_bucket)

        if src_bucket == dst_bucket and src_key == dst_key:
            return self._load(src_bucket, src_key, open_stream=False)

        src_sentinel = self._codec.sentinel_for(src_bucket, src_key)
        if not src_sentinel.is_dir():
            raise ObjectNotFoundError(bucket=src_bucket, key=src_key)

        dst_dir = self._codec.location_for(dst_bucket, dst_key)
        staging = self._new_staging_dir(dst_dir, dst_bucket, dst_key)

        try:
            # Holding the lock keeps the source from being swapped mid-copy.
            with self._swap_lock:
                if not src_sentinel.is_dir():
                    raise ObjectNotFoundError(bucket=src_bucket, key=src_key)
                shutil.copyfile(src_sentinel / CONTENT_FILE, staging / CONTENT_FILE)
                shutil.copyfile(src_sentinel / METADATA_FILE, staging / METADATA_FILE)
            self._publish(staging, dst_dir)
        except OSError as e:
            self._abandon(staging, dst_bucket)
            raise WriteFailureError(
                message=f"Failed to copy object: {e}", bucket=dst_bucket, key=dst_key, cause=e
            ) from e
        except Exception:
            self._abandon(staging, dst_bucket)
            raise

        obj = self._load(dst_bucket, dst_key, open_stream=False)
        dst.add(obj)
        logger.debug(
            "Copied object %s/%s -> %s/%s", src_bucket, src_key, dst_bucket, dst_key
        )
        return obj
