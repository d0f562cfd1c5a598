"""Reconstruction of a bucket's flat object list from its directory tree."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

from bucketfs.storage.errors import ReadFailureError
from bucketfs.storage.models import StoredObject
from bucketfs.storage.paths import PathCodec

logger = logging.getLogger(__name__)

ObjectLoader = Callable[[str, str], StoredObject]


def sort_key(name: str) -> bytes:
    """Byte-lexicographic ordering used for every caller-facing listing."""
    return name.encode("utf-8", "surrogateescape")


class ObjectEnumerator:
    """Walks a bucket folder and reports every directory holding a sentinel.

    A directory with a sentinel directly beneath it is one object whose key
    is its path relative to the bucket folder. Directories without one are
    only path segments of longer keys. Hidden entries, including the
    sentinel itself and staging directories, are never descended into, so
    with both ``a`` and ``a/b`` stored each is reported exactly once.
    Nothing is cached: each call walks the tree again.
    """

    def __init__(self, codec: PathCodec, loader: ObjectLoader) -> None:
        self._codec = codec
        self._loader = loader

    def iter_keys(self, bucket: str) -> Iterator[str]:
        """Yield the key of every object in ``bucket`` in traversal order."""
        root = self._codec.bucket_folder(bucket)
        yield from self._walk(root, "")

    def _walk(self, current: Path, prefix: str) -> Iterator[str]:
        try:
            entries = list(current.iterdir())
        except FileNotFoundError:
            # Removed while we were walking.
            return
        except OSError as e:
            raise ReadFailureError(message=f"Failed to list directory: {e}", cause=e) from e

        for entry in entries:
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            key = f"{prefix}/{entry.name}" if prefix else entry.name
            if self._codec.is_object_directory(entry):
                yield key
            # The object's own files live in the hidden sentinel, so any
            # visible child is another key.
            yield from self._walk(entry, key)

    def has_objects(self, bucket: str) -> bool:
        """True if at least one object exists, stopping at the first one found."""
        return next(self.iter_keys(bucket), None) is not None

    def list_objects(self, bucket: str) -> list[StoredObject]:
        """Return the objects in ``bucket`` sorted by key, without duplicates."""
        found: dict[str, StoredObject] = {}
        for key in self.iter_keys(bucket):
            if key in found:
                logger.warning("Object %s/%s discovered twice; ignoring repeat", bucket, key)
                continue
            found[key] = self._loader(bucket, key)
        return [found[key] for key in sorted(found, key=sort_key)]
