"""In-memory catalog of the buckets known to a store instance."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path

from bucketfs.storage.models import Bucket
from bucketfs.storage.paths import is_valid_bucket_name

logger = logging.getLogger(__name__)


class BucketIndex:
    """Insertion-ordered bucket list with a name-keyed lookup.

    Thread-safe for concurrent registration and removal within one process.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()

    @classmethod
    def discover(cls, root: Path) -> BucketIndex:
        """Build an index with one bucket per top-level directory under ``root``.

        Hidden directories and names that are not valid bucket names are
        skipped. Object caches start empty; creation dates come from the
        directory's ctime.
        """
        index = cls()
        if not root.is_dir():
            return index

        for entry in sorted(root.iterdir(), key=lambda p: p.name):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if not is_valid_bucket_name(entry.name):
                logger.warning("Skipping unusable bucket directory %s", entry.name)
                continue
            created = datetime.fromtimestamp(entry.stat().st_ctime, tz=UTC)
            index.register(Bucket(name=entry.name, creation_date=created))

        logger.debug("Discovered %d bucket(s) under %s", len(index), root)
        return index

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, name: object) -> bool:
        return name in self._buckets

    def all(self) -> list[Bucket]:
        """Return the registered buckets in registration order."""
        with self._lock:
            return list(self._buckets.values())

    def get(self, name: str) -> Bucket | None:
        return self._buckets.get(name)

    def register(self, bucket: Bucket) -> Bucket:
        """Register ``bucket`` unless its name is taken; return the registered one."""
        with self._lock:
            return self._buckets.setdefault(bucket.name, bucket)

    def unregister(self, name: str) -> Bucket | None:
        with self._lock:
            return self._buckets.pop(name, None)
