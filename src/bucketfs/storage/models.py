"""bucketfs object storage data models.

Provides typed dataclasses for buckets, stored objects and the per-object
metadata record persisted beside each object's content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bucketfs.rate_limit.limiter import RateLimitedReader

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata record stored alongside an object's content.

    Attributes:
        md5: Hex MD5 digest of the content.
        content_type: MIME type declared when the object was stored.
        size: Size of the content in bytes.
        modified_date: When the content was last written, if recorded.
    """

    md5: str
    content_type: str = DEFAULT_CONTENT_TYPE
    size: int = 0
    modified_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to a plain dictionary."""
        return {
            "md5": self.md5,
            "content_type": self.content_type,
            "size": self.size,
            "modified_date": self.modified_date.isoformat() if self.modified_date else None,
        }


@dataclass
class StoredObject:
    """A stored object as seen by callers of the store.

    ``stream`` is only populated by ``FileStore.get_object``; listings and
    metadata lookups leave it unset so that no file handles are opened.
    It is excluded from equality so that two descriptions of the same
    stored content compare equal.
    """

    name: str
    md5: str
    content_type: str
    size: int
    creation_date: datetime
    modified_date: datetime
    stream: RateLimitedReader | None = field(default=None, compare=False, repr=False)

    def read(self) -> bytes:
        """Drain the content stream and close it."""
        if self.stream is None:
            raise ValueError(f"Object {self.name!r} was loaded without a content stream")
        with self.stream as stream:
            return stream.read()


@dataclass
class Bucket:
    """A bucket and its cached collection of objects.

    The object list is a cache kept in insertion order; the filesystem
    remains the source of truth.
    """

    name: str
    creation_date: datetime
    objects: list[StoredObject] = field(default_factory=list)

    def find(self, name: str) -> StoredObject | None:
        for obj in self.objects:
            if obj.name == name:
                return obj
        return None

    def add(self, obj: StoredObject) -> None:
        """Register an object, replacing any cached entry with the same key."""
        self.remove(obj.name)
        self.objects.append(obj)

    def remove(self, name: str) -> bool:
        before = len(self.objects)
        self.objects = [o for o in self.objects if o.name != name]
        return len(self.objects) != before
