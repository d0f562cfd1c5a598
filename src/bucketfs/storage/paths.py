"""Mapping of (bucket, key) pairs onto the store's directory tree.

Layout:
    {root}/{bucket}/                              # one directory per bucket
    {root}/{bucket}/{key segments}/               # nested key path
    {root}/{bucket}/{key}/.fakes3_metadataFFF/    # sentinel: key is an object
        content                                   # raw object bytes
        metadata                                  # YAML metadata record

The sentinel is the only signal that a directory is an object rather than an
intermediate segment of a longer key. Its name must stay constant so that
trees written by earlier versions remain readable.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from bucketfs.storage.errors import PathTraversalError

SENTINEL_DIR: Final[str] = ".fakes3_metadataFFF"
CONTENT_FILE: Final[str] = "content"
METADATA_FILE: Final[str] = "metadata"

# Hidden siblings of the sentinel used while publishing or retiring content.
STAGING_PREFIX: Final[str] = ".bucketfs_staging_"
RETIRED_PREFIX: Final[str] = ".bucketfs_retired_"

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


def _path_problem(value: str) -> str | None:
    """Return why a slash-separated name cannot be mapped onto the tree."""
    if not value:
        return "must not be empty"
    if "\x00" in value:
        return "must not contain NUL bytes"
    if "\\" in value:
        return "must not contain backslashes"
    if value.startswith("/") or value.startswith("~") or _DRIVE_LETTER.match(value):
        return "must be relative"
    for segment in value.split("/"):
        if not segment:
            return "must not contain empty segments"
        if segment.startswith("."):
            # Covers "." and ".." as well as anything shaped like the sentinel.
            return "segments must not start with '.'"
    return None


def validate_key(key: str, bucket: str | None = None) -> None:
    """Raise PathTraversalError if ``key`` is unsafe."""
    problem = _path_problem(key)
    if problem is not None:
        raise PathTraversalError(message=f"Invalid key: {problem}", bucket=bucket, key=key)


def _bucket_name_problem(name: str) -> str | None:
    problem = _path_problem(name)
    if problem is None and "/" in name:
        problem = "must not contain '/'"
    return problem


def is_valid_bucket_name(name: str) -> bool:
    return _bucket_name_problem(name) is None


def validate_bucket_name(name: str) -> None:
    """Raise PathTraversalError unless ``name`` is a single safe path segment."""
    problem = _bucket_name_problem(name)
    if problem is not None:
        raise PathTraversalError(message=f"Invalid bucket name: {problem}", bucket=name)


class PathCodec:
    """Computes backing directories and detects sentinels under a store root."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def bucket_folder(self, bucket: str) -> Path:
        validate_bucket_name(bucket)
        return self._root / bucket

    def location_for(self, bucket: str, key: str) -> Path:
        """Return the directory that represents ``key`` inside ``bucket``."""
        validate_key(key, bucket)
        return self.bucket_folder(bucket).joinpath(*key.split("/"))

    def sentinel_for(self, bucket: str, key: str) -> Path:
        return self.location_for(bucket, key) / SENTINEL_DIR

    @staticmethod
    def is_object_directory(path: Path) -> bool:
        """True iff the sentinel subdirectory exists directly beneath ``path``."""
        return (path / SENTINEL_DIR).is_dir()
