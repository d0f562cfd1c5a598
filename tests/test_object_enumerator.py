"""Tests for rebuilding a bucket's object list from its directory tree."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from bucketfs.storage.enumerator import ObjectEnumerator, sort_key
from bucketfs.storage.models import StoredObject
from bucketfs.storage.paths import SENTINEL_DIR, PathCodec

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def _fake_loader(bucket: str, key: str) -> StoredObject:
    return StoredObject(
        name=key,
        md5="0" * 32,
        content_type="application/octet-stream",
        size=0,
        creation_date=EPOCH,
        modified_date=EPOCH,
    )


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    (tmp_path / "bucket").mkdir()
    return tmp_path


def _make_object(root: Path, key: str) -> None:
    (root / "bucket").joinpath(*key.split("/"), SENTINEL_DIR).mkdir(parents=True)


def _enumerator(root: Path) -> ObjectEnumerator:
    return ObjectEnumerator(PathCodec(root), _fake_loader)


class TestIterKeys:
    """Tests for sentinel discovery."""

    def test_flat_and_nested_keys(self, tree: Path) -> None:
        for key in ["top", "2024/summer.jpg", "2024/winter/snow.png"]:
            _make_object(tree, key)

        keys = sorted(_enumerator(tree).iter_keys("bucket"))

        assert keys == ["2024/summer.jpg", "2024/winter/snow.png", "top"]

    def test_object_directory_with_children(self, tree: Path) -> None:
        """A directory that is an object and a path segment yields both keys."""
        _make_object(tree, "a")
        _make_object(tree, "a/b")
        _make_object(tree, "a/b/c")

        assert sorted(_enumerator(tree).iter_keys("bucket")) == ["a", "a/b", "a/b/c"]

    def test_skips_hidden_entries_and_files(self, tree: Path) -> None:
        _make_object(tree, "real")
        staging = tree / "bucket" / ".bucketfs_staging_0123"
        (staging / "nested" / SENTINEL_DIR).mkdir(parents=True)
        (tree / "bucket" / "note.txt").write_text("not an object")
        (tree / "bucket" / "empty-dir").mkdir()

        assert list(_enumerator(tree).iter_keys("bucket")) == ["real"]

    def test_missing_bucket_folder_yields_nothing(self, tmp_path: Path) -> None:
        assert list(_enumerator(tmp_path).iter_keys("gone")) == []


class TestHasObjects:
    """Tests for the emptiness check."""

    def test_empty_tree(self, tree: Path) -> None:
        (tree / "bucket" / "a" / "b").mkdir(parents=True)

        assert _enumerator(tree).has_objects("bucket") is False

    def test_deep_object(self, tree: Path) -> None:
        _make_object(tree, "a/b/c/d")

        assert _enumerator(tree).has_objects("bucket") is True


class TestListObjects:
    """Tests for sorted listings."""

    def test_sorted_by_bytes(self, tree: Path) -> None:
        for key in ["b", "a/b", "a", "Zeta", "a-c"]:
            _make_object(tree, key)

        names = [o.name for o in _enumerator(tree).list_objects("bucket")]

        assert names == ["Zeta", "a", "a-c", "a/b", "b"]

    def test_loader_called_once_per_key(self, tree: Path) -> None:
        for key in ["x", "x/y"]:
            _make_object(tree, key)
        calls: list[str] = []

        def loader(bucket: str, key: str) -> StoredObject:
            calls.append(key)
            return _fake_loader(bucket, key)

        ObjectEnumerator(PathCodec(tree), loader).list_objects("bucket")

        assert sorted(calls) == ["x", "x/y"]

    def test_sort_key_orders_by_utf8_bytes(self) -> None:
        assert sorted(["é", "z", "Z"], key=sort_key) == ["Z", "z", "é"]
