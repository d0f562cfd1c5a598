"""Pytest configuration and fixtures for bucketfs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from bucketfs.storage.file_store import FileStore

BUCKETFS_ENV_VARS = (
    "BUCKETFS_ROOT",
    "BUCKETFS_RATE_LIMIT",
    "BUCKETFS_OTEL_ENABLED",
    "BUCKETFS_OTEL_TEST_CAPTURE",
    "BUCKETFS_REQUIRE_OTEL",
)


@pytest.fixture(autouse=True)
def clean_bucketfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without bucketfs settings leaking in from the shell."""
    for name in BUCKETFS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_storage_dir() -> Iterator[Path]:
    """Create a temporary directory for storage tests."""
    with tempfile.TemporaryDirectory(prefix="bucketfs_test_storage_") as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def store(temp_storage_dir: Path) -> FileStore:
    """Create a FileStore rooted in a temp directory."""
    return FileStore(root=temp_storage_dir)


@pytest.fixture
def bucket(store: FileStore) -> str:
    """Create a bucket and return its name."""
    store.create_bucket("test-bucket")
    return "test-bucket"
