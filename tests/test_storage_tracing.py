"""Tests for OpenTelemetry spans emitted by store operations.

- Tracing OFF by default, ON via BUCKETFS_OTEL_ENABLED=1
- Spans carry bucket, backend and result attributes
- Raw keys and absolute paths never appear in span attributes
- Tests use the in-memory exporter (no external collector required)
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from typing import Any

import pytest

from bucketfs.observability.tracing import (
    clear_test_spans,
    configure_tracing,
    get_test_spans,
    reset_tracing,
)
from bucketfs.storage.errors import ObjectNotFoundError
from bucketfs.storage.file_store import FileStore
from bucketfs.storage.tracing import key_digest


@pytest.fixture
def capture_spans(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Enable tracing with the in-memory exporter for one test."""
    monkeypatch.setenv("BUCKETFS_OTEL_ENABLED", "1")
    monkeypatch.setenv("BUCKETFS_OTEL_TEST_CAPTURE", "1")
    reset_tracing()
    configure_tracing()
    clear_test_spans()
    yield
    reset_tracing()


def _spans(operation: str) -> list[Any]:
    return [s for s in get_test_spans() if s.name == f"bucketfs.object_store.{operation}"]


def _attributes(span: Any) -> dict[str, Any]:
    return dict(span.attributes) if span.attributes else {}


class TestTracingConfiguration:
    """Tests for tracing configuration behaviour."""

    def test_tracing_disabled_by_default(self, store: FileStore, bucket: str) -> None:
        """No spans are captured when BUCKETFS_OTEL_ENABLED is not set."""
        reset_tracing()

        assert configure_tracing() is False

        store.store_object(bucket, "k", b"data")
        assert _spans("store_object") == []

    def test_tracing_idempotent(self, capture_spans: None) -> None:
        assert configure_tracing() is True
        assert configure_tracing() is True


class TestStoreSpans:
    """Tests for spans emitted by FileStore operations."""

    def test_store_emits_span_with_safe_attributes(
        self, capture_spans: None, store: FileStore, bucket: str
    ) -> None:
        """Store emits bucket, hashed key and result attributes only."""
        key = "private/customer-42/invoice.pdf"
        store.store_object(bucket, key, b"test data", "text/plain")

        (span,) = _spans("store_object")
        attrs = _attributes(span)

        assert attrs["bucketfs.bucket"] == bucket
        assert attrs["storage.backend"] == "filesystem"
        assert attrs["bucketfs.object_key_sha256"] == hashlib.sha256(key.encode()).hexdigest()
        assert attrs["bucketfs.object_md5"] == hashlib.md5(b"test data").hexdigest()
        assert attrs["bucketfs.object_size_bytes"] == 9
        assert attrs["bucketfs.object_content_type"] == "text/plain"

        root = str(store.root)
        for attr_key, attr_value in attrs.items():
            attr_str = str(attr_value)
            assert key not in attr_str, f"Attribute {attr_key} contains the raw key"
            assert root not in attr_str, f"Attribute {attr_key} contains the store root"

    def test_get_and_head_emit_spans(
        self, capture_spans: None, store: FileStore, bucket: str
    ) -> None:
        store.store_object(bucket, "k", b"data")
        clear_test_spans()

        store.get_object(bucket, "k").read()
        store.head_object(bucket, "k")

        assert len(_spans("get_object")) == 1
        assert len(_spans("head_object")) == 1

    def test_list_span_reports_count(
        self, capture_spans: None, store: FileStore, bucket: str
    ) -> None:
        store.store_object(bucket, "a", b"1")
        store.store_object(bucket, "b", b"2")

        store.list_objects(bucket)

        (span,) = _spans("list_objects")
        attrs = _attributes(span)
        assert attrs["bucketfs.object_count"] == 2
        assert "bucketfs.object_key_sha256" not in attrs

    def test_copy_span_hashes_source_key(
        self, capture_spans: None, store: FileStore, bucket: str
    ) -> None:
        store.store_object(bucket, "src", b"data")

        store.copy_object(bucket, "src", bucket, "dst")

        (span,) = _spans("copy_object")
        assert _attributes(span)["bucketfs.object_key_sha256"] == key_digest("src")

    def test_failed_operation_marks_span(
        self, capture_spans: None, store: FileStore, bucket: str
    ) -> None:
        with pytest.raises(ObjectNotFoundError):
            store.get_object(bucket, "missing")

        (span,) = _spans("get_object")
        attrs = _attributes(span)
        assert attrs["error"] is True
        assert attrs["error.type"] == "ObjectNotFoundError"

    def test_bucket_operations_emit_spans(self, capture_spans: None, store: FileStore) -> None:
        store.create_bucket("traced")
        store.delete_bucket("traced")

        assert _attributes(_spans("create_bucket")[0])["bucketfs.bucket"] == "traced"
        assert len(_spans("delete_bucket")) == 1

    def test_keyword_calls_are_traced(self, capture_spans: None, store: FileStore) -> None:
        """Bucket and key attributes are found when passed by keyword."""
        store.create_bucket(name="kw")
        store.store_object(bucket="kw", key="src", content=b"data")
        store.copy_object(src_bucket="kw", src_key="src", dst_bucket="kw", dst_key="dst")
        store.delete_object(bucket="kw", key="src")
        store.delete_object(bucket="kw", key="dst")
        store.delete_bucket(name="kw")

        assert _attributes(_spans("create_bucket")[0])["bucketfs.bucket"] == "kw"
        assert _attributes(_spans("delete_bucket")[0])["bucketfs.bucket"] == "kw"
        copy_attrs = _attributes(_spans("copy_object")[0])
        assert copy_attrs["bucketfs.bucket"] == "kw"
        assert copy_attrs["bucketfs.object_key_sha256"] == key_digest("src")
        store_attrs = _attributes(_spans("store_object")[0])
        assert store_attrs["bucketfs.object_key_sha256"] == key_digest("src")
