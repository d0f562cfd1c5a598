"""Tests for the YAML metadata side-file codec."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from bucketfs.storage.errors import MetadataCorruptError, WriteFailureError
from bucketfs.storage.metadata import MetadataCodec, decode_metadata, encode_metadata
from bucketfs.storage.models import ObjectMetadata

RUBY_DOCUMENT = """---
:md5: 5d41402abc4b2a76b9719d911017c592
:content_type: text/plain
:size: 5
:modified_date: 2024-06-01 12:00:00.000000000 Z
"""


class TestEncode:
    """Tests for encode_metadata."""

    def test_symbol_style_keys(self) -> None:
        record = ObjectMetadata(
            md5="5d41402abc4b2a76b9719d911017c592",
            content_type="text/plain",
            size=5,
            modified_date=datetime(2024, 6, 1, 12, 0, tzinfo=UTC),
        )

        text = encode_metadata(record)

        assert text.startswith("---")
        assert ":md5: 5d41402abc4b2a76b9719d911017c592" in text
        assert ":content_type: text/plain" in text
        assert ":size: 5" in text
        assert "2024-06-01T12:00:00+00:00" in text

    def test_encoded_document_decodes_to_same_record(self) -> None:
        record = ObjectMetadata(
            md5="abc",
            content_type="image/jpeg",
            size=10_000,
            modified_date=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
        )

        assert decode_metadata(encode_metadata(record)) == record

    def test_modified_date_omitted_when_unknown(self) -> None:
        text = encode_metadata(ObjectMetadata(md5="abc"))

        assert "modified_date" not in text


class TestDecode:
    """Tests for decode_metadata."""

    def test_ruby_document(self) -> None:
        """Documents written by the Ruby tool parse, timestamps included."""
        record = decode_metadata(RUBY_DOCUMENT)

        assert record.md5 == "5d41402abc4b2a76b9719d911017c592"
        assert record.content_type == "text/plain"
        assert record.size == 5
        assert record.modified_date == datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def test_plain_keys(self) -> None:
        record = decode_metadata("md5: abc\ncontent_type: text/csv\nsize: 3\n")

        assert record == ObjectMetadata(md5="abc", content_type="text/csv", size=3)

    def test_optional_fields_default(self) -> None:
        record = decode_metadata("---\n:md5: abc\n")

        assert record.content_type == "application/octet-stream"
        assert record.size == 0
        assert record.modified_date is None

    def test_naive_timestamp_treated_as_utc(self) -> None:
        record = decode_metadata(":md5: abc\n:modified_date: '2024-06-01T12:00:00'\n")

        assert record.modified_date == datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def test_invalid_yaml_raises(self) -> None:
        with pytest.raises(yaml.YAMLError):
            decode_metadata(":md5: [unclosed\n")

    @pytest.mark.parametrize("text", ["", "just a string\n", "- a\n- b\n"])
    def test_non_mapping_raises(self, text: str) -> None:
        with pytest.raises(ValueError):
            decode_metadata(text)

    def test_missing_md5_raises(self) -> None:
        with pytest.raises(ValueError):
            decode_metadata(":content_type: text/plain\n")


class TestMetadataCodec:
    """Tests for reading and writing the side-file."""

    def test_write_then_read(self, tmp_path: Path) -> None:
        record = ObjectMetadata(md5="abc", content_type="text/plain", size=3)

        MetadataCodec.write(tmp_path, record)

        assert (tmp_path / "metadata").is_file()
        assert MetadataCodec.read(tmp_path) == record

    def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(MetadataCorruptError) as exc_info:
            MetadataCodec.read(tmp_path)

        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_read_corrupt_file(self, tmp_path: Path) -> None:
        (tmp_path / "metadata").write_text(":md5: [unclosed\n")

        with pytest.raises(MetadataCorruptError):
            MetadataCodec.read(tmp_path)

    def test_read_bad_size(self, tmp_path: Path) -> None:
        (tmp_path / "metadata").write_text(":md5: abc\n:size: many\n")

        with pytest.raises(MetadataCorruptError):
            MetadataCodec.read(tmp_path)

    def test_write_into_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(WriteFailureError):
            MetadataCodec.write(tmp_path / "missing", ObjectMetadata(md5="abc"))
