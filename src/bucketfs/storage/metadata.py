"""Per-object metadata side-file codec.

The record is a small YAML document stored as ``metadata`` next to the
object's ``content`` file. Keys carry a leading colon so that trees written
by the Ruby fakes3 tool, which dumps symbol-keyed hashes, stay readable:

    ---
    :md5: 5d41402abc4b2a76b9719d911017c592
    :content_type: text/plain
    :size: 5
    :modified_date: '2024-06-01T12:00:00+00:00'

Plain keys without the colon are accepted on read as well.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml

from bucketfs.storage.errors import MetadataCorruptError, WriteFailureError
from bucketfs.storage.models import DEFAULT_CONTENT_TYPE, ObjectMetadata
from bucketfs.storage.paths import METADATA_FILE

logger = logging.getLogger(__name__)


def _field(data: dict[Any, Any], name: str, default: Any = None) -> Any:
    if f":{name}" in data:
        return data[f":{name}"]
    return data.get(name, default)


def _parse_timestamp(raw: Any) -> datetime | None:
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    else:
        value = datetime.fromisoformat(str(raw))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def encode_metadata(record: ObjectMetadata) -> str:
    """Render a metadata record as a YAML document."""
    document = {
        ":md5": record.md5,
        ":content_type": record.content_type,
        ":size": record.size,
    }
    if record.modified_date is not None:
        document[":modified_date"] = record.modified_date.isoformat(timespec="seconds")
    return yaml.safe_dump(document, explicit_start=True, sort_keys=False)


def decode_metadata(text: str) -> ObjectMetadata:
    """Parse a YAML metadata document, applying defaults for optional fields.

    Raises:
        ValueError: If the document is not a mapping or has no checksum.
        yaml.YAMLError: If the document is not valid YAML.
    """
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("metadata document is not a mapping")

    md5 = _field(data, "md5")
    if not md5:
        raise ValueError("metadata document has no md5 checksum")

    content_type = _field(data, "content_type") or DEFAULT_CONTENT_TYPE
    size = _field(data, "size")

    return ObjectMetadata(
        md5=str(md5),
        content_type=str(content_type),
        size=int(size) if size is not None else 0,
        modified_date=_parse_timestamp(_field(data, "modified_date")),
    )


class MetadataCodec:
    """Reads and writes the ``metadata`` side-file inside an object directory."""

    @staticmethod
    def write(directory: Path, record: ObjectMetadata) -> None:
        """Write ``record`` into ``directory``.

        Must only be called once the content file is complete.

        Raises:
            WriteFailureError: If the side-file cannot be written.
        """
        try:
            (directory / METADATA_FILE).write_text(encode_metadata(record), encoding="utf-8")
        except OSError as e:
            raise WriteFailureError(message=f"Failed to write metadata: {e}", cause=e) from e

    @staticmethod
    def read(directory: Path) -> ObjectMetadata:
        """Load the record stored in ``directory``.

        Raises:
            MetadataCorruptError: If the side-file is missing or cannot be parsed.
        """
        path = directory / METADATA_FILE
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise MetadataCorruptError(message="Object metadata is missing", cause=e) from e
        except OSError as e:
            raise MetadataCorruptError(message=f"Failed to read metadata: {e}", cause=e) from e

        try:
            return decode_metadata(text)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning("Unparseable metadata in %s: %s", path, e)
            raise MetadataCorruptError(message=f"Unparseable metadata: {e}", cause=e) from e
