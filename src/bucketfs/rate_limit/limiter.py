"""Read-throughput limiting for object content streams.

A rate limit is a bytes-per-second ceiling written as a plain integer or as a
decimal magnitude with a K/M/G suffix (multipliers 1e3/1e6/1e9):

    "1000" -> 1000 B/s    "1.5K" -> 1500 B/s    "2M" -> 2_000_000 B/s

Streams are paced with monotonic integer nanoseconds so that the average
throughput since the stream was opened never exceeds the ceiling.
"""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Callable, Iterator
from typing import BinaryIO, Final

from bucketfs.storage.errors import ReadFailureError

logger = logging.getLogger(__name__)

ENV_RATE_LIMIT: Final[str] = "BUCKETFS_RATE_LIMIT"

NANOSECONDS_PER_SECOND: Final[int] = 1_000_000_000
DEFAULT_CHUNK_SIZE: Final[int] = 64 * 1024

_MULTIPLIERS: Final[dict[str, int]] = {"K": 1_000, "M": 1_000_000, "G": 1_000_000_000}
_PLAIN_PATTERN = re.compile(r"^(\d+)$")
_SUFFIXED_PATTERN = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)([KMG])$")


class InvalidRateLimitError(ValueError):
    """Raised when a rate limit is not a positive integer or K/M/G magnitude."""


def parse_rate_limit(value: str | int | float | None) -> int | None:
    """Parse a rate limit into bytes per second.

    Args:
        value: ``None`` (no limit), a positive number, or a textual form
            such as ``"1000"``, ``"10K"``, ``"1.1M"`` or ``"1G"``.

    Returns:
        The ceiling in bytes per second, or None when limiting is disabled.

    Raises:
        InvalidRateLimitError: If the value is malformed or not positive.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise InvalidRateLimitError(f"Invalid rate limit: {value!r}")

    if isinstance(value, (int, float)):
        rate = int(round(value))
    else:
        raw = value.strip()
        plain = _PLAIN_PATTERN.match(raw)
        suffixed = _SUFFIXED_PATTERN.match(raw)
        if plain:
            rate = int(plain.group(1))
        elif suffixed:
            rate = int(round(float(suffixed.group(1)) * _MULTIPLIERS[suffixed.group(2)]))
        else:
            raise InvalidRateLimitError(
                f"Invalid rate limit format {value!r}: valid values include 1000, 10K, 1.1M"
            )

    if rate <= 0:
        raise InvalidRateLimitError(f"Rate limit must be positive, got {value!r}")
    return rate


def load_rate_limit() -> int | None:
    """Load the rate limit from ``BUCKETFS_RATE_LIMIT`` (unset or empty means none).

    Raises:
        InvalidRateLimitError: If the variable is set to a malformed value.
    """
    raw = os.environ.get(ENV_RATE_LIMIT, "").strip()
    if not raw:
        return None
    return parse_rate_limit(raw)


class RateLimitedReader:
    """Binary reader that paces reads to a bytes-per-second ceiling.

    With ``bytes_per_second`` set to None the reader is a thin pass-through.
    The clock and sleep functions are injectable for deterministic tests.
    """

    def __init__(
        self,
        raw: BinaryIO,
        bytes_per_second: int | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._raw = raw
        self._rate = bytes_per_second
        self._chunk_size = chunk_size
        self._clock = clock
        self._sleep = sleep
        self._started_ns = clock()
        self._bytes_read = 0

    @classmethod
    def open(
        cls,
        path: os.PathLike[str] | str,
        bytes_per_second: int | None = None,
    ) -> RateLimitedReader:
        """Open ``path`` for binary reading behind a limiter.

        Raises:
            ReadFailureError: If the file cannot be opened.
        """
        try:
            raw = open(path, "rb")  # noqa: SIM115
        except OSError as e:
            raise ReadFailureError(message=f"Failed to open content: {e}", cause=e) from e
        return cls(raw, bytes_per_second)

    @property
    def bytes_per_second(self) -> int | None:
        return self._rate

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def closed(self) -> bool:
        return self._raw.closed

    def _pace(self) -> None:
        if self._rate is None:
            return
        due_ns = (self._bytes_read * NANOSECONDS_PER_SECOND) // self._rate
        elapsed_ns = self._clock() - self._started_ns
        if due_ns > elapsed_ns:
            self._sleep((due_ns - elapsed_ns) / NANOSECONDS_PER_SECOND)

    def _read_chunk(self, size: int) -> bytes:
        try:
            data = self._raw.read(size)
        except OSError as e:
            raise ReadFailureError(message=f"Failed to read content: {e}", cause=e) from e
        self._bytes_read += len(data)
        self._pace()
        return data

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything that remains if negative."""
        if size is not None and size >= 0:
            return self._read_chunk(size)

        parts = []
        while True:
            chunk = self._read_chunk(self._chunk_size)
            if not chunk:
                break
            parts.append(chunk)
        return b"".join(parts)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self._read_chunk(self._chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> RateLimitedReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
