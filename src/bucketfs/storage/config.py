"""bucketfs store configuration.

Environment Variables:
    BUCKETFS_ROOT: Root directory of the store
        (default: tempfile.gettempdir() / bucketfs)
    BUCKETFS_RATE_LIMIT: Read ceiling for content streams, e.g. "1000",
        "10K", "1.1M" (default: unset, no limiting)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from bucketfs.rate_limit.limiter import load_rate_limit, parse_rate_limit

ENV_STORE_ROOT: Final[str] = "BUCKETFS_ROOT"
DEFAULT_ROOT_NAME: Final[str] = "bucketfs"


@dataclass(frozen=True)
class StoreConfig:
    """Store configuration (immutable).

    Attributes:
        root: Directory holding one subdirectory per bucket.
        rate_limit: Bytes-per-second ceiling for content streams, or None.
    """

    root: Path
    rate_limit: int | None = None


def default_root() -> Path:
    """Return ``BUCKETFS_ROOT`` if set, else a directory under the OS temp dir."""
    raw = os.environ.get(ENV_STORE_ROOT, "").strip()
    if raw:
        return Path(raw)
    return Path(tempfile.gettempdir()) / DEFAULT_ROOT_NAME


def load_store_config(
    root: str | Path | None = None,
    rate_limit: str | int | float | None = None,
) -> StoreConfig:
    """Build the store configuration, filling omitted values from the environment.

    Args:
        root: Store root; BUCKETFS_ROOT or the OS temp directory when None.
        rate_limit: Read ceiling; BUCKETFS_RATE_LIMIT when None.

    Raises:
        InvalidRateLimitError: If the given or configured rate limit is malformed.
    """
    return StoreConfig(
        root=Path(root) if root is not None else default_root(),
        rate_limit=parse_rate_limit(rate_limit) if rate_limit is not None else load_rate_limit(),
    )
