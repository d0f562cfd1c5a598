"""bucketfs rate limiting module.

Provides bytes-per-second pacing for object content streams.
"""

from bucketfs.rate_limit.limiter import (
    InvalidRateLimitError,
    RateLimitedReader,
    load_rate_limit,
    parse_rate_limit,
)

__all__ = [
    "InvalidRateLimitError",
    "RateLimitedReader",
    "load_rate_limit",
    "parse_rate_limit",
]
