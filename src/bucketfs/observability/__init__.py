"""bucketfs observability module.

Provides OpenTelemetry tracing configuration.
"""

from bucketfs.observability.tracing import (
    TracingConfigError,
    clear_test_spans,
    configure_tracing,
    get_test_spans,
    reset_tracing,
)

__all__ = [
    "TracingConfigError",
    "clear_test_spans",
    "configure_tracing",
    "get_test_spans",
    "reset_tracing",
]
