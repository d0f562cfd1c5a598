"""OpenTelemetry tracing configuration for bucketfs.

Environment Variables:
    BUCKETFS_OTEL_ENABLED: "1" turns tracing on (default: off)
    BUCKETFS_REQUIRE_OTEL: "1" makes a failed setup raise instead of logging
    BUCKETFS_OTEL_SERVICE_NAME: service.name resource attribute (default: "bucketfs")
    BUCKETFS_OTEL_EXPORTER: span exporter; only "console" is built in
    BUCKETFS_OTEL_TEST_CAPTURE: "1" records spans in memory for tests

Spans never carry absolute filesystem paths or raw object keys.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Final

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger(__name__)

ENV_ENABLED: Final[str] = "BUCKETFS_OTEL_ENABLED"
ENV_REQUIRED: Final[str] = "BUCKETFS_REQUIRE_OTEL"
ENV_SERVICE_NAME: Final[str] = "BUCKETFS_OTEL_SERVICE_NAME"
ENV_EXPORTER: Final[str] = "BUCKETFS_OTEL_EXPORTER"
ENV_TEST_CAPTURE: Final[str] = "BUCKETFS_OTEL_TEST_CAPTURE"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes"})

# The global provider can be installed only once per process.
_provider: TracerProvider | None = None
_capture: InMemorySpanExporter | None = None


class TracingConfigError(Exception):
    """Raised when tracing setup fails and BUCKETFS_REQUIRE_OTEL=1."""


def get_env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key, "").strip().lower()
    if not raw:
        return default
    return raw in _TRUTHY


def is_tracing_enabled() -> bool:
    return get_env_bool(ENV_ENABLED)


def _attach_capture(provider: TracerProvider) -> None:
    global _capture

    if _capture is None:
        _capture = InMemorySpanExporter()
        provider.add_span_processor(SimpleSpanProcessor(_capture))


def _build_provider() -> TracerProvider:
    service_name = os.environ.get(ENV_SERVICE_NAME, "").strip() or "bucketfs"
    exporter = os.environ.get(ENV_EXPORTER, "").strip() or "console"

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if get_env_bool(ENV_TEST_CAPTURE):
        _attach_capture(provider)
        exporter = "in-memory"
    elif exporter == "console":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    else:
        raise TracingConfigError(f"Unsupported exporter: {exporter}")

    logger.info("Tracing configured: service=%s exporter=%s", service_name, exporter)
    return provider


def configure_tracing() -> bool:
    """Install the bucketfs tracer provider if tracing is enabled.

    Safe to call repeatedly: later calls reuse the installed provider and
    only attach in-memory capture if it was requested since.

    Returns:
        True if spans will be recorded, False otherwise.

    Raises:
        TracingConfigError: If BUCKETFS_REQUIRE_OTEL=1 and setup fails.
    """
    global _provider

    if not is_tracing_enabled():
        logger.debug("Tracing disabled (%s not set)", ENV_ENABLED)
        return False

    if _provider is not None:
        if get_env_bool(ENV_TEST_CAPTURE):
            _attach_capture(_provider)
        return True

    try:
        provider = _build_provider()
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.error("Failed to configure tracing: %s", e)
        if get_env_bool(ENV_REQUIRED):
            raise TracingConfigError(f"Tracing is required but setup failed: {e}") from e
        return False

    _provider = provider
    return True


def get_tracer(name: str) -> Any:
    """Return a tracer from the bucketfs provider, or the global one."""
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def get_test_spans() -> list[ReadableSpan]:
    """Return spans recorded by the in-memory exporter."""
    if _capture is None:
        return []
    return list(_capture.get_finished_spans())


def clear_test_spans() -> None:
    if _capture is not None:
        _capture.clear()


def reset_tracing() -> None:
    """Drop captured spans between tests.

    The installed provider stays in place since OpenTelemetry does not allow
    replacing it.
    """
    clear_test_spans()
