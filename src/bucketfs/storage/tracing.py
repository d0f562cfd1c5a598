"""bucketfs object storage OpenTelemetry tracing integration.

Provides a tracing decorator for store operations.

Span attributes never include absolute filesystem paths or raw object keys;
keys are exported only as their SHA-256 digest.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from bucketfs.observability.tracing import get_tracer, is_tracing_enabled
from bucketfs.storage.models import StoredObject

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_BUCKET_PARAMS = ("bucket", "name", "src_bucket")
_KEY_PARAMS = ("key", "src_key")


def key_digest(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def traced_storage_operation(operation: str, *, keyed: bool = True) -> Callable[[F], F]:
    """Decorator to trace store operations with OpenTelemetry.

    The decorated method takes the bucket name first and, when ``keyed`` is
    true, the object key second; either may also be passed by keyword.

    Args:
        operation: Operation name (e.g., "store_object", "list_objects").
        keyed: Whether the second positional argument is an object key.

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            tracer = get_tracer("bucketfs.object_store")
            with tracer.start_as_current_span(f"bucketfs.object_store.{operation}") as span:
                bucket = _argument(args, kwargs, 0, _BUCKET_PARAMS)
                if bucket is not None:
                    span.set_attribute("bucketfs.bucket", str(bucket))
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                key = _argument(args, kwargs, 1, _KEY_PARAMS)
                if keyed and key is not None:
                    span.set_attribute("bucketfs.object_key_sha256", key_digest(str(key)))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if result is not None:
                    _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _argument(
    args: tuple[Any, ...], kwargs: dict[str, Any], position: int, names: tuple[str, ...]
) -> Any:
    """Find an argument passed either positionally or under one of ``names``."""
    if len(args) > position:
        return args[position]
    for name in names:
        if name in kwargs:
            return kwargs[name]
    return None


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add md5, size and content type of a returned object, or a listing count."""
    if isinstance(result, StoredObject):
        span.set_attribute("bucketfs.object_md5", result.md5)
        span.set_attribute("bucketfs.object_size_bytes", result.size)
        span.set_attribute("bucketfs.object_content_type", result.content_type)
    elif isinstance(result, list):
        span.set_attribute("bucketfs.object_count", len(result))
