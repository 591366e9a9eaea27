"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

import time
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from prometheus_client import Counter, Histogram

T = TypeVar("T")

http_requests_total = Counter(
    "docvault_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "docvault_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

repository_operations_total = Counter(
    "docvault_repository_operations_total",
    "Document repository operations",
    ["operation", "outcome"],
)

repository_operation_latency_seconds = Histogram(
    "docvault_repository_operation_latency_seconds",
    "Document repository operation latency",
    ["operation"],
)

malformed_rows_total = Counter(
    "docvault_malformed_rows_total",
    "Stored rows skipped because they are not complete documents",
)

acl_fallbacks_total = Counter(
    "docvault_acl_fallbacks_total",
    "Uploads retried without a public-read ACL because the bucket rejects ACLs",
)

thumbnail_triggers_total = Counter(
    "docvault_thumbnail_triggers_total",
    "Thumbnail resize invocations",
    ["outcome"],
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)


def instrumented(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Count outcomes and time an async repository operation."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                repository_operations_total.labels(operation=operation, outcome="error").inc()
                raise
            finally:
                repository_operation_latency_seconds.labels(operation=operation).observe(
                    time.perf_counter() - started
                )
            repository_operations_total.labels(operation=operation, outcome="success").inc()
            return result

        return wrapper

    return decorator
