from __future__ import annotations

from typing import Any

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from dealership.core.config import settings


class _NoOpMetric:
    def labels(self, *args: Any, **kwargs: Any) -> "_NoOpMetric":
        return self

    def observe(self, *_: Any, **__: Any) -> None:
        return None

    def inc(self, *_: Any, **__: Any) -> None:
        return None


def _counter(name: str, documentation: str, labelnames: list[str]) -> Any:
    if not settings.METRICS_ENABLED:
        return _NoOpMetric()
    return Counter(f"{settings.METRICS_NAMESPACE}_{name}", documentation, labelnames)


def _histogram(name: str, documentation: str, labelnames: list[str]) -> Any:
    if not settings.METRICS_ENABLED:
        return _NoOpMetric()
    return Histogram(
        f"{settings.METRICS_NAMESPACE}_{name}",
        documentation,
        labelnames,
        buckets=settings.METRICS_LATENCY_BUCKETS,
    )


REQUEST_LATENCY = _histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path", "status_code"],
)

REQUEST_COUNT = _counter(
    "http_requests_total",
    "Total HTTP requests processed.",
    ["method", "path", "status_code"],
)

REQUEST_ERRORS = _counter(
    "http_errors_total",
    "Total HTTP requests resulting in 4xx/5xx.",
    ["method", "path", "status_code"],
)

LOGIN_ATTEMPTS = _counter(
    "auth_login_attempts_total",
    "Authentication attempts partitioned by outcome.",
    ["outcome"],
)

ORDERS_PLACED = _counter(
    "orders_placed_total",
    "Orders created through checkout, by payment method.",
    ["payment_method"],
)

ORDER_STATUS_CHANGES = _counter(
    "order_status_changes_total",
    "Order status transitions applied.",
    ["status"],
)


def normalize_path(request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if path:
        return path
    return request.url.path


def record_request_metrics(request, status_code: int, elapsed: float) -> None:
    labels = (request.method, normalize_path(request), str(status_code))
    REQUEST_COUNT.labels(*labels).inc()
    REQUEST_LATENCY.labels(*labels).observe(elapsed)
    if status_code >= 400:
        REQUEST_ERRORS.labels(*labels).inc()


def record_login_attempt(outcome: str) -> None:
    LOGIN_ATTEMPTS.labels(outcome=outcome).inc()


def record_order_placed(payment_method: str) -> None:
    ORDERS_PLACED.labels(payment_method=payment_method).inc()


def record_order_status_change(status: str) -> None:
    ORDER_STATUS_CHANGES.labels(status=status).inc()


def export_metrics() -> tuple[bytes, str]:
    if not settings.METRICS_ENABLED:
        return b"", "text/plain; charset=utf-8"
    return generate_latest(), CONTENT_TYPE_LATEST
