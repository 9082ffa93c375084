"""Метрики Prometheus (локальный registry)."""

from prometheus_client import CollectorRegistry, Counter, Histogram

registry = CollectorRegistry()

requests_total = Counter(
    "requests_total",
    "Total number of requests",
    ["endpoint", "provider", "status"],
    registry=registry,
)

request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    ["endpoint", "provider"],
    registry=registry,
)

errors_total = Counter(
    "errors_total",
    "Total failed requests by error kind",
    ["endpoint", "kind"],
    registry=registry,
)

tokens_total = Counter(
    "tokens_total",
    "Total tokens",
    ["provider", "model", "kind"],
    registry=registry,
)
