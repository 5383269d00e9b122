"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
    start_http_server,
)

_REGISTRY = CollectorRegistry()

OPERATIONS = Counter(
    "govee_gateway_operations_total",
    "Gateway operations by outcome",
    ["operation", "outcome"],
    registry=_REGISTRY,
)
UPSTREAM_REQUESTS = Counter(
    "govee_upstream_requests_total",
    "Requests sent to the Govee cloud API",
    ["method", "path", "status"],
    registry=_REGISTRY,
)
RATE_LIMIT_WAITS = Counter(
    "govee_rate_limit_waits_total",
    "Admissions that had to wait for a token",
    registry=_REGISTRY,
)
RATE_LIMIT_TOKENS = Gauge(
    "govee_rate_limit_tokens",
    "Tokens currently available in the admission bucket",
    registry=_REGISTRY,
)
DRY_RUN_WRITES = Counter(
    "govee_dry_run_writes_total",
    "Control writes suppressed by dry-run mode",
    registry=_REGISTRY,
)
BATCH_COALESCED = Counter(
    "govee_batch_coalesced_total",
    "Batch commands dropped because a later command superseded them",
    registry=_REGISTRY,
)


def record_operation(operation: str, outcome: str) -> None:
    OPERATIONS.labels(operation=operation, outcome=outcome).inc()


def record_upstream_request(method: str, path: str, status: str) -> None:
    UPSTREAM_REQUESTS.labels(method=method, path=path, status=status).inc()


def record_rate_limit_wait() -> None:
    RATE_LIMIT_WAITS.inc()


def set_rate_limit_tokens(tokens: float) -> None:
    RATE_LIMIT_TOKENS.set(tokens)


def record_dry_run_write() -> None:
    DRY_RUN_WRITES.inc()


def record_batch_coalesced(dropped: int) -> None:
    if dropped > 0:
        BATCH_COALESCED.inc(dropped)


def latest_metrics() -> bytes:
    """Render the registry in the Prometheus text format."""

    return generate_latest(_REGISTRY)


def start_metrics_server(port: int, addr: str = "127.0.0.1") -> None:
    """Serve the registry for Prometheus scrapes from a daemon thread."""

    start_http_server(port, addr=addr, registry=_REGISTRY)
