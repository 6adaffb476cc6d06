"""Prometheus request-duration histograms, one per extension."""

from __future__ import annotations

from prometheus_client import Histogram

from epoxy_extensions.extension.dispatch import OperationKind

DURATION_BUCKETS: tuple[float, ...] = (
    0.001,
    0.01,
    0.1,
    1.0,
    5.0,
    10.0,
    30.0,
    60.0,
    120.0,
    300.0,
    float("inf"),
)

REQUEST_DURATIONS: dict[OperationKind, Histogram] = {
    kind: Histogram(
        f"{kind.value}_request_duration_seconds",
        "Request status codes and execution times.",
        labelnames=("method", "code"),
        buckets=DURATION_BUCKETS,
    )
    for kind in OperationKind
}


def observe_request(kind: OperationKind, *, method: str, status_code: int, seconds: float) -> None:
    REQUEST_DURATIONS[kind].labels(method=method.lower(), code=str(status_code)).observe(seconds)
