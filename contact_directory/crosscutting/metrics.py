"""
Name: Prometheus metrics

Responsibilities:
  - HTTP traffic per route template, method and status class
  - Access-control outcomes: admission decisions, origin lookups, sign-ins
  - Render the /metrics payload from a private registry

Collaborators:
  - crosscutting/middleware.py, identity/route_guard.py,
    identity/origin_lookup.py, identity/session.py

Constraints:
  - Labels never carry uids, emails, addresses or raw paths
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

HTTP_REQUESTS = Counter(
    "directory_http_requests_total",
    "HTTP requests handled",
    ["route", "method", "status_class"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "directory_http_request_duration_seconds",
    "HTTP request duration",
    ["route", "method"],
    registry=REGISTRY,
)
ADMISSIONS = Counter(
    "directory_admission_decisions_total",
    "Route guard decisions",
    ["decision"],
    registry=REGISTRY,
)
ORIGIN_LOOKUPS = Counter(
    "directory_origin_lookup_attempts_total",
    "Origin provider attempts",
    ["provider", "outcome"],
    registry=REGISTRY,
)
ORIGIN_LOOKUP_DURATION = Histogram(
    "directory_origin_lookup_duration_seconds",
    "Duration of a whole origin lookup chain",
    buckets=(0.005, 0.05, 0.25, 1.0, 3.0, 10.0),
    registry=REGISTRY,
)
SIGN_INS = Counter(
    "directory_sign_ins_total",
    "Credential sign-in attempts",
    ["outcome"],
    registry=REGISTRY,
)


def record_request_metrics(
    route: str, method: str, status_code: int, latency_seconds: float
) -> None:
    HTTP_REQUESTS.labels(route, method, f"{status_code // 100}xx").inc()
    HTTP_LATENCY.labels(route, method).observe(latency_seconds)


def record_admission(decision: str) -> None:
    ADMISSIONS.labels(decision).inc()


def record_origin_lookup(provider: str, outcome: str) -> None:
    """outcome: ok | error | invalid"""
    ORIGIN_LOOKUPS.labels(provider, outcome).inc()


def observe_origin_lookup_latency(seconds: float) -> None:
    ORIGIN_LOOKUP_DURATION.observe(seconds)


def record_login(outcome: str) -> None:
    SIGN_INS.labels(outcome).inc()


def get_metrics_response() -> tuple[bytes, str]:
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
