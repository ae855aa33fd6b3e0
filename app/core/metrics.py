"""Prometheus metrics for the login service.

Every metric the service exports is declared here; the modules that own
the behavior import the metric and increment it at the point of action.

HTTP-level metrics are filled in by MetricsMiddleware.  The flow metrics
below answer the questions that matter for a login front door:

  - how many visitors were sent to the provider,
  - how each callback ended (success, provider error, bad state, ...),
  - how many requests the fetch-metadata guard turned away,
  - how the provider's token and identity endpoints are behaving.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # /callback spends most of its time waiting on two provider round-trips,
    # so the upper buckets matter more than for a plain API.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Login flow metrics
# ---------------------------------------------------------------------------

LOGIN_REDIRECTS = Counter(
    "login_redirects_total",
    "Visitors redirected to the provider's authorize endpoint",
)

CALLBACK_OUTCOMES = Counter(
    "callback_outcomes_total",
    "Callback requests by terminal outcome",
    # success, provider_error, malformed, missing_params, invalid_state,
    # insufficient_scope, upstream_failure
    ["outcome"],
)

FETCH_METADATA_REJECTIONS = Counter(
    "fetch_metadata_rejections_total",
    "Requests rejected by the fetch-metadata guard",
    ["endpoint"],  # "login" or "callback"
)

PROVIDER_REQUESTS = Counter(
    "provider_requests_total",
    "Outbound requests to the identity provider by endpoint and result",
    ["endpoint", "result"],  # endpoint: token|identity; result: ok|http_error|transport_error|bad_payload
)
