"""Prometheus metrics shared across the application."""

from prometheus_client import Counter, Histogram

REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "app_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

REQUEST_DURATION = Histogram(
    "app_http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["method", "path"],
)

GEOCODING_REQUESTS = Counter(
    "app_geocoding_requests_total",
    "Geocoding lookups by direction and outcome",
    labelnames=["direction", "outcome"],
)

REGION_LINK_ROLLBACKS = Counter(
    "app_region_link_rollbacks_total",
    "Region writes undone because the owner link step failed",
)
