"""Metrics for pagerduty-rest."""

from prometheus_client import Counter, Histogram

DEFAULT_BUCKETS_EXTERNAL_API = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)

pagerduty_request = Counter(
    name="pagerduty_rest_requests_total",
    documentation="Number of calls made to the PagerDuty API",
    labelnames=["resource", "verb"],
)

pagerduty_request_duration = Histogram(
    name="pagerduty_rest_request_duration_seconds",
    documentation="PagerDuty API request duration in seconds",
    labelnames=["resource", "verb"],
    buckets=DEFAULT_BUCKETS_EXTERNAL_API,
)
