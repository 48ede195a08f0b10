# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Prometheus metrics for the gate-access service."""
from prometheus_client import Counter, Histogram

VISITORS_CREATED = Counter(
    "visitors_created_total",
    "Total visitor requests logged at the gate",
)
VISITOR_DECISIONS = Counter(
    "visitor_decisions_total",
    "Resident decisions recorded",
    ["status"],
)
VISITOR_DECISION_OVERRIDES = Counter(
    "visitor_decision_overrides_total",
    "Decisions recorded on a visitor that had already been decided",
)
ANNOUNCEMENTS_CREATED = Counter(
    "announcements_created_total",
    "Announcements broadcast by admins",
    ["target"],
)
PUSH_MESSAGES = Counter(
    "push_messages_total",
    "Push messages handed to the provider",
    ["provider", "status"],
)
PUSH_DISPATCH = Histogram(
    "push_dispatch_seconds",
    "Time to deliver one fan-out to the push provider",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"]
)
HTTP_ERRORS = Counter(
    "http_errors_total", "Total HTTP errors", ["method", "endpoint", "status"]
)
LEGACY_REQUESTS = Counter(
    "legacy_route_requests_total",
    "Requests served on deprecated pre-v1 paths",
    ["method", "endpoint"],
)
