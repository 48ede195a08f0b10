# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP Middleware — request ID propagation and Prometheus metrics.

Flat numbers, roles and ids in paths are folded into ``{param}`` so the
endpoint label stays bounded. Hits on the deprecated pre-v1 paths are counted
separately so the aliases can be retired once the apps stop calling them.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from gatepass.metrics import HTTP_ERRORS, LEGACY_REQUESTS, REQUEST_COUNT, REQUEST_LATENCY

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

KNOWN_SEGMENTS = frozenset({
    "api", "v1", "visitors", "target", "status", "flat", "flats", "members",
    "contact", "users", "push-token", "logout", "announcements",
    "visitor-request", "update-visitor-target", "visitor-response",
    "all-visitors", "update-token", "update-push-token", "users-by-flat",
    "admin", "announce",
})

LEGACY_ROOTS = frozenset({
    "visitor-request", "update-visitor-target", "visitor-response", "all-visitors",
    "visitors", "update-token", "update-push-token", "logout", "users-by-flat",
    "admin", "announcements",
})

UNTRACKED_PATHS = frozenset({
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
})


def endpoint_label(path: str) -> str:
    parts = [p for p in path.split("/") if p]
    if not parts:
        return "/"
    return "/" + "/".join(p if p in KNOWN_SEGMENTS else "{param}" for p in parts)


def is_legacy_path(path: str) -> bool:
    parts = [p for p in path.split("/") if p]
    return bool(parts) and parts[0] in LEGACY_ROOTS


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID when it is sane, otherwise mint one."""

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if not incoming or len(incoming) > MAX_REQUEST_ID_LENGTH:
            incoming = uuid.uuid4().hex
        request.state.request_id = incoming
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = incoming
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Request count, latency, error count and legacy-path usage."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        path = request.url.path
        if path in UNTRACKED_PATHS:
            return response

        method = request.method
        endpoint = endpoint_label(path)
        status = str(response.status_code)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(elapsed)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=method, endpoint=endpoint, status=status).inc()
        if is_legacy_path(path):
            LEGACY_REQUESTS.labels(method=method, endpoint=endpoint).inc()
        return response
