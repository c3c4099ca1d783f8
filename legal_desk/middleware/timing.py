"""
Request timing middleware.

Every response carries ``X-Request-ID`` and ``X-Request-Duration-Ms``.
Writes to submissions (create, patch, approve, delete, comments, uploads)
are logged at INFO with the submission id taken from the route, so a
submission's history can be followed by grepping one id. Reads log at
DEBUG; slow requests and 5xx responses are always reported.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# Probes hit these every few seconds
_QUIET_PATHS = frozenset({"/api/v1/health/live", "/api/v1/health/ready"})

_WRITE_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})

SLOW_THRESHOLD_MS = 1000


def _request_extra(response, duration_ms):
    identity = getattr(g, "identity", None)
    return {
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": g.get("request_id", ""),
        "user_id": identity.user_id if identity else None,
        "role": identity.role.value if identity else None,
        "submission_id": (request.view_args or {}).get("submission_id"),
    }


def init_request_timing(app: Flask):
    """Register before/after hooks for request ids and durations."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = g.get("request_start")
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        response.headers["X-Request-ID"] = g.get("request_id", "")
        if request.path in _QUIET_PATHS:
            return response

        extra = _request_extra(response, duration_ms)
        summary = f"{request.method} {request.path} {response.status_code} ({duration_ms:.0f}ms)"
        if response.status_code >= 500:
            logger.error("Server error: %s", summary, extra=extra)
        elif duration_ms > SLOW_THRESHOLD_MS:
            logger.warning("Slow request: %s", summary, extra=extra)
        elif request.method in _WRITE_METHODS and response.status_code < 400:
            logger.info("Write: %s", summary, extra=extra)
        else:
            logger.debug("Request: %s", summary, extra=extra)
        return response
