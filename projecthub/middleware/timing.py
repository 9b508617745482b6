"""
Request ids and timing for API calls.

Every response carries ``X-Request-ID`` (echoed from the request when the
client sent one) and ``X-Request-Duration-Ms``. API requests are logged with
their context: DEBUG normally, WARNING above ``SLOW_REQUEST_MS``, ERROR on 5xx.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000
_QUIET_PATHS = frozenset({"/api/v1/health"})


def _log_level(status: int, duration_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if duration_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    @app.before_request
    def _stamp_request():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _finish_request(response):
        started = g.get("request_start")
        if started is None:
            return response
        elapsed = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.get("request_id", "")
        response.headers["X-Request-Duration-Ms"] = f"{elapsed:.1f}"

        path = request.path
        if path.startswith("/api/") and path not in _QUIET_PATHS:
            logger.log(
                _log_level(response.status_code, elapsed),
                "%s %s -> %d (%.0fms)", request.method, path, response.status_code, elapsed,
                extra={
                    "request_id": g.get("request_id"),
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": elapsed,
                    "remote_addr": request.remote_addr,
                    "user_id": g.get("user_id"),
                    "project_id": (request.view_args or {}).get("project_id"),
                },
            )
        return response
