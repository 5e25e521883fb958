"""
Request timing and correlation ids.

Every response gets ``X-Request-ID`` (echoed from the request when the client
sent one) and ``X-Request-Duration-Ms``. Requests slower than
SLOW_REQUEST_MS are logged at WARNING and 5xx responses at ERROR; the rest
go to DEBUG. Health checks are not logged.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000
_UNLOGGED_PREFIXES = ("/api/v1/health",)


def _request_extra(response, duration_ms: float) -> dict:
    return {
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": round(duration_ms, 1),
        "remote_addr": request.remote_addr,
        "request_id": g.get("request_id"),
        "lease_comp_id": (request.view_args or {}).get("comp_id"),
    }


def init_request_timing(app: Flask):
    """Register the before/after request hooks."""

    @app.before_request
    def _stamp_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _finish_request(response):
        started = g.get("request_started")
        if started is None:
            return response
        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.get("request_id", "")
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path.startswith(_UNLOGGED_PREFIXES):
            return response

        extra = _request_extra(response, duration_ms)
        line = "%s %s -> %d in %.0fms"
        args = (request.method, request.path, response.status_code, duration_ms)
        if response.status_code >= 500:
            logger.error(line, *args, extra=extra)
        elif duration_ms > SLOW_REQUEST_MS:
            logger.warning("Slow request: " + line, *args, extra=extra)
        else:
            logger.debug(line, *args, extra=extra)
        return response
