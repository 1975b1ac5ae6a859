"""
LegalTendr Backend — Access Log Middleware
============================================

What:  One log line per HTTP request on the `legaltendr.access` logger.
How:   Times the request, then logs method, path, status, duration,
       request ID and client IP at a level chosen by the status class.
When:  After RequestIDMiddleware, so the request ID is already known.

Privacy:
    Bodies are never logged: they carry passwords, messages and case
    descriptions. Query strings are dropped too (filters can identify people).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from legaltendr.middleware.request_id import request_id_var

logger = logging.getLogger("legaltendr.access")

# Polled by Docker and load balancers every few seconds
QUIET_PATHS = {"/health"}


def status_log_level(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request except health probes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        # Set by get_current_user on authenticated routes
        user_id = getattr(request.state, "user_id", None) or "-"

        logger.log(
            status_log_level(status),
            "%s %s %d %.1fms [%s] from %s user=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )
        return response
