"""
Route Map Backend: Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration,
       request ID and client IP.
How:   Measures from middleware entry to response return, so the figure
       includes every upstream call the handler made (store, Overpass,
       boundary API).

Skipped: `/health` (polled by the platform) and OPTIONS preflights, which
are answered before reaching this middleware anyway.

Log level by status class:
    5xx → ERROR, 4xx → WARNING, else INFO

Request bodies and query values are never logged; they contain addresses
and business numbers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from routemap.middleware.request_id import request_id_var

logger = logging.getLogger("routemap.access")

SKIPPED_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        method = request.method
        path = request.url.path
        if path in SKIPPED_PATHS or method == "OPTIONS":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
