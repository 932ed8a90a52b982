"""
Route Map Backend: Request ID Middleware
=========================================

What:  Assigns a short correlation ID to each request and returns it in the
       `X-Request-ID` response header.
How:   Uses the client-sent `X-Request-ID` when present, else 8 hex chars of
       a UUID4. The ID is stored in a ContextVar (read by loggers and the
       exception handlers) and on `request.state`.

Error bodies carry the same ID as `request_id`, so a user reporting a failed
save can be matched to the log lines of that request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse or generate the request ID, expose it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
