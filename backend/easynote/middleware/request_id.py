"""
Easy Note Backend: Request ID Middleware
========================================

What:  Tags every request with a short correlation ID.
Why:   Provider failures are only described in server logs; the client gets
       a generic message. The ID in the X-Request-ID response header is what
       lets support find the matching log lines.
How:   Reuses a client-sent X-Request-ID (the mobile app sets one per user
       action) or generates an 8-char UUID prefix. The value lives in a
       ContextVar for the logging filter and on request.state for handlers.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDFilter(logging.Filter):
    """Adds `request_id` to every log record so the format string can use it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
