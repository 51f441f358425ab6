"""
Easy Note Backend: Request Logging Middleware
=============================================

What:  One access log line per request: method, path, status, duration,
       request ID, client IP, and the authenticated uid when there is one.
Why:   AI calls take seconds and fail in ways the client never sees in
       detail. Duration plus request ID is the minimum needed to debug them.
How:   Times the downstream call and logs at a level chosen by status class
       (5xx ERROR, 4xx WARNING, else INFO) on the `easynote.access` logger.

Privacy: request bodies (note text, audio) and the Authorization header are
never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from easynote.middleware.request_id import request_id_var

logger = logging.getLogger("easynote.access")

# Probes hit this every few seconds
SKIPPED_PATHS = {"/api/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        identity = getattr(request.state, "identity", None)
        uid = identity.uid if identity is not None else "-"

        logger.log(
            log_level,
            "%s %s %d %.1fms uid=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            uid,
            client_ip,
            extra={
                "request_id": request_id_var.get(""),
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "uid": uid,
            },
        )
        return response
