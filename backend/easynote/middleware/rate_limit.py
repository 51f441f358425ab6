"""
Easy Note Backend: Rate Limiting Middleware
===========================================

What:  Per-IP sliding window rate limits with two budgets.
Why:   AI endpoints spend provider quota on every call; the rest of the API
       is cheap. A loose global budget plus a strict AI budget keeps both
       abuse and cost bounded.
How:   Each budget is a SlidingWindowLimiter keeping request timestamps per
       client IP. A request must pass the global budget, and /api/ai/*
       requests must also pass the AI budget.

Budgets (defaults, see config.py):
    global   200 requests / 15 minutes   every path except docs and health
    ai        20 requests / 1 minute     /api/ai/*

Algorithm: Sliding Window Log
    1. Drop timestamps older than the window
    2. If remaining count >= limit, reject with 429
    3. Otherwise record now and let the request through

Single-process only: state lives in this worker's memory. Multiple uvicorn
workers each enforce their own copy of the budget.
"""

import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from easynote.config import settings
from easynote.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

AI_PATH_PREFIX = "/api/ai"


class SlidingWindowLimiter:
    """
    One request budget, tracked per key (client IP).

    Limits are read through callables on every hit so tests and operators can
    change settings without rebuilding the middleware.
    """

    def __init__(
        self,
        name: str,
        max_requests: Callable[[], int],
        window_seconds: Callable[[], int],
        message: str,
    ):
        self.name = name
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self.message = message
        self._hits: Dict[str, List[float]] = defaultdict(list)
        self._total = 0

    def hit(self, key: str, now: Optional[float] = None) -> None:
        """
        Record one request for `key`.

        Raises:
            RateLimitExceededError: the key is over budget; nothing is recorded.
        """
        now = time.time() if now is None else now
        window = self._window_seconds()
        window_start = now - window

        timestamps = [ts for ts in self._hits[key] if ts > window_start]
        self._hits[key] = timestamps

        if len(timestamps) >= self._max_requests():
            # Seconds until the oldest request in the window expires
            retry_after = int(timestamps[0] + window - now) + 1
            raise RateLimitExceededError(
                message=self.message,
                retry_after=retry_after,
                context={"budget": self.name, "key": key, "count": len(timestamps)},
            )

        timestamps.append(now)
        self._total += 1
        if self._total % 1000 == 0:
            self._cleanup(window_start)

    def _cleanup(self, window_start: float) -> None:
        """Drop keys with no requests inside the window."""
        inactive = [key for key, stamps in self._hits.items() if not stamps or stamps[-1] <= window_start]
        for key in inactive:
            del self._hits[key]
        if inactive:
            logger.debug("%s limiter: cleaned up %d inactive keys", self.name, len(inactive))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the global budget to every request and the AI budget to /api/ai/*.

    Rejections are rendered here as 429 `{"error": ...}` with a Retry-After
    header. Middleware runs outside FastAPI's exception handlers, so the
    envelope is built directly.
    """

    EXCLUDED_PATHS = {"/api/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.global_limiter = SlidingWindowLimiter(
            name="global",
            max_requests=lambda: settings.rate_limit_requests,
            window_seconds=lambda: settings.rate_limit_window,
            message="Too many requests, please try again later",
        )
        self.ai_limiter = SlidingWindowLimiter(
            name="ai",
            max_requests=lambda: settings.ai_rate_limit_requests,
            window_seconds=lambda: settings.ai_rate_limit_window,
            message="AI rate limit exceeded, please try again later",
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's address unless uvicorn runs with --proxy-headers
        client_ip = request.client.host if request.client else "unknown"

        try:
            self.global_limiter.hit(client_ip)
            if path.startswith(AI_PATH_PREFIX):
                self.ai_limiter.hit(client_ip)
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for IP %s (%s budget, %d requests in window)",
                client_ip,
                exc.context["budget"],
                exc.context["count"],
            )
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.message},
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
