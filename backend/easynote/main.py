"""
Easy Note Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   Middleware order, exception handlers, routers, and lifecycle are
       assembled in one place.
How:   create_app() returns a configured FastAPI instance; `app` at module
       level is what uvicorn serves (uvicorn easynote.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: CORS → RateLimit → RequestID → Logging →    │
    │              SecurityHeaders → GZip                      │
    │                                                          │
    │  Routes:  /api/ai/* (Bearer auth)    /api/health         │
    │                                                          │
    │  Errors:  every 4xx/5xx body is {"error": "<message>"}   │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from easynote import __version__
from easynote.config import settings
from easynote.dependencies import get_auth_verifier, get_gemini_service
from easynote.exceptions import EasyNoteError
from easynote.middleware.logging import RequestLoggingMiddleware
from easynote.middleware.rate_limit import RateLimitMiddleware
from easynote.middleware.request_id import RequestIDFilter, RequestIDMiddleware, request_id_var
from easynote.middleware.security_headers import SecurityHeadersMiddleware
from easynote.routes import ai, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s

    Called once from the lifespan, before anything else logs.
    """
    handler = logging.StreamHandler(sys.stdout)  # containers capture stdout
    handler.addFilter(RequestIDFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Third-party libraries that log every call at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check, provider and verifier construction.
    Shutdown: log only; the service holds no connections of its own.
    """
    setup_logging()
    logger.info("Easy Note backend %s starting up (environment=%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /api/health must still answer, AI calls will fail with 500
        logger.error("Configuration error: %s", str(e))

    # Build the process-wide collaborators now rather than on the first request
    try:
        get_gemini_service()
        get_auth_verifier()
    except Exception as e:
        logger.error("Failed to initialize provider clients: %s", str(e), exc_info=True)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Easy Note backend shutting down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the uniform `{"error": message}` envelope.

    Handler table:
        EasyNoteError (and subclasses)  → exc.status_code, exc.message
        RequestValidationError          → 400 "Invalid request body"
        404 / 405 from routing          → 404 "Route not found"
        Exception                       → 500, message masked in production

    Context dicts and tracebacks are logged, never returned.
    """

    @app.exception_handler(EasyNoteError)
    async def handle_app_error(request: Request, exc: EasyNoteError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        headers = None
        if getattr(exc, "retry_after", None):
            headers = {"Retry-After": str(exc.retry_after)}
        return error_response(exc.status_code, exc.message, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), exc.errors())
        return error_response(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods both read as "no such route"
        if exc.status_code in (404, 405):
            return error_response(404, "Route not found")
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unhandled error: %s", request_id_var.get(""), str(exc), exc_info=True)
        message = "Internal server error" if settings.is_production else str(exc)
        return error_response(500, message)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Easy Note API",
        description=(
            "AI gateway for Easy Note: transcription, summaries, tags, checklists and "
            "note-type detection behind Firebase authentication."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition (last added runs first)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)
    # Outermost: answers preflights before any budget is spent and decorates 429s
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(ai.router)

    return app


app = create_app()
