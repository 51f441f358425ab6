"""
Easy Note Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions, each bound to an HTTP status code.
Why:   Services raise domain errors; global handlers in main.py turn them into
       the `{"error": "<message>"}` envelope every client depends on.
How:   Each exception carries a client-safe message and an optional context
       dict. Context is logged server-side and never returned.

Exception Hierarchy:
    EasyNoteError (base)              → 500
    ├── ValidationError               → 400 (missing / undersized input)
    ├── UploadRejectedError           → 400 or 413 (audio filter)
    ├── AuthenticationError           → 401
    ├── RateLimitExceededError        → 429
    └── ProviderError                 → 500 (model provider failed)

Not every failure is an exception here. Malformed JSON coming back from the
model is an expected outcome, handled by services/coercion.py as a fallback
value, and never raised across the handler boundary.
"""

from typing import Any, Dict, Optional


class EasyNoteError(Exception):
    """
    Base exception for all Easy Note application errors.

    Attributes:
        message:     Client-facing error string (safe to return in API response)
        context:     Debug info (logged but NOT returned to client)
        status_code: HTTP status the global handler responds with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(EasyNoteError):
    """
    Raised when request input fails a precondition.

    The message is always one of the fixed strings owned by the task
    (e.g. "Content too short"), never derived from provider output.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UploadRejectedError(EasyNoteError):
    """
    Raised by the upload buffer when an audio part fails the MIME/extension
    filter (400) or exceeds the configured size (413). Surfaces before the
    transcription handler does any work.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid audio format",
        status_code: int = 400,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.status_code = status_code


class AuthenticationError(EasyNoteError):
    """
    Raised when the bearer credential is missing, malformed, or rejected by
    the Auth Verifier.
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Invalid or expired token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(EasyNoteError):
    """
    Raised when a client exceeds one of the per-IP budgets.

    The middleware renders it directly (middleware runs outside the
    route exception handlers), so it also carries retry_after for the
    Retry-After header.
    """

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ProviderError(EasyNoteError):
    """
    Raised when a call to the model provider fails at the transport or API
    level.

    The adapter raises it with a generic message; the task service re-raises
    with its own fixed message ("Summarization failed", ...). The original
    exception travels in context["cause"] for the log line only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "AI provider request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
