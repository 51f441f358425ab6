# Middleware package init
"""
Easy Note Backend: Middleware Package
=====================================

Middleware Chain (request direction):
    [CORS] → [Rate Limit] → [Request ID] → [Logging] → [Security Headers] → [GZip] → Route

    CORS is outermost: preflights are answered before any budget is counted,
    and 429 responses still carry Access-Control-Allow-Origin.
    Rate limiting runs next so over-budget requests cost nothing else.
    Request ID runs before logging so the access line carries the ID.

Authentication is not middleware: it is a dependency on the /api/ai router
(see dependencies.require_identity), so /api/health stays open.
"""
