"""
Easy Note Backend: Health Check Route
=====================================

What:  GET /api/health for load balancer and uptime probes.
Why:   Probes need an unauthenticated endpoint that answers as long as the
       process is serving.
How:   Reports process liveness only. It deliberately does not call Gemini
       or Firebase, so a probe never spends provider quota.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from easynote import __version__
from easynote.schemas.ai import HealthResponse

SERVICE_NAME = "easy-note-backend"

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        version=__version__,
    )
