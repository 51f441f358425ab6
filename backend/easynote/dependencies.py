"""FastAPI dependency providers for process-wide collaborators and auth."""

import logging
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from easynote.exceptions import AuthenticationError
from easynote.services.ai_service import AIService
from easynote.services.auth_service import AuthVerifier, FirebaseAuthVerifier, Identity
from easynote.services.gemini_service import GeminiService
from easynote.services.upload_service import UploadService, upload_service

logger = logging.getLogger(__name__)


# Each provider builds its object once per process and returns the same
# instance afterwards. Tests replace them through app.dependency_overrides.

@lru_cache(maxsize=1)
def get_gemini_service() -> GeminiService:
    return GeminiService()


@lru_cache(maxsize=1)
def get_auth_verifier() -> AuthVerifier:
    return FirebaseAuthVerifier()


def get_upload_service() -> UploadService:
    return upload_service


@lru_cache(maxsize=1)
def _default_ai_service() -> AIService:
    gemini = get_gemini_service()
    return AIService(completion=gemini, transcription=gemini, uploads=upload_service)


def get_ai_service() -> AIService:
    return _default_ai_service()


async def require_identity(
    request: Request,
    verifier: Annotated[AuthVerifier, Depends(get_auth_verifier)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Identity:
    """
    Resolve the caller from `Authorization: Bearer <token>`.

    The Identity is also stored on request.state so middleware and log lines
    can reach it.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError(message="Missing or invalid authorization header")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError(message="Missing or invalid authorization header")

    identity = await verifier.verify(token)
    request.state.identity = identity
    return identity


AIServiceDep = Annotated[AIService, Depends(get_ai_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]
IdentityDep = Annotated[Identity, Depends(require_identity)]
