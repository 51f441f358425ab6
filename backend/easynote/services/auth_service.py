"""
Easy Note Backend: Auth Verifier
================================

What:  Verifies client bearer tokens and returns the caller's Identity.
Why:   Every /api/ai/* call spends provider quota, so every one must come from
       a signed-in Easy Note user.
How:   AuthVerifier is the abstract boundary; FirebaseAuthVerifier checks
       Firebase ID tokens with firebase-admin. The gateway trusts whatever
       Identity the verifier returns and never inspects token internals.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from starlette.concurrency import run_in_threadpool

from easynote.config import settings
from easynote.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "easynote-auth"


@dataclass(frozen=True)
class Identity:
    """Caller identity, attached to the request for its lifetime. Read-only."""
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None


class AuthVerifier(ABC):

    @abstractmethod
    async def verify(self, token: str) -> Identity:
        """
        Verify a raw bearer token.

        Raises:
            AuthenticationError: the token was rejected.
        """
        ...


class FirebaseAuthVerifier(AuthVerifier):
    """
    Firebase ID token verification via firebase-admin.

    The Firebase app is initialized once, in __init__, under a dedicated name
    so it never collides with a default app created elsewhere in the process.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app or self._initialize_app()

    @staticmethod
    def _initialize_app() -> firebase_admin.App:
        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            pass

        service_account = settings.firebase_service_account
        if service_account:
            credential = credentials.Certificate(service_account)
            logger.info("Firebase auth initialized with service account for %s", settings.firebase_project_id)
        else:
            credential = credentials.ApplicationDefault()
            logger.info("Firebase auth initialized with Application Default Credentials")

        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        return firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)

    async def verify(self, token: str) -> Identity:
        try:
            # verify_id_token may fetch Google's public certs; keep it off the event loop
            decoded = await run_in_threadpool(auth.verify_id_token, token, app=self.app)
        except (ValueError, FirebaseError) as e:
            logger.warning("Token verification failed: %s", getattr(e, "code", type(e).__name__))
            raise AuthenticationError(
                message="Invalid or expired token",
                context={"error_type": type(e).__name__},
            ) from e

        return Identity(
            uid=decoded["uid"],
            email=decoded.get("email"),
            name=decoded.get("name"),
        )
