"""
Easy Note Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests never reach Gemini or Firebase. Both sit behind FastAPI
       dependencies, so every HTTP test runs against a fresh app with the
       provider and the Auth Verifier replaced by mocks.

Fixture Hierarchy:
    ├── provider:        MagicMock with AsyncMock complete() / transcribe()
    ├── verifier:        AsyncMock-backed AuthVerifier accepting "valid-token"
    ├── staging_dir:     per-test temp directory for staged audio
    ├── uploads:         UploadService staging into staging_dir
    ├── ai_service:      AIService wired to provider + uploads
    ├── app:             fresh FastAPI app with dependency overrides
    ├── test_client:     HTTPX AsyncClient over ASGITransport
    └── auth_headers:    Authorization header accepted by `verifier`
"""

import os
import tempfile

# Override settings BEFORE any easynote import reads them
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["AUDIO_TEMP_DIR"] = tempfile.mkdtemp(prefix="easynote_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AI_RATE_LIMIT_REQUESTS"] = "10000"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from easynote.dependencies import get_ai_service, get_auth_verifier, get_upload_service
from easynote.exceptions import AuthenticationError
from easynote.main import create_app
from easynote.services.ai_service import AIService
from easynote.services.auth_service import AuthVerifier, Identity
from easynote.services.upload_service import UploadService

VALID_TOKEN = "valid-token"

TEST_IDENTITY = Identity(uid="user-123", email="user@example.com", name="Test User")

# Long enough for every task's minimum (summarize needs 50 trimmed chars)
LONG_NOTE = (
    "Buy milk, eggs and bread tomorrow morning. Call the dentist to move the "
    "appointment to Friday and pay the electricity bill before the weekend."
)


@pytest.fixture
def provider():
    """
    Mock provider implementing both adapter interfaces.

    Usage:
        provider.complete.return_value = '{"tags": ["work"]}'
        provider.complete.side_effect = ProviderError()
    """
    mock = MagicMock()
    mock.complete = AsyncMock(return_value=None)
    mock.transcribe = AsyncMock(return_value="")
    return mock


class FakeVerifier(AuthVerifier):
    """Accepts VALID_TOKEN, rejects everything else."""

    def __init__(self):
        self.calls = []

    async def verify(self, token: str) -> Identity:
        self.calls.append(token)
        if token != VALID_TOKEN:
            raise AuthenticationError(message="Invalid or expired token")
        return TEST_IDENTITY


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def uploads(staging_dir):
    return UploadService(temp_dir=str(staging_dir))


@pytest.fixture
def ai_service(provider, uploads):
    return AIService(completion=provider, transcription=provider, uploads=uploads)


@pytest.fixture
def app(ai_service, verifier, uploads):
    """A fresh app per test, so rate-limit windows never leak between tests."""
    application = create_app()
    application.dependency_overrides[get_ai_service] = lambda: ai_service
    application.dependency_overrides[get_auth_verifier] = lambda: verifier
    application.dependency_overrides[get_upload_service] = lambda: uploads
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False: unhandled errors come back as the 500
    envelope instead of propagating into the test.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def long_note():
    return LONG_NOTE
