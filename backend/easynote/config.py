"""
Easy Note Backend: Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again in the app lifespan.
"""

import tempfile
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments MUST set
    GEMINI_API_KEY and the Firebase service account (or run somewhere that
    provides Application Default Credentials).
    """

    # ── Google Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key used for completions and transcription",
    )

    # What: Model for summarize / tags / checklist / detect-type
    gemini_model: str = Field(default="gemini-1.5-flash")

    # What: Model for audio transcription (must accept audio parts)
    gemini_transcription_model: str = Field(default="gemini-1.5-flash")

    # What: Transport timeout handed to every provider call, in seconds
    # Why here: The orchestration layer has no timeout of its own, so a hung
    # provider call is bounded only by this value.
    provider_timeout: int = Field(default=60, ge=5, le=600)

    # ── Firebase (Auth Verifier) ──────────────────────────────────────────
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(default=None)

    @property
    def firebase_service_account(self) -> Optional[dict]:
        """
        What: Service-account dict for firebase_admin.credentials.Certificate.
        Returns None when any of the three fields is missing, in which case
        Application Default Credentials are used instead.
        """
        if not (self.firebase_project_id and self.firebase_client_email and self.firebase_private_key):
            return None
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "client_email": self.firebase_client_email,
            # Env files usually carry the PEM with literal "\n" sequences
            "private_key": self.firebase_private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    # ── Audio Uploads ─────────────────────────────────────────────────────
    # What: Maximum accepted audio upload, in bytes (25 MiB)
    max_audio_size: int = Field(default=25 * 1024 * 1024, ge=1_048_576, le=104_857_600)

    # What: Directory for staging audio before transcription
    audio_temp_dir: str = Field(default_factory=tempfile.gettempdir)

    # ── HTTP / Server ─────────────────────────────────────────────────────
    allowed_origins: str = Field(default="*")

    @property
    def allowed_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # What: development | production
    # Production hides raw exception messages from 500 responses.
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"development", "production", "test"}:
            raise ValueError(f"Invalid environment '{v}'. Must be development, production or test")
        return lower

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Global budget: every path, per client IP
    rate_limit_requests: int = Field(default=200, ge=1, le=100_000)
    rate_limit_window: int = Field(default=15 * 60, ge=1, le=86_400)  # seconds

    # AI budget: /api/ai/* only, stricter
    ai_rate_limit_requests: int = Field(default=20, ge=1, le=10_000)
    ai_rate_limit_window: int = Field(default=60, ge=1, le=3_600)  # seconds

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        Raises ValueError listing every missing setting.
        """
        errors = []
        if not self.gemini_api_key:
            errors.append(
                "GEMINI_API_KEY is not set. "
                "Get a key at https://aistudio.google.com/app/apikey"
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
