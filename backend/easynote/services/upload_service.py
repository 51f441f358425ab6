"""
Easy Note Backend: Audio Upload Buffer & Staging
================================================

What:  Filters uploaded audio and stages it on disk for the transcription
       adapter, with guaranteed cleanup.
Why:   The provider SDK uploads from a file path, but uploads arrive as an
       in-memory buffer. The staged file is the only shared resource this
       service touches, so it must never outlive its request.
How:   validate_audio() checks MIME/extension and size and returns an
       AudioPayload. staged_audio() is an async context manager that writes
       the payload under a unique name and deletes it on every exit path.
Who:   Called by the transcribe route (filter) and AIService (staging).

Filter Rules:
    1. Declared MIME type OR filename extension must be an allowed audio type
       (either one is enough; mobile clients often send octet-stream)
    2. Size ≤ settings.max_audio_size (25 MiB by default)

Temp File Lifecycle:
    ┌────────────┐   write    ┌───────────────┐  transcribe  ┌──────────┐
    │ AudioPayload│ ────────▶ │ audio_<ts>_<id>│ ───────────▶ │ provider │
    └────────────┘            └───────┬───────┘              └──────────┘
                                      │ finally: unlink (best effort)
                                      ▼
                                   (gone)
"""

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles

from easynote.config import settings
from easynote.exceptions import UploadRejectedError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed Audio Types ───────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "audio/m4a",
    "audio/x-m4a",
    "audio/mp4",
    "audio/mpeg",
    "audio/wav",
    "audio/x-wav",
    "audio/ogg",
    "audio/webm",
}

# Extension → MIME type handed to the provider when the declared type is unusable
EXTENSION_MIME_TYPES = {
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}

MIME_EXTENSIONS = {
    "audio/m4a": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/mp4": ".m4a",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
}

DEFAULT_EXTENSION = ".m4a"


@dataclass(frozen=True)
class AudioPayload:
    """
    A filtered audio upload, held in memory for the length of one request.

    mime_type is the type the provider will be told, which may differ from
    the client's declared type when that one was generic.
    """
    content: bytes
    declared_mime: str
    filename: str
    mime_type: str
    extension: str

    @property
    def size(self) -> int:
        return len(self.content)


class UploadService:
    """
    Filters audio uploads and manages their temporary on-disk copies.
    """

    def __init__(self, temp_dir: Optional[str] = None, max_size: Optional[int] = None):
        """
        Args:
            temp_dir: Override the staging directory (used in tests).
            max_size: Override the maximum accepted size in bytes.
        """
        self.temp_dir = Path(temp_dir or settings.audio_temp_dir)
        self.max_size = max_size or settings.max_audio_size

    # ── Filter ────────────────────────────────────────────────────────────

    def validate_audio(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> AudioPayload:
        """
        Apply the MIME/extension filter and the size limit.

        Raises:
            ValidationError:      no audio bytes were sent
            UploadRejectedError:  type not allowed (400) or too large (413)
        """
        if not content:
            raise ValidationError(message="No audio file provided", field="audio")

        filename = filename or ""
        declared_mime = (content_type or "").lower()
        extension = Path(filename).suffix.lower()

        mime_ok = declared_mime in ALLOWED_MIME_TYPES
        extension_ok = extension in EXTENSION_MIME_TYPES
        if not (mime_ok or extension_ok):
            raise UploadRejectedError(
                message="Invalid audio format",
                context={"declared_mime": declared_mime, "extension": extension},
            )

        if len(content) > self.max_size:
            raise UploadRejectedError(
                message="Audio file too large",
                status_code=413,
                context={"size": len(content), "max_size": self.max_size},
            )

        if extension_ok:
            staged_extension = extension
            mime_type = declared_mime if mime_ok else EXTENSION_MIME_TYPES[extension]
        else:
            staged_extension = MIME_EXTENSIONS.get(declared_mime, DEFAULT_EXTENSION)
            mime_type = declared_mime

        return AudioPayload(
            content=content,
            declared_mime=declared_mime,
            filename=filename,
            mime_type=mime_type,
            extension=staged_extension,
        )

    # ── Staging ───────────────────────────────────────────────────────────

    def _unique_path(self, extension: str) -> Path:
        # Millisecond timestamp plus a random component; concurrent requests never collide
        name = f"audio_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}{extension}"
        return self.temp_dir / name

    @asynccontextmanager
    async def staged_audio(self, payload: AudioPayload) -> AsyncIterator[Path]:
        """
        Write the payload to a uniquely named temp file and yield its path.

        The file is removed when the block exits, whether it returns normally,
        raises a ProviderError, or raises anything else. A write failure is
        re-raised after the partial file has been removed.
        """
        path = self._unique_path(payload.extension)
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(payload.content)
            logger.debug("Staged audio %s (%d bytes)", path.name, payload.size)
            yield path
        finally:
            await self.cleanup_file(path)

    async def cleanup_file(self, file_path) -> None:
        """
        Remove a staged file. Best effort: failures are logged, never raised.
        """
        path = Path(file_path)
        try:
            os.remove(path)
            logger.debug("Cleaned up staged audio: %s", path.name)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to clean up staged audio %s: %s", path.name, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()
