"""
Easy Note Backend: Upload Service Unit Tests
============================================

What:  Tests for the audio filter and the staged temp-file lifecycle.

Test Strategy:
    ✅ MIME-only and extension-only uploads both pass the filter
    ✅ Non-audio uploads rejected with 400, oversize with 413
    ✅ Staged file exists inside the block and is gone after it, on every path
"""

import pytest
from unittest.mock import patch

from easynote.exceptions import UploadRejectedError, ValidationError
from easynote.services.upload_service import UploadService


class TestAudioFilter:

    def setup_method(self):
        self.service = UploadService(temp_dir="/tmp", max_size=1_048_576)

    def test_allowed_mime_type(self):
        payload = self.service.validate_audio("recording", "audio/webm", b"abc")
        assert payload.mime_type == "audio/webm"
        assert payload.extension == ".webm"

    def test_allowed_extension_with_generic_mime(self):
        payload = self.service.validate_audio("memo.M4A", "application/octet-stream", b"abc")
        assert payload.mime_type == "audio/mp4"
        assert payload.extension == ".m4a"

    def test_mp3_extension(self):
        payload = self.service.validate_audio("song.mp3", None, b"abc")
        assert payload.mime_type == "audio/mpeg"

    @pytest.mark.parametrize("filename, mime", [
        ("photo.jpg", "image/jpeg"),
        ("notes.txt", "text/plain"),
        ("noextension", None),
    ])
    def test_non_audio_rejected(self, filename, mime):
        with pytest.raises(UploadRejectedError) as exc_info:
            self.service.validate_audio(filename, mime, b"abc")
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid audio format"

    def test_oversize_rejected_with_413(self):
        with pytest.raises(UploadRejectedError) as exc_info:
            self.service.validate_audio("memo.m4a", "audio/m4a", b"x" * (1_048_576 + 1))
        assert exc_info.value.status_code == 413

    def test_exactly_max_size_accepted(self):
        payload = self.service.validate_audio("memo.m4a", "audio/m4a", b"x" * 1_048_576)
        assert payload.size == 1_048_576

    def test_empty_upload_rejected(self):
        with pytest.raises(ValidationError, match="No audio file provided"):
            self.service.validate_audio("memo.m4a", "audio/m4a", b"")


class TestStaging:

    @pytest.mark.asyncio
    async def test_file_exists_inside_block_and_removed_after(self, tmp_path):
        service = UploadService(temp_dir=str(tmp_path))
        payload = service.validate_audio("memo.wav", "audio/wav", b"RIFF....")

        async with service.staged_audio(payload) as path:
            assert path.exists()
            assert path.read_bytes() == b"RIFF...."
            assert path.suffix == ".wav"
            assert path.name.startswith("audio_")

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_file_removed_when_block_raises(self, tmp_path):
        service = UploadService(temp_dir=str(tmp_path))
        payload = service.validate_audio("memo.ogg", "audio/ogg", b"OggS")

        with pytest.raises(RuntimeError):
            async with service.staged_audio(payload) as path:
                raise RuntimeError("provider exploded")

        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_creates_missing_temp_dir(self, tmp_path):
        target = tmp_path / "nested" / "staging"
        service = UploadService(temp_dir=str(target))
        payload = service.validate_audio("memo.m4a", "audio/m4a", b"data")

        async with service.staged_audio(payload) as path:
            assert path.parent == target

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_swallowed(self, tmp_path):
        service = UploadService(temp_dir=str(tmp_path))
        payload = service.validate_audio("memo.m4a", "audio/m4a", b"data")

        with patch("easynote.services.upload_service.os.remove", side_effect=PermissionError("read-only")):
            async with service.staged_audio(payload) as path:
                pass
        # No exception escaped; the file is still there because remove was mocked
        assert path.exists()

    @pytest.mark.asyncio
    async def test_cleanup_missing_file_is_noop(self, tmp_path):
        service = UploadService(temp_dir=str(tmp_path))
        await service.cleanup_file(tmp_path / "never-existed.m4a")

    def test_unique_names(self, tmp_path):
        service = UploadService(temp_dir=str(tmp_path))
        names = {service._unique_path(".m4a").name for _ in range(100)}
        assert len(names) == 100
