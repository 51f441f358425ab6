"""
Easy Note Backend: Google Gemini Adapter
========================================

What:  Concrete CompletionAdapter and TranscriptionAdapter backed by the
       Google Gemini API (google-generativeai SDK).
Why:   One provider covers both boundaries: chat completions for the text
       tasks, and audio understanding for transcription.
How:   Translates the provider-neutral call shape (role-tagged messages,
       max tokens, temperature, JSON hint) into Gemini's GenerationConfig,
       and wraps every SDK failure in ProviderError.
Who:   Constructed once per process (see dependencies.get_gemini_service),
       shared read-only by every request.
When:  Once per AI request; there is no retry layer. A failed call fails the
       request.

Call Mapping:
    messages[role="system"]  → GenerativeModel(system_instruction=...)
    messages[role="user"]    → contents, in order
    max_tokens               → GenerationConfig.max_output_tokens
    temperature              → GenerationConfig.temperature
    json_response=True       → GenerationConfig.response_mime_type="application/json"
    transcription            → upload_file(path) + "text/plain" response
"""

import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

import google.generativeai as genai
from starlette.concurrency import run_in_threadpool

from easynote.config import settings
from easynote.exceptions import ProviderError
from easynote.services.llm_base import ChatMessage, CompletionAdapter, TranscriptionAdapter

logger = logging.getLogger(__name__)


class GeminiService(CompletionAdapter, TranscriptionAdapter):
    """
    Google Gemini implementation of both provider boundaries.

    State:
        Only immutable configuration (model names, timeout). The SDK is
        configured with the API key once, in __init__. No per-request state
        is kept on the instance, so concurrent requests share it safely.
    """

    TRANSCRIBE_PROMPT = (
        "Transcribe the speech in this audio recording verbatim. "
        "The spoken language is '{language}'. "
        "Return only the transcript as plain text, with no commentary, "
        "labels, timestamps or formatting."
    )

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        transcription_model_name: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        api_key = api_key if api_key is not None else settings.gemini_api_key
        # The SDK keeps auth in module-level state
        if api_key:
            genai.configure(api_key=api_key)

        self.model_name = model_name or settings.gemini_model
        self.transcription_model_name = transcription_model_name or settings.gemini_transcription_model
        self.timeout = timeout or settings.provider_timeout

        logger.info(
            "GeminiService initialized with model=%s, transcription_model=%s, timeout=%ds",
            self.model_name,
            self.transcription_model_name,
            self.timeout,
        )

    # ── Completion ────────────────────────────────────────────────────────

    def _build_model(self, model_name: str, system_instruction: Optional[str] = None):
        # GenerativeModel is a local config wrapper; building one makes no network call
        return genai.GenerativeModel(model_name, system_instruction=system_instruction)

    @staticmethod
    def _split_messages(messages: Sequence[ChatMessage]):
        """Separates system instructions from the user turns Gemini expects as contents."""
        system_parts: List[str] = []
        contents: List[dict] = []
        for message in messages:
            if message.role == "system":
                system_parts.append(message.content)
            else:
                contents.append({"role": "user", "parts": [message.content]})
        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    @staticmethod
    def _response_text(response) -> Optional[str]:
        """
        Reads the text of a Gemini response.

        `response.text` raises ValueError when the candidate has no text
        parts (empty output, or blocked by safety filters). That is an empty
        answer, not a transport failure, so it maps to None.
        """
        try:
            return response.text
        except ValueError:
            return None

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: float,
        json_response: bool = False,
    ) -> Optional[str]:
        call_id = str(uuid.uuid4())[:8]
        system_instruction, contents = self._split_messages(messages)

        generation_config = genai.GenerationConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
            response_mime_type="application/json" if json_response else None,
        )

        start_time = time.time()
        try:
            model = self._build_model(self.model_name, system_instruction)
            response = await model.generate_content_async(
                contents,
                generation_config=generation_config,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "[%s] Gemini completion failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise ProviderError(
                context={"call_id": call_id, "cause": str(e), "error_type": type(e).__name__},
            ) from e

        text = self._response_text(response)
        logger.info(
            "[%s] Gemini completion finished in %.0fms (json=%s, %d chars)",
            call_id,
            (time.time() - start_time) * 1000,
            json_response,
            len(text or ""),
        )
        return text

    # ── Transcription ─────────────────────────────────────────────────────

    async def transcribe(self, audio_path: str, mime_type: str, language: str) -> str:
        call_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        logger.info(
            "[%s] Starting Gemini transcription for %s (language=%s)",
            call_id,
            Path(audio_path).name,  # filename only, not the full path
            language,
        )

        remote_file = None
        try:
            # upload_file is blocking; keep it off the event loop
            remote_file = await run_in_threadpool(
                genai.upload_file, path=audio_path, mime_type=mime_type
            )
            model = self._build_model(self.transcription_model_name)
            response = await model.generate_content_async(
                [self.TRANSCRIBE_PROMPT.format(language=language), remote_file],
                generation_config=genai.GenerationConfig(
                    temperature=0.0,
                    response_mime_type="text/plain",
                ),
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            logger.error(
                "[%s] Gemini transcription failed after %.0fms: %s",
                call_id,
                (time.time() - start_time) * 1000,
                str(e),
            )
            raise ProviderError(
                context={"call_id": call_id, "cause": str(e), "error_type": type(e).__name__},
            ) from e
        finally:
            if remote_file is not None:
                await self._delete_remote_file(remote_file, call_id)

        text = self._response_text(response) or ""
        logger.info(
            "[%s] Gemini transcription finished in %.0fms, %d chars",
            call_id,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    async def _delete_remote_file(self, remote_file, call_id: str) -> None:
        """Best-effort removal of the uploaded audio from provider storage."""
        try:
            await run_in_threadpool(genai.delete_file, remote_file.name)
        except Exception as e:
            # Provider files expire on their own; a failed delete never fails the request
            logger.warning("[%s] Failed to delete remote audio %s: %s", call_id, remote_file.name, str(e))
