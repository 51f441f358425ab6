"""
Easy Note Backend: AI Task Orchestrator
=======================================

What:  The five AI tasks: transcribe, summarize, tags, checklist, detect-type.
Why:   This is where the decision logic lives. Routes stay thin; adapters know
       nothing about tasks; coercion knows nothing about HTTP.
How:   Every text task is the same single-pass pipeline, parameterized by a
       row in TASKS:

           validate (min length) → truncate → prompt → complete → coerce

       Each stage either proceeds or fails fast with the task's designated
       error. There is no retry, no backoff, and no partial success.

Failure Mapping:
    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ Condition                │ Outcome                                  │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ content below minimum    │ ValidationError(task.too_short_message)  │
    │ adapter raised           │ ProviderError(task.failure_message)      │
    │ output unparsable        │ task default (tags/checklist/detect-type)│
    │ output empty (summarize) │ summary=None                             │
    └──────────────────────────┴──────────────────────────────────────────┘
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from easynote.exceptions import EasyNoteError, ProviderError, ValidationError
from easynote.schemas.ai import ChecklistItem
from easynote.services.coercion import (
    Coerced,
    coerce_checklist,
    coerce_content_type,
    coerce_tags,
)
from easynote.services.llm_base import ChatMessage, CompletionAdapter, TranscriptionAdapter
from easynote.services.upload_service import AudioPayload, UploadService, upload_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskSpec:
    """
    Fixed parameters of one text task.

    min_length:   trimmed content shorter than this is rejected
    max_chars:    content is cut to this many characters before prompting
    max_tokens:   generation length bound
    temperature:  sampling temperature
    json_response: ask the provider for a JSON object
    """
    name: str
    system_prompt: str
    min_length: int
    max_chars: int
    max_tokens: int
    temperature: float
    json_response: bool
    too_short_message: str
    failure_message: str
    user_prefix: str = ""


TASKS: Dict[str, TaskSpec] = {
    "summarize": TaskSpec(
        name="summarize",
        system_prompt=(
            "You are a helpful assistant that summarizes notes concisely. "
            "Respond with a 1-3 sentence summary. Be direct and informative. No preamble."
        ),
        user_prefix="Summarize this note:\n\n",
        min_length=50,
        max_chars=4000,
        max_tokens=150,
        temperature=0.3,
        json_response=False,
        too_short_message="Content too short to summarize",
        failure_message="Summarization failed",
    ),
    "tags": TaskSpec(
        name="tags",
        system_prompt=(
            "Generate 3-6 relevant single-word or two-word tags for the note content. "
            'Return only a JSON object of the form {"tags": ["tag", ...]} with lowercase strings. '
            "No explanation."
        ),
        min_length=20,
        max_chars=2000,
        max_tokens=80,
        temperature=0.3,
        json_response=True,
        too_short_message="Content too short",
        failure_message="Tag generation failed",
    ),
    "checklist": TaskSpec(
        name="checklist",
        system_prompt=(
            'Extract actionable items from the text and return them as a JSON object with a "items" array. '
            'Each item has "text" (string) and "done" (boolean, default false). No explanation.'
        ),
        min_length=10,
        max_chars=2000,
        max_tokens=400,
        temperature=0.2,
        json_response=True,
        too_short_message="Content too short",
        failure_message="Checklist conversion failed",
    ),
    "detect_type": TaskSpec(
        name="detect_type",
        system_prompt=(
            'Classify this note into exactly ONE category. Return JSON with "type" key.\n'
            "Categories: shopping, medicine, reminder, recipe, meeting, travel, fitness, finance, general.\n"
            'Example: {"type": "shopping"}'
        ),
        min_length=10,
        max_chars=1000,
        max_tokens=20,
        temperature=0.1,
        json_response=True,
        too_short_message="Content too short",
        failure_message="Content detection failed",
    ),
}

DEFAULT_LANGUAGE = "en"


class AIService:
    """
    Orchestrates the AI tasks against a completion and a transcription adapter.

    Holds only references to process-wide collaborators; no per-request state.
    """

    def __init__(
        self,
        completion: CompletionAdapter,
        transcription: TranscriptionAdapter,
        uploads: Optional[UploadService] = None,
    ):
        self.completion = completion
        self.transcription = transcription
        self.uploads = uploads or upload_service

    # ── Shared pipeline ───────────────────────────────────────────────────

    @staticmethod
    def _check_length(task: TaskSpec, content: Optional[str]) -> str:
        if not isinstance(content, str) or len(content.strip()) < task.min_length:
            raise ValidationError(message=task.too_short_message, field="content")
        return content

    @staticmethod
    def build_messages(task: TaskSpec, content: str) -> List[ChatMessage]:
        """System instruction plus the (truncated) note as the user turn."""
        return [
            ChatMessage(role="system", content=task.system_prompt),
            ChatMessage(role="user", content=f"{task.user_prefix}{content[:task.max_chars]}"),
        ]

    async def _run(self, task: TaskSpec, content: Optional[str]) -> Optional[str]:
        """Validate, prompt, and call the completion adapter. Returns raw text."""
        content = self._check_length(task, content)
        try:
            return await self.completion.complete(
                self.build_messages(task, content),
                max_tokens=task.max_tokens,
                temperature=task.temperature,
                json_response=task.json_response,
            )
        except Exception as e:
            logger.error("%s: provider call failed: %s", task.name, str(e), exc_info=not isinstance(e, ProviderError))
            raise ProviderError(
                message=task.failure_message,
                context={"task": task.name, "cause": str(e)},
            ) from e

    @staticmethod
    def _log_fallback(task: TaskSpec, result: Coerced) -> None:
        if result.is_fallback:
            logger.warning("%s: using default result (%s)", task.name, result.reason)

    # ── Tasks ─────────────────────────────────────────────────────────────

    async def summarize(self, content: Optional[str]) -> Optional[str]:
        task = TASKS["summarize"]
        raw = await self._run(task, content)
        # No synthesized fallback sentence: empty output stays absent
        return raw.strip() if raw else None

    async def generate_tags(self, content: Optional[str]) -> list:
        task = TASKS["tags"]
        result = coerce_tags(await self._run(task, content))
        self._log_fallback(task, result)
        return result.value

    async def build_checklist(self, content: Optional[str]) -> List[ChecklistItem]:
        task = TASKS["checklist"]
        result = coerce_checklist(await self._run(task, content))
        self._log_fallback(task, result)
        return result.value

    async def detect_type(self, content: Optional[str]) -> str:
        task = TASKS["detect_type"]
        result = coerce_content_type(await self._run(task, content))
        self._log_fallback(task, result)
        return result.value

    async def transcribe(self, payload: AudioPayload, language: Optional[str] = None) -> str:
        """
        Stage the audio, transcribe it, and return the trimmed transcript.

        The staged file is removed before this method returns or raises.
        Provider detail never reaches the client: every failure surfaces as
        "Transcription failed".
        """
        language = language or DEFAULT_LANGUAGE
        try:
            async with self.uploads.staged_audio(payload) as audio_path:
                text = await self.transcription.transcribe(
                    str(audio_path),
                    mime_type=payload.mime_type,
                    language=language,
                )
        except ProviderError as e:
            logger.error("transcribe: provider call failed: %s", e.context.get("cause", e.message))
            raise ProviderError(message="Transcription failed", context=e.context) from e
        except Exception as e:
            logger.error("transcribe: unexpected failure: %s", str(e), exc_info=True)
            raise EasyNoteError(message="Transcription failed", context={"cause": str(e)}) from e

        return (text or "").strip()
