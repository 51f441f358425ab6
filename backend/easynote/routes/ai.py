"""
Easy Note Backend: AI Route Handlers
====================================

What:  POST /api/ai/{transcribe,summarize,tags,checklist,detect-type}
Why:   The client-facing surface of the AI gateway.
How:   Thin handlers: pull input out of the request, call AIService, wrap the
       result in its response model. Errors propagate as EasyNoteError and
       are rendered by the global handlers in main.py.

Every route here requires `Authorization: Bearer <token>`. FastAPI parses the
request body first, but the router-level dependency rejects a bad token with
401 before any audio is staged or any provider call is made.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, UploadFile

from easynote.dependencies import AIServiceDep, IdentityDep, UploadServiceDep, require_identity
from easynote.exceptions import ValidationError
from easynote.schemas.ai import (
    ChecklistResponse,
    ContentRequest,
    ContentTypeResponse,
    ErrorResponse,
    SummaryResponse,
    TagsResponse,
    TranscriptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/ai",
    tags=["AI"],
    dependencies=[Depends(require_identity)],
    responses={
        400: {"description": "Invalid or undersized input", "model": ErrorResponse},
        401: {"description": "Missing or rejected bearer token", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Provider failure", "model": ErrorResponse},
    },
)


def _content(body: Optional[ContentRequest]) -> Optional[str]:
    # A missing body is treated like missing content: the task reports it as too short
    return body.content if body is not None else None


@router.post(
    "/transcribe",
    response_model=TranscriptResponse,
    responses={413: {"description": "Audio file too large", "model": ErrorResponse}},
    summary="Transcribe an audio note",
)
async def transcribe(
    ai: AIServiceDep,
    uploads: UploadServiceDep,
    identity: IdentityDep,
    audio: Union[UploadFile, str, None] = File(default=None, description="Audio recording (m4a, mp3, wav, ogg, webm; max 25MB)"),
    language: Optional[str] = Form(default=None, description="Spoken language hint, defaults to 'en'"),
) -> TranscriptResponse:
    # A plain text field named `audio` carries no file either
    if audio is None or isinstance(audio, str):
        raise ValidationError(message="No audio file provided", field="audio")

    try:
        content = await audio.read()
        payload = uploads.validate_audio(audio.filename, audio.content_type, content)
    finally:
        await audio.close()

    logger.info(
        "Transcription request from %s: %s (%s, %d bytes)",
        identity.uid,
        payload.filename or "unnamed",
        payload.mime_type,
        payload.size,
    )
    transcript = await ai.transcribe(payload, language=language)
    return TranscriptResponse(transcript=transcript)


@router.post("/summarize", response_model=SummaryResponse, summary="Summarize a note")
async def summarize(ai: AIServiceDep, body: Optional[ContentRequest] = None) -> SummaryResponse:
    return SummaryResponse(summary=await ai.summarize(_content(body)))


@router.post("/tags", response_model=TagsResponse, summary="Generate tags for a note")
async def generate_tags(ai: AIServiceDep, body: Optional[ContentRequest] = None) -> TagsResponse:
    return TagsResponse(tags=await ai.generate_tags(_content(body)))


@router.post("/checklist", response_model=ChecklistResponse, summary="Convert a note to a checklist")
async def build_checklist(ai: AIServiceDep, body: Optional[ContentRequest] = None) -> ChecklistResponse:
    return ChecklistResponse(items=await ai.build_checklist(_content(body)))


@router.post("/detect-type", response_model=ContentTypeResponse, summary="Detect a note's category")
async def detect_type(ai: AIServiceDep, body: Optional[ContentRequest] = None) -> ContentTypeResponse:
    return ContentTypeResponse(type=await ai.detect_type(_content(body)))
