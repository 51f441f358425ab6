"""
Easy Note Backend: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract between clients and backend.
Why:   Every AI endpoint returns a fixed shape. Clients render these payloads
       directly, so a response must never carry raw provider text or an
       exception payload in place of the contract.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and publishes them in the OpenAPI document.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ContentRequest(BaseModel):
    """
    Body of every text task (summarize, tags, checklist, detect-type).

    Why Optional: a missing `content` must produce the task's own 400
    message ("Content too short", ...), not a framework validation error.
    """
    content: Optional[str] = Field(default=None, description="Note text to process")


# ══════════════════════════════════════════════════════════════════════════
# Task Result Models
# ══════════════════════════════════════════════════════════════════════════


class ContentCategory(str, Enum):
    """Closed category set offered to the model by detect-type."""
    SHOPPING = "shopping"
    MEDICINE = "medicine"
    REMINDER = "reminder"
    RECIPE = "recipe"
    MEETING = "meeting"
    TRAVEL = "travel"
    FITNESS = "fitness"
    FINANCE = "finance"
    GENERAL = "general"


class TranscriptResponse(BaseModel):
    transcript: str = Field(description="Plain-text transcription, whitespace-trimmed")


class SummaryResponse(BaseModel):
    """
    Summary of a note.

    `summary` is null when the provider returned no text. No fallback
    sentence is synthesized.
    """
    summary: Optional[str] = Field(default=None, description="1-3 sentence summary")


class TagsResponse(BaseModel):
    # Items are passed through as the model produced them
    tags: List = Field(default_factory=list, description="Up to 6 lowercase tags")


class ChecklistItem(BaseModel):
    """One actionable item. `done` defaults to false when the model omits it."""
    text: str = Field(description="Action text")
    done: bool = Field(default=False, description="Completion flag")


class ChecklistResponse(BaseModel):
    items: List[ChecklistItem] = Field(default_factory=list)


class ContentTypeResponse(BaseModel):
    """
    Detected category.

    Typed as str rather than ContentCategory: a category the model invents
    is passed through unchanged. Only a missing or unparsable answer is
    replaced by "general".
    """
    type: str = Field(default=ContentCategory.GENERAL.value, description="Detected note category")


# ══════════════════════════════════════════════════════════════════════════
# Envelope / Service Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Uniform error envelope for all 4xx/5xx responses.

    Example:
        {"error": "Content too short"}
    """
    error: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'ok' while the process is serving")
    service: str = Field(description="Service name")
    timestamp: str = Field(description="Current server time (UTC ISO 8601)")
    version: str = Field(description="Application version")
