"""
Easy Note Backend: Response Coercion
====================================

What:  Turns untrusted model output into the strict result each task promises.
Why:   The provider's JSON mode is a hint, not a guarantee. Models return
       invalid JSON, wrap the answer under an unexpected key, or omit fields.
       The client must still receive a well-formed TaskResult.
How:   Two steps per task, each returning a tagged result instead of raising:

           raw text ──parse_json──▶ Parsed(obj) | Fallback(default)
           obj      ──extract────▶ Parsed(value) | Fallback(default)

       The default for each task lives in FALLBACKS. Callers read `.value`
       either way and may log `.reason` when a fallback was taken.

Fallback table:
    task           default     taken when
    ─────────────  ──────────  ─────────────────────────────────────────────
    tags           []          invalid JSON, not an object, no list found
    checklist      []          invalid JSON, no `items` list, any bad item
    content_type   "general"   invalid JSON, no non-empty string `type`
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from easynote.schemas.ai import ChecklistItem, ContentCategory

T = TypeVar("T")

MAX_TAGS = 6

# Keys tried, in order, before falling back to the first value of the object
TAG_FIELDS = ("tags", "result")

FALLBACKS: Dict[str, Any] = {
    "tags": (),
    "checklist": (),
    "content_type": ContentCategory.GENERAL.value,
}


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """The provider output had the expected structure."""
    value: T

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """The provider output was unusable; `value` is the task's safe default."""
    value: T
    reason: str

    @property
    def is_fallback(self) -> bool:
        return True


Coerced = Union[Parsed[T], Fallback[T]]


def _fallback(task: str, reason: str) -> Fallback:
    default = FALLBACKS[task]
    # Stored as tuples so the table itself can't be mutated through a result
    if isinstance(default, tuple):
        default = list(default)
    return Fallback(value=default, reason=reason)


def parse_json(raw: Optional[str]) -> Coerced[Any]:
    """
    Parse raw provider text as JSON.

    Returns Parsed(obj) on success, Fallback(None, reason) otherwise. This is
    the only place a JSON decoding error is caught.
    """
    if raw is None or not raw.strip():
        return Fallback(value=None, reason="empty response")
    try:
        return Parsed(value=json.loads(raw))
    except (json.JSONDecodeError, TypeError) as e:
        return Fallback(value=None, reason=f"invalid JSON: {e}")


def coerce_tags(raw: Optional[str]) -> Coerced[List[Any]]:
    """
    Extract the tag list from a tags completion.

    Lookup order: `tags`, then `result`, then the first value of the object
    in insertion order. The first of these that is a list wins. Entries are
    passed through unchecked and cut to MAX_TAGS.
    """
    parsed = parse_json(raw)
    if parsed.is_fallback:
        return _fallback("tags", parsed.reason)

    obj = parsed.value
    if not isinstance(obj, dict):
        return _fallback("tags", f"expected object, got {type(obj).__name__}")

    candidates = [obj.get(field) for field in TAG_FIELDS]
    candidates.append(next(iter(obj.values()), None))

    for candidate in candidates:
        if isinstance(candidate, list):
            return Parsed(value=candidate[:MAX_TAGS])

    return _fallback("tags", "no tag list in response")


_checklist_adapter = TypeAdapter(List[ChecklistItem])


def coerce_checklist(raw: Optional[str]) -> Coerced[List[ChecklistItem]]:
    """
    Extract checklist items from a checklist completion.

    All or nothing: if `items` is missing, or any single item fails to
    validate as {text: str, done: bool}, the whole result is the empty list.
    Missing `done` defaults to False.
    """
    parsed = parse_json(raw)
    if parsed.is_fallback:
        return _fallback("checklist", parsed.reason)

    obj = parsed.value
    items = obj.get("items") if isinstance(obj, dict) else None
    if not isinstance(items, list):
        return _fallback("checklist", "no items list in response")

    try:
        return Parsed(value=_checklist_adapter.validate_python(items))
    except PydanticValidationError as e:
        return _fallback("checklist", f"invalid item: {e.error_count()} error(s)")


def coerce_content_type(raw: Optional[str]) -> Coerced[str]:
    """
    Extract the category from a detect-type completion.

    Any non-empty string is passed through, including categories outside
    ContentCategory.
    """
    parsed = parse_json(raw)
    if parsed.is_fallback:
        return _fallback("content_type", parsed.reason)

    obj = parsed.value
    category = obj.get("type") if isinstance(obj, dict) else None
    if not isinstance(category, str) or not category:
        return _fallback("content_type", "no type in response")

    return Parsed(value=category)
