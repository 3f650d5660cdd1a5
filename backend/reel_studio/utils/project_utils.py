"""Recover human-readable project metadata from AI-generated fields.

Project titles, descriptions and hashtags are stored as whatever the
generator produced. Older generators sometimes stored a whole JSON document
(mixed Portuguese/English keys, wrapper objects, schedule payloads) where a
plain string was expected. The helpers here reduce such a field to a plain
value, or return the caller's fallback. They never return the raw JSON text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Project"

# Matched case-insensitively as substrings.
PLACEHOLDER_PHRASES: Tuple[str, ...] = (
    "untitled project",
    "projeto sem título",
    "sem título",
)
PENDING_MARKER = "⏳"

TITLE_KEY_TIERS: Tuple[Tuple[str, ...], ...] = (
    (
        "titulo",
        "tittle",
        "title",
        "projectTitle",
        "videoTitle",
        "scriptTitle",
        "id_da_semana",
        "tema_dia",
    ),
    ("name", "topic", "subject"),
)
DESCRIPTION_KEYS: Tuple[str, ...] = (
    "description",
    "generatedDescription",
    "desc",
    "generated_description",
    "resumo",
)
HASHTAG_KEYS: Tuple[str, ...] = (
    "hashtags",
    "generated_shorts_hashtags",
    "tags",
    "keywords",
    "generated_tiktok_hashtags",
)

SCHEDULE_MARKER_KEY = "cronograma"
SCHEDULE_ID_KEY = "id_da_semana"

MAX_SEARCH_DEPTH = 3
SHORT_TAG_LIMIT = 50

_MISSING = object()


def _looks_structured(text: str) -> bool:
    return text.startswith("{") or text.startswith("[")


def _parse_structured(text: str) -> Any:
    """Parse JSON text, returning ``_MISSING`` when it cannot be parsed."""
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        logger.debug("Unparseable structured field (%d chars): %s", len(text), exc)
        return _MISSING


def _as_text(raw: Any) -> str:
    return raw.strip() if isinstance(raw, str) else str(raw).strip()


def _is_present(value: Any) -> bool:
    # Containers count even when empty; scalars follow plain truthiness.
    if isinstance(value, (dict, list)):
        return True
    return value is not None and value is not False and value != 0 and value != ""


def _children(value: Any) -> List[Any]:
    if isinstance(value, dict):
        return [child for child in value.values() if isinstance(child, (dict, list))]
    if isinstance(value, list):
        return [child for child in value if isinstance(child, (dict, list))]
    return []


def is_valid_title(value: Any) -> bool:
    """Return True when ``value`` is a real title rather than a placeholder."""
    if not isinstance(value, str):
        return False
    lower = value.strip().lower()
    if not lower:
        return False
    if any(phrase in lower for phrase in PLACEHOLDER_PHRASES):
        return False
    return not lower.startswith(PENDING_MARKER)


def find_title_deep(
    value: Any,
    depth: int = 0,
    tiers: Sequence[Sequence[str]] = TITLE_KEY_TIERS,
) -> Optional[str]:
    """Search ``value`` for a valid title, honouring key tiers per level.

    Every tier is tried at the current level before any child is visited.
    Children are then searched depth-first in key order, down to
    ``MAX_SEARCH_DEPTH``.
    """
    if not isinstance(value, (dict, list)) or depth > MAX_SEARCH_DEPTH:
        return None

    if isinstance(value, dict):
        for keys in tiers:
            for key in keys:
                candidate = value.get(key)
                if is_valid_title(candidate):
                    return candidate

    for child in _children(value):
        found = find_title_deep(child, depth + 1, tiers)
        if found:
            return found
    return None


def find_value_deep(value: Any, keys: Sequence[str], depth: int = 0) -> Any:
    """Return the first present value stored under any of ``keys``.

    Unlike :func:`find_title_deep` the match is not type-checked: callers
    decide what to do with a list, a string or anything else.
    """
    if not isinstance(value, (dict, list)) or depth > MAX_SEARCH_DEPTH:
        return None

    if isinstance(value, dict):
        for key in keys:
            candidate = value.get(key)
            if _is_present(candidate):
                return candidate

    for child in _children(value):
        found = find_value_deep(child, keys, depth + 1)
        if _is_present(found):
            return found
    return None


def _schedule_identifier(document: Any) -> Optional[str]:
    if not isinstance(document, dict):
        return None
    if not _is_present(document.get(SCHEDULE_MARKER_KEY)):
        return None
    identifier = document.get(SCHEDULE_ID_KEY)
    if isinstance(identifier, bool):
        return None
    if isinstance(identifier, (int, float)) and identifier:
        return str(identifier)
    if is_valid_title(identifier):
        return identifier
    return None


def extract_project_title(raw: Any, fallback: str = DEFAULT_TITLE) -> str:
    """Extract a display title from a plain string or a JSON document.

    >>> extract_project_title('{"titulo": "Oração da Manhã"}')
    'Oração da Manhã'
    >>> extract_project_title('{"title": "Untitled Project"}', "Fallback")
    'Fallback'
    """
    if not raw:
        return fallback

    text = _as_text(raw)
    if _looks_structured(text):
        document = _parse_structured(text)
        if document is not _MISSING:
            found = find_title_deep(document)
            if found:
                return found
            # Weekly schedule payloads only carry an identifier.
            identifier = _schedule_identifier(document)
            if identifier:
                return identifier
        return fallback

    if not is_valid_title(text):
        return fallback
    return text


def extract_project_description(raw: Any, fallback: str = "") -> str:
    """Extract a description; plain text is returned stripped and unfiltered."""
    if not raw:
        return fallback

    text = _as_text(raw)
    if _looks_structured(text):
        document = _parse_structured(text)
        if document is not _MISSING:
            found = find_value_deep(document, DESCRIPTION_KEYS)
            if isinstance(found, str) and found:
                return found
        return fallback

    return text


def _split_tags(text: str) -> List[str]:
    return [part.strip() for part in text.split(",")]


def extract_project_hashtags(raw: Any) -> List[Any]:
    """Extract a hashtag list from a list, a comma-separated string or JSON.

    Order is preserved and duplicates are kept. An empty list means nothing
    usable was found.
    """
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if not raw:
        return []

    text = _as_text(raw)
    if _looks_structured(text):
        document = _parse_structured(text)
        if document is _MISSING:
            return []
        if isinstance(document, list):
            return document
        found = find_value_deep(document, HASHTAG_KEYS)
        if isinstance(found, list):
            return found
        if isinstance(found, str):
            return _split_tags(found)
        return []

    if "," in text:
        return _split_tags(text)
    if len(text) < SHORT_TAG_LIMIT:
        return [text]
    return []


def recover_fields(
    title: Any = None,
    description: Any = None,
    hashtags: Any = None,
    title_fallback: str = DEFAULT_TITLE,
    description_fallback: str = "",
) -> Dict[str, Any]:
    """Run all three extractors over one project's stored fields."""
    return {
        "title": extract_project_title(title, title_fallback),
        "description": extract_project_description(description, description_fallback),
        "hashtags": extract_project_hashtags(hashtags),
    }
