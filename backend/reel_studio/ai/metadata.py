"""Generate title/description/hashtags for a new project.

Model replies are treated like any other stored field: they are repaired,
parsed leniently and run through the recovery extractors, so a malformed
reply degrades to fallback values instead of raw JSON.
"""

from __future__ import annotations

import json
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Any, List

from ..utils.json_repair import loads_lenient
from ..utils.project_utils import (
    DEFAULT_TITLE,
    HASHTAG_KEYS,
    extract_project_hashtags,
    extract_project_title,
    find_value_deep,
    recover_fields,
)

logger = logging.getLogger(__name__)

METADATA_SYSTEM_PROMPT = textwrap.dedent(
    """
    You write metadata for short vertical videos.
    Reply with a single JSON object and nothing else, using exactly these keys:
    "title" (string, under 70 characters),
    "description" (string, two or three sentences),
    "hashtags" (array of 3 to 8 strings, each starting with #).
    """
).strip()


@dataclass
class ProjectMetadata:
    title: str
    description: str = ""
    hashtags: List[Any] = field(default_factory=list)
    status: str = "live"


def extract_content(resp: Any) -> str:
    """Read the assistant message from a demo dict or an SDK response."""

    def _normalize(content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if isinstance(item, dict):
                    text_value = item.get("text") or item.get("content")
                else:
                    text_value = getattr(item, "text", None) or getattr(item, "content", None)
                if isinstance(text_value, str):
                    parts.append(text_value)
            return "\n".join(parts).strip()
        return str(content)

    if isinstance(resp, dict):
        try:
            return _normalize(resp["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError):
            return ""

    choices = getattr(resp, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if isinstance(message, dict):
        return _normalize(message.get("content"))
    return _normalize(getattr(message, "content", None))


def fallback_metadata(topic: Any, status: str = "fallback") -> ProjectMetadata:
    """Offline metadata derived from the topic alone."""
    return ProjectMetadata(
        title=extract_project_title(topic, DEFAULT_TITLE),
        status=status,
    )


def _recover_hashtags(document: Any, encoded: str) -> List[str]:
    if isinstance(document, list) and not all(isinstance(tag, str) for tag in document):
        # A list of objects is a wrapper, not a tag list.
        found = find_value_deep(document, HASHTAG_KEYS)
        tags = extract_project_hashtags(found) if isinstance(found, (list, str)) else []
    else:
        tags = extract_project_hashtags(encoded)
    return [tag for tag in tags if isinstance(tag, str)]


def recover_metadata(content: str, topic: Any = None) -> ProjectMetadata:
    """Turn a raw model reply into metadata, falling back field by field."""
    document = loads_lenient(content)
    if not isinstance(document, (dict, list)):
        logger.warning("Model reply was not JSON; using topic-based metadata")
        return fallback_metadata(topic)

    # Re-serialize so the extractors see one canonical document.
    encoded = json.dumps(document, ensure_ascii=False)
    fields = recover_fields(
        title=encoded,
        description=encoded,
        title_fallback=extract_project_title(topic, DEFAULT_TITLE),
    )
    return ProjectMetadata(
        title=fields["title"],
        description=fields["description"],
        hashtags=_recover_hashtags(document, encoded),
    )


def generate_project_metadata(
    ai_client: Any,
    topic: str,
    style: str = "",
    language: str = "English",
    model: str | None = None,
    temperature: float = 0.7,
) -> ProjectMetadata:
    """Ask the model for project metadata; never raises on provider errors."""
    if getattr(ai_client, "is_demo", False):
        return fallback_metadata(topic, status="demo")

    user_prompt = f"Topic: {topic}\nStyle: {style or 'any'}\nLanguage: {language}"
    try:
        resp = ai_client.chat(
            model=model,
            messages=[
                {"role": "system", "content": METADATA_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
        )
    except Exception as exc:
        logger.warning("Metadata generation failed, using fallback: %s", exc)
        return fallback_metadata(topic)

    return recover_metadata(extract_content(resp), topic)
