"""Project import and display helpers.

A topic pasted into the create-project form can be a complete project that
was generated elsewhere (bulk import). Such topics skip script generation and
are normalized here instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .utils.project_utils import (
    DEFAULT_TITLE,
    extract_project_description,
    extract_project_title,
)

logger = logging.getLogger(__name__)

DEFAULT_SCENE_VISUAL = "Scene visual"
DEFAULT_TOPIC = "Untitled Logic"

SCENE_LIST_KEYS = ("scenes", "script")
SCENE_VISUAL_KEYS = ("visualDescription", "visual", "imagePrompt", "desc")
SCENE_NARRATION_KEYS = ("narration", "audio", "text", "speech")
SCENE_NUMBER_KEYS = ("sceneNumber", "scene")

PROJECT_TITLE_KEYS = ("title", "projectTitle", "titulo")
PROJECT_DESCRIPTION_KEYS = ("description", "intro", "hook_falado")
PROJECT_TOPIC_KEYS = ("topic", "title", "titulo")
MUSIC_PROMPT_KEYS = ("bgMusicPrompt", "musicPrompt")


@dataclass
class Scene:
    scene_number: Any
    visual_description: Any
    narration: Any
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PreGeneratedProject:
    title: Any
    description: Any
    topic: Any
    scenes: List[Scene] = field(default_factory=list)
    music_prompt: Optional[Any] = None


def _first_present(mapping: Mapping[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return default


def normalize_scene(raw: Any, index: int) -> Scene:
    """Map the scene key synonyms used by different generators onto one shape."""
    if not isinstance(raw, dict):
        raw = {}
    known = set(SCENE_VISUAL_KEYS) | set(SCENE_NARRATION_KEYS) | set(SCENE_NUMBER_KEYS)
    return Scene(
        scene_number=_first_present(raw, SCENE_NUMBER_KEYS, index + 1),
        visual_description=_first_present(raw, SCENE_VISUAL_KEYS, DEFAULT_SCENE_VISUAL),
        narration=_first_present(raw, SCENE_NARRATION_KEYS, ""),
        extra={key: value for key, value in raw.items() if key not in known},
    )


def parse_pregenerated_project(topic: Any) -> Optional[PreGeneratedProject]:
    """Return the normalized project when ``topic`` is a project JSON, else None."""
    if not isinstance(topic, str) or not topic.strip():
        return None
    try:
        parsed = json.loads(topic)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None

    raw_scenes = None
    for key in SCENE_LIST_KEYS:
        if isinstance(parsed.get(key), list):
            raw_scenes = parsed[key]
            break
    if raw_scenes is None:
        return None

    logger.debug("Detected pre-generated project JSON with %d scenes", len(raw_scenes))
    return PreGeneratedProject(
        title=_first_present(parsed, PROJECT_TITLE_KEYS, DEFAULT_TITLE),
        description=_first_present(parsed, PROJECT_DESCRIPTION_KEYS, ""),
        topic=_first_present(parsed, PROJECT_TOPIC_KEYS, DEFAULT_TOPIC),
        scenes=[normalize_scene(scene, idx) for idx, scene in enumerate(raw_scenes)],
        music_prompt=_first_present(parsed, MUSIC_PROMPT_KEYS),
    )


def resolve_display_title(
    generated_title: Any,
    topic: Any = None,
    fallback: str = DEFAULT_TITLE,
) -> str:
    """Title for a project card: generated title first, then the topic."""
    for candidate in (generated_title, topic):
        title = extract_project_title(candidate, "")
        if title:
            return title
    return fallback


def resolve_display_description(raw: Any, fallback: str = "") -> str:
    description = extract_project_description(raw, "")
    if description:
        return description

    project = parse_pregenerated_project(raw)
    if project is not None and isinstance(project.description, str) and project.description:
        return project.description
    return fallback
