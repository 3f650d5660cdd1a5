"""Backend application factory.

Returns a lightweight "service container" dictionary: the AI client built from
the environment plus the metadata recovery helpers that views call with
whatever a project stored.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from .ai.openai_client import DEFAULT_CHAT_MODEL, OpenAIClient
from .ai.metadata import METADATA_SYSTEM_PROMPT
from .projects import resolve_display_description, resolve_display_title
from .utils.project_utils import (
    extract_project_description,
    extract_project_hashtags,
    extract_project_title,
)

HACKCLUB_BASE_URL = "https://ai.hackclub.com/proxy/v1"
DEFAULT_OPENAI_FALLBACK_MODEL = "gpt-4.1-mini"

# Local `.env` values are available to CLI and test runs.
load_dotenv(Path(__file__).resolve().parents[2] / ".env", override=False)


def _read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _is_hackclub(api_key: str | None, base_url: str | None) -> bool:
    return bool(
        (api_key and api_key.startswith("sk-hc-"))
        or (base_url and "hackclub.com" in base_url.lower())
    )


def _is_openai(api_key: str | None, base_url: str | None) -> bool:
    if _is_hackclub(api_key, base_url):
        return False
    if base_url:
        return "openai.com" in base_url.lower()
    return bool(api_key and api_key.startswith("sk-"))


def provider_chain_from_env(default_chat_model: str) -> list[dict[str, str | None]]:
    """Read every configured provider, ordered Hack Club -> OpenAI -> other."""
    openai_model = _read_env("OPENAI_FALLBACK_OPENAI_MODEL") or DEFAULT_OPENAI_FALLBACK_MODEL
    providers: list[dict[str, str | None]] = []
    seen: set[tuple[str, str | None, str | None]] = set()

    def _append(
        api_key: str | None,
        base_url: str | None,
        chat_model_override: str | None = None,
    ) -> None:
        if not api_key:
            return
        if not base_url and api_key.startswith("sk-hc-"):
            base_url = HACKCLUB_BASE_URL
        # OpenAI cannot serve the Gemini default, so pin an OpenAI model.
        if not chat_model_override and _is_openai(api_key, base_url):
            model_lower = default_chat_model.lower()
            if model_lower.startswith("google/") or "gemini" in model_lower:
                chat_model_override = openai_model
        marker = (api_key, base_url, chat_model_override)
        if marker in seen:
            return
        seen.add(marker)
        providers.append(
            {
                "api_key": api_key,
                "base_url": base_url,
                "chat_model_override": chat_model_override,
            }
        )

    _append(_read_env("OPENAI_API_KEY"), _read_env("OPENAI_BASE_URL"))
    _append(
        _read_env("OPENAI_API_KEY_FALLBACK"),
        _read_env("OPENAI_BASE_URL_FALLBACK"),
        _read_env("OPENAI_MODEL_FALLBACK"),
    )

    prefix = "OPENAI_API_KEY_FALLBACK_"
    indexed = sorted(
        (name[len(prefix) :] for name in os.environ if name.startswith(prefix)),
        key=lambda suffix: int(suffix) if suffix.isdigit() else -1,
    )
    for idx in indexed:
        if not idx.isdigit():
            continue
        _append(
            _read_env(f"{prefix}{idx}"),
            _read_env(f"OPENAI_BASE_URL_FALLBACK_{idx}"),
            _read_env(f"OPENAI_MODEL_FALLBACK_{idx}"),
        )

    hackclub = [p for p in providers if _is_hackclub(p["api_key"], p["base_url"])]
    openai = [
        p for p in providers if p not in hackclub and _is_openai(p["api_key"], p["base_url"])
    ]
    other = [p for p in providers if p not in hackclub and p not in openai]
    return hackclub + openai + other


def create_app() -> Dict[str, Any]:
    """Create the backend dependency container."""
    default_chat_model = _read_env("OPENAI_DEFAULT_CHAT_MODEL") or DEFAULT_CHAT_MODEL
    # Every entry carries its own model override, the first one included.
    chain = provider_chain_from_env(default_chat_model)

    return {
        "ai_client": OpenAIClient(
            api_key=None,
            fallback_configs=chain,
            default_chat_model=default_chat_model,
        ),
        "prompts": {"metadata": METADATA_SYSTEM_PROMPT},
        "recovery": {
            "title": extract_project_title,
            "description": extract_project_description,
            "hashtags": extract_project_hashtags,
            "display_title": resolve_display_title,
            "display_description": resolve_display_description,
        },
    }
