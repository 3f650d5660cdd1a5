"""OpenAI-compatible chat client with ordered provider fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "google/gemini-2.5-flash-lite-preview-09-2025"
DEMO_MESSAGE = "AI unavailable: set OPENAI_API_KEY for live responses."


class _DemoCompletions:
    """Imitates the `create(...)` callable under `chat.completions`."""

    def __init__(self, message: str):
        self._message = message

    def create(self, *_args, **_kwargs):
        return {
            "choices": [{"message": {"role": "assistant", "content": self._message}}],
            "model": "demo-fallback",
        }


class _DemoChat:
    def __init__(self, message: str):
        self.completions = _DemoCompletions(message)


class _DemoClient:
    """Offline stand-in exposing the same `chat.completions.create` path."""

    def __init__(self, message: str):
        self.chat = _DemoChat(message)


@dataclass(frozen=True)
class Provider:
    """One OpenAI-compatible endpoint in the fallback chain."""

    api_key: str
    base_url: str | None = None
    chat_model_override: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class OpenAIClient:
    """Chat wrapper that tries each configured provider in order.

    With no provider configured every call is answered by a demo client. The
    provider that last succeeded is moved to the front of the chain.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        fallback_configs: Sequence[Dict[str, str | None]] | None = None,
        default_chat_model: str | None = None,
    ):
        self._providers = self._build_providers(api_key, base_url, fallback_configs)
        self.default_chat_model = _clean(default_chat_model) or DEFAULT_CHAT_MODEL
        self._clients: Dict[tuple[str, str | None], OpenAI] = {}
        self._demo_client: Optional[_DemoClient] = None

    @property
    def providers(self) -> List[Provider]:
        return list(self._providers)

    @property
    def is_demo(self) -> bool:
        return not self._providers

    @property
    def api_key(self) -> str | None:
        return self._providers[0].api_key if self._providers else None

    @property
    def base_url(self) -> str | None:
        return self._providers[0].base_url if self._providers else None

    @staticmethod
    def _build_providers(
        api_key: str | None,
        base_url: str | None,
        fallback_configs: Sequence[Dict[str, str | None]] | None,
    ) -> List[Provider]:
        configs: list[Dict[str, str | None]] = [{"api_key": api_key, "base_url": base_url}]
        configs.extend(fallback_configs or [])

        providers: list[Provider] = []
        seen: set[Provider] = set()
        for cfg in configs:
            key = _clean(cfg.get("api_key"))
            if not key:
                continue
            provider = Provider(
                api_key=key,
                base_url=_clean(cfg.get("base_url")),
                chat_model_override=_clean(cfg.get("chat_model_override")),
            )
            if provider in seen:
                continue
            providers.append(provider)
            seen.add(provider)
        return providers

    def _get_demo_client(self) -> _DemoClient:
        if not self._demo_client:
            self._demo_client = _DemoClient(DEMO_MESSAGE)
        return self._demo_client

    def _get_live_client(self, provider: Provider) -> OpenAI:
        client_key = (provider.api_key, provider.base_url)
        client = self._clients.get(client_key)
        if not client:
            client = OpenAI(api_key=provider.api_key, base_url=provider.base_url)
            self._clients[client_key] = client
        return client

    def _promote_provider(self, idx: int) -> None:
        if idx <= 0:
            return
        provider = self._providers.pop(idx)
        self._providers.insert(0, provider)
        logger.info("Promoted provider %s to primary", provider.base_url or "default")

    def _call_with_fallback(self, call: Callable[[Any, Provider], Any]) -> Any:
        if not self._providers:
            return call(self._get_demo_client(), Provider(api_key=""))

        last_error: Exception | None = None
        for idx, provider in enumerate(list(self._providers)):
            try:
                response = call(self._get_live_client(provider), provider)
            except Exception as exc:
                logger.warning(
                    "Provider %s failed: %s", provider.base_url or "default", exc
                )
                last_error = exc
                continue
            self._promote_provider(idx)
            return response

        if last_error:
            raise last_error
        return call(self._get_demo_client(), Provider(api_key=""))

    def chat(self, messages: List[Dict[str, str]], model: str | None = None, **kwargs) -> Any:
        """Call the chat completions endpoint, walking the provider chain."""

        def _chat_call(client: Any, provider: Provider) -> Any:
            chosen_model = provider.chat_model_override or model or self.default_chat_model
            return client.chat.completions.create(messages=messages, model=chosen_model, **kwargs)

        return self._call_with_fallback(_chat_call)
