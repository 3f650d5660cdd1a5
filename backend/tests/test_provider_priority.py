"""Provider-priority tests for Hack Club -> OpenAI -> Offline behavior."""

import os

import pytest

from reel_studio.app import create_app


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("OPENAI_"):
            monkeypatch.delenv(name, raising=False)


def test_hackclub_is_prioritized_before_openai(monkeypatch):
    # OpenAI in the primary slot, Hack Club in a fallback slot.
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-primary")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    monkeypatch.setenv("OPENAI_API_KEY_FALLBACK_1", "sk-hc-secondary")
    monkeypatch.setenv("OPENAI_BASE_URL_FALLBACK_1", "https://ai.hackclub.com/proxy/v1")

    providers = create_app()["ai_client"].providers

    assert len(providers) == 2
    assert providers[0].api_key.startswith("sk-hc-")
    assert providers[1].api_key == "sk-openai-primary"


def test_openai_provider_gets_openai_model_for_gemini_default(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-primary")

    providers = create_app()["ai_client"].providers

    assert providers[0].chat_model_override == "gpt-4.1-mini"


def test_hackclub_key_without_base_url_gets_default(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY_FALLBACK", "sk-hc-only")

    providers = create_app()["ai_client"].providers

    assert providers[0].base_url == "https://ai.hackclub.com/proxy/v1"
    assert providers[0].chat_model_override is None


def test_indexed_fallbacks_are_ordered_numerically(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY_FALLBACK_10", "custom-ten")
    monkeypatch.setenv("OPENAI_BASE_URL_FALLBACK_10", "https://ten.example/v1")
    monkeypatch.setenv("OPENAI_API_KEY_FALLBACK_2", "custom-two")
    monkeypatch.setenv("OPENAI_BASE_URL_FALLBACK_2", "https://two.example/v1")

    providers = create_app()["ai_client"].providers

    assert [p.api_key for p in providers] == ["custom-two", "custom-ten"]


def test_no_keys_is_offline():
    assert create_app()["ai_client"].is_demo


def test_primary_openai_provider_is_called_with_openai_model(monkeypatch):
    from reel_studio.ai import openai_client as openai_client_module

    class _EchoCompletions:
        def create(self, messages, model, **_kwargs):
            return {"choices": [{"message": {"content": ""}}], "model": model}

    class _EchoOpenAI:
        def __init__(self, api_key, base_url=None):
            self.chat = type("Chat", (), {"completions": _EchoCompletions()})()

    monkeypatch.setattr(openai_client_module, "OpenAI", _EchoOpenAI)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-primary")
    monkeypatch.setenv("OPENAI_FALLBACK_OPENAI_MODEL", "gpt-4o-mini")

    response = create_app()["ai_client"].chat(messages=[])

    assert response["model"] == "gpt-4o-mini"
