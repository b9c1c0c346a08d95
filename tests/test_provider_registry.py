from __future__ import annotations

import asyncio

import pytest

from fanout_logic.application.adapters import (
    GeminiAdapter,
    GoogleAdapter,
    ProviderRegistry,
)
from fanout_logic.application.ports import TranslationSettings
from fanout_logic.domain.models import OutcomeStatus, TranslationRequest
from fanout_logic.providers.gemini import GeminiTranslation


async def _google(text: str, target: str, source: str) -> str:
    return text


async def _gemini(
    text: str, target_name: str, api_key: str, model_or_auto: str
) -> GeminiTranslation:
    return GeminiTranslation(translated_text=text, model_used="gemini-2.0-flash")


def _registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(GoogleAdapter(translate=_google))
    registry.register(GeminiAdapter(translate=_gemini))
    return registry


def test_gemini_enabled_only_with_api_key() -> None:
    registry = _registry()

    without_key = registry.enabled(TranslationSettings())
    with_key = registry.enabled(TranslationSettings(gemini_api_key="k"))

    assert [adapter.key for adapter in without_key] == ["google"]
    assert [adapter.key for adapter in with_key] == ["google", "gemini"]


def test_duplicate_keys_are_rejected_and_unregister_removes() -> None:
    registry = _registry()

    with pytest.raises(ValueError):
        registry.register(GoogleAdapter(translate=_google))

    registry.unregister("gemini")

    assert registry.keys() == ("google",)
    assert len(registry) == 1


def test_google_adapter_failure_becomes_failed_outcome() -> None:
    async def failing(text: str, target: str, source: str) -> str:
        raise RuntimeError("HTTP 429")

    adapter = GoogleAdapter(translate=failing)
    request = TranslationRequest(
        generation=4, source_text="hi", detected_language="en", target_language="ja"
    )

    outcome = asyncio.run(adapter.attempt(request, TranslationSettings()))

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.generation == 4
    assert outcome.error == "HTTP 429"
    assert adapter.error_context == "Google Translate"
