from __future__ import annotations

import asyncio
import json

import pytest

from fanout_logic.http import FetchError, FetchStatusError, JsonValue
from fanout_logic.providers.gemini import (
    FALLBACK_MODELS,
    GeminiError,
    build_prompt,
    list_models,
    parse_models_payload,
    resolve_model,
    select_latest_flash,
    translate_gemini,
)

API_KEY = "AIza-secret"


def _generate_body(text: str) -> str:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


def test_parse_models_strips_prefix() -> None:
    payload = json.dumps(
        {"models": [{"name": "models/gemini-2.0-flash"}, {"name": "tunedModels/x"}]}
    )

    assert parse_models_payload(payload) == ["gemini-2.0-flash"]


def test_select_latest_flash_picks_greatest_name() -> None:
    models = ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-2.0-flash", "text-flash"]

    assert select_latest_flash(models) == "gemini-2.0-flash"
    with pytest.raises(GeminiError):
        select_latest_flash(["gemini-1.5-pro"])


def test_list_models_falls_back_on_failure() -> None:
    async def fetcher(url: str) -> str:
        raise FetchError("boom")

    assert asyncio.run(list_models(API_KEY, fetcher)) == list(FALLBACK_MODELS)


def test_resolve_model_keeps_explicit_choice() -> None:
    async def fetcher(url: str) -> str:
        raise AssertionError("model list must not be fetched")

    assert asyncio.run(resolve_model("gemini-1.5-pro", API_KEY, fetcher)) == (
        "gemini-1.5-pro"
    )


def test_translate_resolves_auto_model_and_posts_prompt() -> None:
    posted: list[tuple[str, JsonValue]] = []

    async def fetcher(url: str) -> str:
        return json.dumps(
            {
                "models": [
                    {"name": "models/gemini-1.5-flash"},
                    {"name": "models/gemini-2.0-flash"},
                ]
            }
        )

    async def poster(url: str, payload: JsonValue) -> str:
        posted.append((url, payload))
        return _generate_body("こんにちは")

    result = asyncio.run(
        translate_gemini(
            "Hello", "Japanese", API_KEY, "auto", fetcher=fetcher, poster=poster
        )
    )

    assert result.translated_text == "こんにちは"
    assert result.model_used == "gemini-2.0-flash"
    url, payload = posted[0]
    assert "/models/gemini-2.0-flash:generateContent?key=" in url
    assert payload == {
        "contents": [{"parts": [{"text": build_prompt("Hello", "Japanese")}]}]
    }


def test_prompt_names_target_language_and_keeps_placeholders() -> None:
    prompt = build_prompt("Hi {name}", "Korean")

    assert "into Korean only" in prompt
    assert "{{curly}}" in prompt
    assert prompt.endswith("Text to translate:\nHi {name}")


def test_translate_status_error_is_redacted() -> None:
    async def fetcher(url: str) -> str:
        return "{}"

    async def poster(url: str, payload: JsonValue) -> str:
        raise FetchStatusError(
            "failed", status_code=403, body=f"bad key {API_KEY} " + "x" * 400
        )

    with pytest.raises(GeminiError) as excinfo:
        asyncio.run(
            translate_gemini(
                "Hello",
                "Japanese",
                API_KEY,
                "gemini-2.0-flash",
                fetcher=fetcher,
                poster=poster,
            )
        )

    message = str(excinfo.value)
    assert "status 403" in message
    assert API_KEY not in message
    assert len(message) < 400


def test_translate_without_candidates_raises() -> None:
    async def fetcher(url: str) -> str:
        return "{}"

    async def poster(url: str, payload: JsonValue) -> str:
        return json.dumps({"candidates": []})

    with pytest.raises(GeminiError, match="Translation not found"):
        asyncio.run(
            translate_gemini(
                "Hello",
                "Japanese",
                API_KEY,
                "gemini-pro",
                fetcher=fetcher,
                poster=poster,
            )
        )
