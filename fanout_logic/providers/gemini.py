from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Final
from urllib.parse import quote

from fanout_logic.domain.models import AUTO_MODEL
from fanout_logic.domain.rules import redact_secret
from fanout_logic.http import (
    AsyncFetcher,
    AsyncPoster,
    FetchError,
    FetchStatusError,
    JsonValue,
)

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
FALLBACK_MODELS: Final[tuple[str, ...]] = (
    "gemini-2.0-flash-exp",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-flash-8b",
    "gemini-1.5-pro",
    "gemini-pro",
)
_BODY_PREVIEW_CHARS = 300
_LOGGER = logging.getLogger(__name__)

TRANSLATION_INSTRUCTION = (
    "You are a professional translation engine. "
    "Translate the user-provided text into {language} only.\n"
    "Constraints:\n"
    "- Preserve original formatting, line breaks, markdown, code blocks, "
    "and list structure.\n"
    "- Keep placeholders and variables untouched (e.g., {{like_this}}, "
    "{{{{curly}}}}, %s, %d, {{{{name}}}}, <tag>, URLs, and file paths).\n"
    "- Do not add explanations or commentary. Output only the translated text.\n"
    "- Maintain numbers, units, punctuation, emojis, and inline symbols.\n"
    "- If the text is mostly code or untranslatable terms, keep them as-is "
    "and translate surrounding prose naturally.\n"
    "- Prefer concise, natural, context-appropriate wording.\n"
)


class GeminiError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class GeminiTranslation:
    translated_text: str
    model_used: str


def build_models_url(api_key: str) -> str:
    return f"{GEMINI_API_BASE_URL}/models?key={quote(api_key, safe='')}"


def build_generate_url(model: str, api_key: str) -> str:
    return (
        f"{GEMINI_API_BASE_URL}/models/{quote(model)}:generateContent"
        f"?key={quote(api_key, safe='')}"
    )


def build_prompt(text: str, target_language_name: str) -> str:
    instruction = TRANSLATION_INSTRUCTION.format(language=target_language_name)
    return f"{instruction}\n\nText to translate:\n{text}"


async def list_models(api_key: str, fetcher: AsyncFetcher) -> list[str]:
    """Model names available to ``api_key``; the fallback list on any failure."""
    try:
        payload = await fetcher(build_models_url(api_key))
        models = parse_models_payload(payload)
    except (FetchError, GeminiError) as exc:
        _LOGGER.warning(
            "Gemini model listing failed, using fallback models: %s",
            redact_secret(str(exc), api_key),
        )
        return list(FALLBACK_MODELS)
    return models


def select_latest_flash(models: list[str]) -> str:
    flash_models = [name for name in models if "flash" in name and "gemini" in name]
    if not flash_models:
        raise GeminiError("No flash models found")
    return max(flash_models)


async def resolve_model(
    model_or_auto: str, api_key: str, fetcher: AsyncFetcher
) -> str:
    model = model_or_auto.strip()
    if model and model != AUTO_MODEL:
        return model
    return select_latest_flash(await list_models(api_key, fetcher))


async def translate_gemini(
    text: str,
    target_language_name: str,
    api_key: str,
    model_or_auto: str,
    *,
    fetcher: AsyncFetcher,
    poster: AsyncPoster,
) -> GeminiTranslation:
    model = await resolve_model(model_or_auto, api_key, fetcher)
    request_body: JsonValue = {
        "contents": [{"parts": [{"text": build_prompt(text, target_language_name)}]}]
    }
    try:
        payload = await poster(build_generate_url(model, api_key), request_body)
    except FetchStatusError as exc:
        body = redact_secret(exc.body[:_BODY_PREVIEW_CHARS], api_key)
        raise GeminiError(
            f"Gemini API request failed with status {exc.status_code}: {body}"
        ) from exc
    except FetchError as exc:
        raise GeminiError(redact_secret(str(exc), api_key)) from exc
    return GeminiTranslation(
        translated_text=parse_generate_payload(payload),
        model_used=model,
    )


def parse_models_payload(payload: str) -> list[str]:
    try:
        raw_payload: JsonValue = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GeminiError(f"Failed to parse model list: {exc}") from exc
    if not isinstance(raw_payload, dict):
        raise GeminiError("No 'models' array found in response")
    raw_models = raw_payload.get("models")
    if not isinstance(raw_models, list):
        raise GeminiError("No 'models' array found in response")
    models: list[str] = []
    for item in raw_models:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if isinstance(name, str) and name.startswith("models/"):
            models.append(name.removeprefix("models/"))
    return models


def parse_generate_payload(payload: str) -> str:
    try:
        raw_payload: JsonValue = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GeminiError(f"Failed to parse Gemini response: {exc}") from exc
    text = _first_candidate_text(raw_payload)
    if text is None:
        raise GeminiError("Translation not found in Gemini response")
    return text


def _first_candidate_text(raw_payload: JsonValue) -> str | None:
    if not isinstance(raw_payload, dict):
        return None
    candidates = raw_payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return None
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        return None
    part = parts[0]
    if not isinstance(part, dict):
        return None
    text = part.get("text")
    if isinstance(text, str):
        return text
    return None
