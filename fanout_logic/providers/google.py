from __future__ import annotations

import json
from urllib.parse import urlencode

from fanout_logic.http import AsyncFetcher, FetchError, JsonValue

GOOGLE_TRANSLATE_URL = "https://translate.google.com/translate_a/single"
DETECTION_QUERY_MARKER = "sl=auto&tl=en&dt=t&q="


class GoogleTranslateError(Exception):
    pass


class LanguageDetectionError(Exception):
    pass


def build_translate_url(text: str, target_lang: str, source_lang: str) -> str:
    params = [
        ("client", "gtx"),
        ("sl", source_lang),
        ("tl", target_lang),
        ("hl", target_lang),
        ("dt", "t"),
        ("dt", "bd"),
        ("dj", "1"),
        ("source", "input"),
        ("q", text),
    ]
    return f"{GOOGLE_TRANSLATE_URL}?{urlencode(params)}"


def build_detect_url(text: str) -> str:
    # Parameter order matters: the fetcher matches DETECTION_QUERY_MARKER.
    params = [
        ("client", "gtx"),
        ("sl", "auto"),
        ("tl", "en"),
        ("dt", "t"),
        ("q", text),
    ]
    return f"{GOOGLE_TRANSLATE_URL}?{urlencode(params)}"


async def translate_google(
    text: str, target_lang: str, source_lang: str, fetcher: AsyncFetcher
) -> str:
    url = build_translate_url(text, target_lang, source_lang)
    try:
        payload = await fetcher(url)
    except FetchError as exc:
        raise GoogleTranslateError(str(exc)) from exc
    return parse_translate_payload(payload)


async def detect_language(text: str, fetcher: AsyncFetcher) -> str:
    url = build_detect_url(text)
    try:
        payload = await fetcher(url)
    except FetchError as exc:
        raise LanguageDetectionError(str(exc)) from exc
    return parse_detect_payload(payload)


def parse_translate_payload(payload: str) -> str:
    try:
        raw_payload: JsonValue = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GoogleTranslateError(f"Failed to parse response: {exc}") from exc
    raw_data = _as_dict(raw_payload)
    if raw_data is None:
        raise GoogleTranslateError("Translation not found in response")
    sentences = _as_list(raw_data.get("sentences"))
    if sentences is None:
        raise GoogleTranslateError("Translation not found in response")
    parts: list[str] = []
    for item in sentences:
        item_obj = _as_dict(item)
        if item_obj is None:
            continue
        trans = item_obj.get("trans")
        if isinstance(trans, str):
            parts.append(trans)
    result = "".join(parts)
    if not result:
        raise GoogleTranslateError("Translation not found in response")
    return result


def parse_detect_payload(payload: str) -> str:
    try:
        raw_payload: JsonValue = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise LanguageDetectionError(f"Failed to parse response: {exc}") from exc
    items = _as_list(raw_payload)
    if items is None or len(items) <= 2:
        raise LanguageDetectionError("Failed to detect language from response")
    detected = items[2]
    if not isinstance(detected, str) or not detected.strip():
        raise LanguageDetectionError("Failed to detect language from response")
    return detected.strip()


def _as_dict(value: JsonValue) -> dict[str, JsonValue] | None:
    if isinstance(value, dict):
        return value
    return None


def _as_list(value: JsonValue) -> list[JsonValue] | None:
    if isinstance(value, list):
        return value
    return None
