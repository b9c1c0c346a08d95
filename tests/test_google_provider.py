from __future__ import annotations

import asyncio
import json
from urllib.parse import parse_qsl, urlsplit

import pytest

from fanout_logic.http import FetchError
from fanout_logic.providers.google import (
    DETECTION_QUERY_MARKER,
    GoogleTranslateError,
    LanguageDetectionError,
    build_detect_url,
    build_translate_url,
    detect_language,
    parse_translate_payload,
    translate_google,
)


def test_translate_url_carries_expected_params() -> None:
    url = build_translate_url("Hello & bye", "ja", "en")

    params = parse_qsl(urlsplit(url).query)

    assert ("client", "gtx") in params
    assert ("sl", "en") in params
    assert ("tl", "ja") in params
    assert ("hl", "ja") in params
    assert [value for key, value in params if key == "dt"] == ["t", "bd"]
    assert ("dj", "1") in params
    assert ("q", "Hello & bye") in params
    assert DETECTION_QUERY_MARKER not in url


def test_detect_url_matches_detection_marker() -> None:
    assert DETECTION_QUERY_MARKER in build_detect_url("hello")


def test_translate_joins_sentence_fragments() -> None:
    payload = json.dumps(
        {"sentences": [{"trans": "こんにちは。"}, {"orig": "x"}, {"trans": "元気?"}]}
    )
    seen: list[str] = []

    async def fetcher(url: str) -> str:
        seen.append(url)
        return payload

    result = asyncio.run(translate_google("Hello. Fine?", "ja", "en", fetcher))

    assert result == "こんにちは。元気?"
    assert len(seen) == 1


def test_translate_without_sentences_raises() -> None:
    with pytest.raises(GoogleTranslateError, match="Translation not found"):
        parse_translate_payload(json.dumps({"sentences": []}))
    with pytest.raises(GoogleTranslateError):
        parse_translate_payload("<html>")


def test_translate_wraps_fetch_errors() -> None:
    async def fetcher(url: str) -> str:
        raise FetchError("Request to translate.google.com timed out")

    with pytest.raises(GoogleTranslateError, match="timed out"):
        asyncio.run(translate_google("x", "ja", "auto", fetcher))


def test_detect_reads_third_element() -> None:
    async def fetcher(url: str) -> str:
        return json.dumps([[["hello", "hello"]], None, "en", None])

    assert asyncio.run(detect_language("hello", fetcher)) == "en"


def test_detect_rejects_short_response() -> None:
    async def fetcher(url: str) -> str:
        return json.dumps([[["hello", "hello"]]])

    with pytest.raises(LanguageDetectionError):
        asyncio.run(detect_language("hello", fetcher))
