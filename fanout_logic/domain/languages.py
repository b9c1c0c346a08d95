from __future__ import annotations

from typing import Final

DEFAULT_TARGET_LANGUAGE: Final[str] = "ja"

LANGUAGE_NAMES: Final[dict[str, str]] = {
    "ja": "Japanese",
    "en": "English",
    "zh": "Chinese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
}

# Bidirectional pair used when no override is set.
AUTO_PAIR: Final[dict[str, str]] = {
    "ja": "en",
    "en": "ja",
}


def is_known_language(code: str) -> bool:
    return code in LANGUAGE_NAMES


def display_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def known_or_default(code: str, default: str = DEFAULT_TARGET_LANGUAGE) -> str:
    if is_known_language(code):
        return code
    return default
