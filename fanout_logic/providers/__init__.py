from __future__ import annotations

from fanout_logic.providers.gemini import GeminiError as GeminiError
from fanout_logic.providers.gemini import GeminiTranslation as GeminiTranslation
from fanout_logic.providers.gemini import list_models as list_models
from fanout_logic.providers.gemini import translate_gemini as translate_gemini
from fanout_logic.providers.google import GoogleTranslateError as GoogleTranslateError
from fanout_logic.providers.google import (
    LanguageDetectionError as LanguageDetectionError,
)
from fanout_logic.providers.google import detect_language as detect_language
from fanout_logic.providers.google import translate_google as translate_google
