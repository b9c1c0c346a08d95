from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Awaitable, Callable, Protocol

from fanout_logic.domain.languages import DEFAULT_TARGET_LANGUAGE
from fanout_logic.domain.models import (
    AUTO_MODEL,
    ErrorLogEntry,
    HistoryEntry,
    ProviderOutcome,
    TranslationRequest,
)
from fanout_logic.providers.gemini import GeminiTranslation

Clock = Callable[[], int]
LanguageDetector = Callable[[str], Awaitable[str]]
GoogleTranslator = Callable[[str, str, str], Awaitable[str]]
GeminiTranslator = Callable[[str, str, str, str], Awaitable[GeminiTranslation]]


def epoch_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class TranslationSettings:
    gemini_api_key: str = ""
    gemini_model: str = AUTO_MODEL
    target_language: str = DEFAULT_TARGET_LANGUAGE


class SettingsPort(Protocol):
    def get_settings(self) -> TranslationSettings: ...


class HistoryPort(Protocol):
    def add(self, entry: HistoryEntry) -> None: ...


class ErrorLogPort(Protocol):
    def add(self, entry: ErrorLogEntry) -> None: ...


class PresentationPort(Protocol):
    def on_started(self, generation: int, text: str) -> None: ...

    def on_dispatched(
        self, request: TranslationRequest, pending: frozenset[str]
    ) -> None: ...

    def on_results(
        self,
        generation: int,
        results: tuple[ProviderOutcome, ...],
        pending: frozenset[str],
    ) -> None: ...

    def on_done(
        self,
        request: TranslationRequest,
        results: tuple[ProviderOutcome, ...],
        entry: HistoryEntry | None,
    ) -> None: ...


class NullPresenter:
    def on_started(self, generation: int, text: str) -> None:
        return

    def on_dispatched(
        self, request: TranslationRequest, pending: frozenset[str]
    ) -> None:
        return

    def on_results(
        self,
        generation: int,
        results: tuple[ProviderOutcome, ...],
        pending: frozenset[str],
    ) -> None:
        return

    def on_done(
        self,
        request: TranslationRequest,
        results: tuple[ProviderOutcome, ...],
        entry: HistoryEntry | None,
    ) -> None:
        return


@dataclass(frozen=True, slots=True)
class StaticSettings:
    settings: TranslationSettings

    def get_settings(self) -> TranslationSettings:
        return self.settings
