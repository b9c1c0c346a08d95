from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Final, Protocol

from fanout_logic.application.errors import (
    GEMINI_CONTEXT,
    GOOGLE_CONTEXT,
    describe_error,
)
from fanout_logic.application.ports import (
    GeminiTranslator,
    GoogleTranslator,
    TranslationSettings,
)
from fanout_logic.domain.languages import display_name
from fanout_logic.domain.models import AUTO_MODEL, ProviderOutcome, TranslationRequest

GOOGLE_KEY: Final[str] = "google"
GEMINI_KEY: Final[str] = "gemini"
GOOGLE_SERVICE: Final[str] = "Google (Free)"


class ProviderAdapter(Protocol):
    """One translation backend.

    ``attempt`` never raises: failures come back as ``FAILED`` outcomes and
    the orchestrator records them under ``error_context`` once it knows the
    outcome still belongs to the current generation.
    """

    @property
    def key(self) -> str: ...

    @property
    def service(self) -> str: ...

    @property
    def error_context(self) -> str: ...

    def is_enabled(self, settings: TranslationSettings) -> bool: ...

    async def attempt(
        self, request: TranslationRequest, settings: TranslationSettings
    ) -> ProviderOutcome: ...


@dataclass(slots=True)
class GoogleAdapter:
    translate: GoogleTranslator

    @property
    def key(self) -> str:
        return GOOGLE_KEY

    @property
    def service(self) -> str:
        return GOOGLE_SERVICE

    @property
    def error_context(self) -> str:
        return GOOGLE_CONTEXT

    def is_enabled(self, settings: TranslationSettings) -> bool:
        return True

    async def attempt(
        self, request: TranslationRequest, settings: TranslationSettings
    ) -> ProviderOutcome:
        try:
            text = await self.translate(
                request.source_text,
                request.target_language,
                request.source_or_auto,
            )
        except Exception as exc:
            return ProviderOutcome.failed(
                request.generation, GOOGLE_KEY, GOOGLE_SERVICE, describe_error(exc)
            )
        return ProviderOutcome.succeeded(
            request.generation, GOOGLE_KEY, GOOGLE_SERVICE, text
        )


@dataclass(slots=True)
class GeminiAdapter:
    translate: GeminiTranslator

    @property
    def key(self) -> str:
        return GEMINI_KEY

    @property
    def service(self) -> str:
        return "Gemini"

    @property
    def error_context(self) -> str:
        return GEMINI_CONTEXT

    def is_enabled(self, settings: TranslationSettings) -> bool:
        return bool(settings.gemini_api_key.strip())

    async def attempt(
        self, request: TranslationRequest, settings: TranslationSettings
    ) -> ProviderOutcome:
        requested_model = settings.gemini_model.strip() or AUTO_MODEL
        try:
            result = await self.translate(
                request.source_text,
                display_name(request.target_language),
                settings.gemini_api_key.strip(),
                requested_model,
            )
        except Exception as exc:
            return ProviderOutcome.failed(
                request.generation,
                f"{GEMINI_KEY}:{requested_model}",
                gemini_service(requested_model),
                describe_error(exc),
            )
        return ProviderOutcome.succeeded(
            request.generation,
            f"{GEMINI_KEY}:{result.model_used}",
            gemini_service(result.model_used),
            result.translated_text,
        )


def gemini_service(model: str) -> str:
    return f"Gemini ({model})"


def _adapter_list() -> list[ProviderAdapter]:
    return []


@dataclass(slots=True)
class ProviderRegistry:
    _adapters: list[ProviderAdapter] = field(default_factory=_adapter_list)

    def register(self, adapter: ProviderAdapter) -> None:
        if any(existing.key == adapter.key for existing in self._adapters):
            raise ValueError(f"Provider already registered: {adapter.key}")
        self._adapters.append(adapter)

    def unregister(self, key: str) -> None:
        self._adapters = [item for item in self._adapters if item.key != key]

    def enabled(self, settings: TranslationSettings) -> tuple[ProviderAdapter, ...]:
        return tuple(item for item in self._adapters if item.is_enabled(settings))

    def keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self._adapters)

    def __iter__(self) -> Iterator[ProviderAdapter]:
        return iter(tuple(self._adapters))

    def __len__(self) -> int:
        return len(self._adapters)
