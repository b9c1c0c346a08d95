from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

UNKNOWN_LANGUAGE: Final[str] = "unknown"
AUTO_SOURCE: Final[str] = "auto"
AUTO_MODEL: Final[str] = "auto"


class OutcomeStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StoreLimit(Enum):
    MAX_HISTORY_ENTRIES = 100
    MAX_ERROR_LOGS = 100


class CompletionLimit(Enum):
    TIMEOUT_MS = 10_000


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    generation: int
    source_text: str
    detected_language: str
    target_language: str

    @property
    def source_or_auto(self) -> str:
        if self.detected_language == UNKNOWN_LANGUAGE:
            return AUTO_SOURCE
        return self.detected_language


@dataclass(frozen=True, slots=True)
class ProviderOutcome:
    generation: int
    provider: str
    service: str
    status: OutcomeStatus
    text: str = ""
    error: str = ""

    @classmethod
    def succeeded(
        cls, generation: int, provider: str, service: str, text: str
    ) -> "ProviderOutcome":
        return cls(
            generation=generation,
            provider=provider,
            service=service,
            status=OutcomeStatus.SUCCEEDED,
            text=text,
        )

    @classmethod
    def failed(
        cls, generation: int, provider: str, service: str, error: str
    ) -> "ProviderOutcome":
        return cls(
            generation=generation,
            provider=provider,
            service=service,
            status=OutcomeStatus.FAILED,
            error=error,
        )

    @property
    def is_success(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


@dataclass(frozen=True, slots=True)
class ServiceTranslation:
    service: str
    result: str


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: str
    timestamp: int
    original_text: str
    detected_language: str
    target_language: str
    translations: tuple[ServiceTranslation, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "originalText": self.original_text,
            "detectedLanguage": self.detected_language,
            "targetLanguage": self.target_language,
            "translations": [
                {"service": item.service, "result": item.result}
                for item in self.translations
            ],
        }


@dataclass(frozen=True, slots=True)
class ErrorLogEntry:
    timestamp: int
    context: str
    error: str

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "context": self.context,
            "error": self.error,
        }
