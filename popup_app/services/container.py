from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from fanout_logic.application.adapters import (
    GeminiAdapter,
    GoogleAdapter,
    ProviderRegistry,
)
from fanout_logic.application.completion import DEFAULT_COMPLETION_TIMEOUT_S
from fanout_logic.application.errors import ErrorRecorder
from fanout_logic.application.orchestrator import RequestOrchestrator
from popup_app.application.view_state import PopupViewState, TranslationPresenter
from popup_app.config import CONFIG_FILE_NAME, config_dir
from popup_app.services.backends import HttpBackends
from popup_app.services.runtime import AsyncRuntime
from popup_app.services.settings_provider import ConfigSettingsProvider
from popup_app.services.stores import (
    ERROR_LOG_FILE_NAME,
    HISTORY_FILE_NAME,
    ErrorLog,
    HistoryStore,
)
from popup_app.services.translation_service import TranslationService


def build_registry(backends: HttpBackends) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(GoogleAdapter(translate=backends.translate_google))
    registry.register(GeminiAdapter(translate=backends.translate_gemini))
    return registry


@dataclass(slots=True)
class AppServices:
    runtime: AsyncRuntime
    backends: HttpBackends
    settings: ConfigSettingsProvider
    history: HistoryStore
    error_log: ErrorLog
    presenter: TranslationPresenter
    orchestrator: RequestOrchestrator
    translator: TranslationService

    @classmethod
    def create(
        cls,
        *,
        base_dir: Path | None = None,
        on_change: Callable[[PopupViewState], None] | None = None,
        timeout_s: float = DEFAULT_COMPLETION_TIMEOUT_S,
    ) -> "AppServices":
        root = base_dir or config_dir()
        runtime = AsyncRuntime()
        backends = HttpBackends()
        settings = ConfigSettingsProvider(path=root / CONFIG_FILE_NAME)
        history = HistoryStore(path=root / HISTORY_FILE_NAME)
        error_log = ErrorLog(path=root / ERROR_LOG_FILE_NAME)
        errors = ErrorRecorder(error_log=error_log)
        presenter = TranslationPresenter(on_change=on_change)
        orchestrator = RequestOrchestrator(
            settings=settings,
            registry=build_registry(backends),
            detect_language=backends.detect_language,
            history=history,
            errors=errors,
            presenter=presenter,
            timeout_s=timeout_s,
        )
        translator = TranslationService(runtime, orchestrator, backends)
        return cls(
            runtime=runtime,
            backends=backends,
            settings=settings,
            history=history,
            error_log=error_log,
            presenter=presenter,
            orchestrator=orchestrator,
            translator=translator,
        )

    def start(self) -> None:
        self.runtime.start()

    def stop(self) -> None:
        self.translator.close()
        self.runtime.stop()
