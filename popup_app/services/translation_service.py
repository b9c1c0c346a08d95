from __future__ import annotations

from dataclasses import dataclass
import logging

from fanout_logic.application.orchestrator import RequestOrchestrator
from popup_app import telemetry
from popup_app.services.backends import HttpBackends
from popup_app.services.runtime import AsyncRuntime

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TranslationService:
    """Thread-safe entry points into the orchestrator running on ``runtime``."""

    runtime: AsyncRuntime
    orchestrator: RequestOrchestrator
    backends: HttpBackends

    def capture(self, text: str) -> None:
        telemetry.log_event("translation.capture", **telemetry.text_meta(text))
        self.runtime.call_soon(self.orchestrator.submit, text)

    def swap_languages(self) -> None:
        telemetry.log_event("translation.swap")
        self.runtime.call_soon(self.orchestrator.swap_languages)

    def clear_override(self) -> None:
        telemetry.log_event("translation.clear_override")
        self.runtime.call_soon(self.orchestrator.clear_override)

    def wait_idle(self, timeout: float | None = None) -> None:
        self.runtime.submit(self.orchestrator.wait_idle()).result(timeout)

    def gemini_models(self, api_key: str, timeout: float | None = None) -> list[str]:
        return self.runtime.submit(self.backends.gemini_models(api_key)).result(
            timeout
        )

    def close(self, timeout: float = 1.0) -> None:
        if not self.runtime.running:
            return
        close_orchestrator = self.runtime.submit(self.orchestrator.close())
        close_backends = self.runtime.submit(self.backends.close())
        for future in (close_orchestrator, close_backends):
            try:
                future.result(timeout=timeout)
            except Exception as exc:
                _LOGGER.warning("Shutdown step failed: %s", exc)
                telemetry.log_error("translation.close_failed", exc)
