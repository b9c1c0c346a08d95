from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass, field
import logging
from typing import Any

from fanout_logic.application.adapters import ProviderAdapter, ProviderRegistry
from fanout_logic.application.aggregator import ResultAggregator
from fanout_logic.application.completion import (
    DEFAULT_COMPLETION_TIMEOUT_S,
    CompletionDetector,
    CompletionState,
)
from fanout_logic.application.errors import DETECTION_CONTEXT, ErrorRecorder
from fanout_logic.application.ports import (
    Clock,
    HistoryPort,
    LanguageDetector,
    NullPresenter,
    PresentationPort,
    SettingsPort,
    TranslationSettings,
    epoch_millis,
)
from fanout_logic.domain.models import (
    UNKNOWN_LANGUAGE,
    HistoryEntry,
    OutcomeStatus,
    ProviderOutcome,
    ServiceTranslation,
    TranslationRequest,
)
from fanout_logic.domain.policies import LanguageResolver
from fanout_logic.domain.rules import normalize_captured_text

_LOGGER = logging.getLogger(__name__)


def _task_set() -> set[asyncio.Task[None]]:
    return set()


def _run_map() -> dict[int, asyncio.Task[None]]:
    return {}


@dataclass(slots=True)
class RequestOrchestrator:
    """Fans one captured text out to every enabled provider.

    Each ``submit`` opens a new generation. Work started for an older
    generation keeps running on the loop, but every settlement is checked
    against the current generation before it may touch the aggregator, the
    completion barrier, the presenter or the history store.
    """

    settings: SettingsPort
    registry: ProviderRegistry
    detect_language: LanguageDetector
    history: HistoryPort
    errors: ErrorRecorder
    presenter: PresentationPort = field(default_factory=NullPresenter)
    resolver: LanguageResolver = field(default_factory=LanguageResolver)
    timeout_s: float = DEFAULT_COMPLETION_TIMEOUT_S
    clock: Clock = epoch_millis

    _generation: int = 0
    _aggregator: ResultAggregator = field(default_factory=ResultAggregator)
    _detector: CompletionDetector = field(init=False)
    _request: TranslationRequest | None = None
    _last_text: str = ""
    _manual_override: str | None = None
    _loading: bool = False
    _tasks: set[asyncio.Task[None]] = field(default_factory=_task_set)
    _runs: dict[int, asyncio.Task[None]] = field(default_factory=_run_map)

    def __post_init__(self) -> None:
        self._detector = CompletionDetector(timeout_s=self.timeout_s)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_request(self) -> TranslationRequest | None:
        return self._request

    @property
    def results(self) -> tuple[ProviderOutcome, ...]:
        return self._aggregator.snapshot()

    @property
    def pending_providers(self) -> frozenset[str]:
        return self._detector.pending()

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def manual_override(self) -> str | None:
        return self._manual_override

    @property
    def last_text(self) -> str:
        return self._last_text

    def submit(self, text: str) -> None:
        normalized = normalize_captured_text(text)
        if not normalized:
            return
        self._generation += 1
        generation = self._generation
        self._last_text = normalized
        self._request = None
        self._loading = True
        self._aggregator.reset(generation)
        self._detector.reset()
        self.presenter.on_started(generation, normalized)
        run = self._spawn(self._run(generation, normalized))
        self._runs[generation] = run
        run.add_done_callback(lambda _done: self._runs.pop(generation, None))

    def swap_languages(self) -> None:
        request = self._request
        if request is None:
            return
        self._manual_override = self.resolver.swap(
            request.detected_language, request.target_language
        )
        _LOGGER.info("Manual target override set to %s", self._manual_override)
        if self._last_text:
            self.submit(self._last_text)

    def clear_override(self) -> None:
        self._manual_override = None

    async def wait_idle(self) -> None:
        while True:
            generation = self._generation
            run = self._runs.get(generation)
            if run is None:
                return
            await asyncio.shield(run)
            if generation == self._generation:
                return

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._runs.clear()

    async def _run(self, generation: int, text: str) -> None:
        settings = self.settings.get_settings()
        detected, failure = await self._detect(text)
        if not self._is_current(generation):
            return
        if failure is not None:
            self.errors.record(DETECTION_CONTEXT, failure)
        target = self.resolver.resolve(
            detected, settings.target_language, self._manual_override
        )
        request = TranslationRequest(
            generation=generation,
            source_text=text,
            detected_language=detected,
            target_language=target,
        )
        self._request = request
        adapters = self.registry.enabled(settings)
        barrier = self._detector.register(
            generation, [adapter.key for adapter in adapters]
        )
        self.presenter.on_dispatched(request, barrier.pending)
        for adapter in adapters:
            self._spawn(self._attempt(adapter, request, settings))
        state = await self._detector.wait(barrier)
        self._complete(request, state)

    async def _detect(self, text: str) -> tuple[str, Exception | None]:
        try:
            detected = await self.detect_language(text)
        except Exception as exc:
            return UNKNOWN_LANGUAGE, exc
        return detected.strip() or UNKNOWN_LANGUAGE, None

    async def _attempt(
        self,
        adapter: ProviderAdapter,
        request: TranslationRequest,
        settings: TranslationSettings,
    ) -> None:
        outcome = await adapter.attempt(request, settings)
        if not self._is_current(request.generation):
            _LOGGER.debug(
                "Discarding %s outcome of stale generation %s",
                adapter.key,
                request.generation,
            )
            return
        if outcome.status is OutcomeStatus.FAILED:
            self.errors.record(adapter.error_context, outcome.error)
        self._aggregator.record(outcome)
        self._detector.settle(request.generation, adapter.key)
        self.presenter.on_results(
            request.generation,
            self._aggregator.snapshot(),
            self._detector.pending(),
        )

    def _complete(self, request: TranslationRequest, state: CompletionState) -> None:
        if not self._is_current(request.generation):
            _LOGGER.debug(
                "Completion of stale generation %s ignored", request.generation
            )
            return
        if state is CompletionState.FORCED_COMPLETED:
            _LOGGER.info(
                "Generation %s forced to complete after %.1fs",
                request.generation,
                self.timeout_s,
            )
        self._loading = False
        results = self._aggregator.snapshot()
        entry: HistoryEntry | None = None
        if results:
            entry = self._history_entry(request, results)
            self.history.add(entry)
        self.presenter.on_done(request, results, entry)

    def _history_entry(
        self, request: TranslationRequest, results: tuple[ProviderOutcome, ...]
    ) -> HistoryEntry:
        now = self.clock()
        return HistoryEntry(
            id=f"{now}-{request.generation}",
            timestamp=now,
            original_text=request.source_text,
            detected_language=request.detected_language,
            target_language=request.target_language,
            translations=tuple(
                ServiceTranslation(service=item.service, result=item.text)
                for item in results
            ),
        )

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _LOGGER.error("Translation task failed", exc_info=exc)
