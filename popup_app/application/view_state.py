from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from fanout_logic.domain.languages import display_name
from fanout_logic.domain.models import (
    UNKNOWN_LANGUAGE,
    HistoryEntry,
    ProviderOutcome,
    TranslationRequest,
)
from popup_app import telemetry


@dataclass(frozen=True, slots=True)
class ResultViewItem:
    service: str
    text: str
    lang_info: str


@dataclass(frozen=True, slots=True)
class PopupViewState:
    generation: int
    original: str
    detected_language: str
    target_language: str
    items: tuple[ResultViewItem, ...]
    pending: tuple[str, ...]
    loading: bool

    @classmethod
    def empty(cls) -> "PopupViewState":
        return cls(
            generation=0,
            original="",
            detected_language=UNKNOWN_LANGUAGE,
            target_language="",
            items=(),
            pending=(),
            loading=False,
        )

    @property
    def language_pair(self) -> str:
        if not self.target_language:
            return ""
        return f"{self.detected_language} → {self.target_language}"

    @property
    def can_swap(self) -> bool:
        return bool(self.target_language) and not self.loading

    @property
    def shows_empty_message(self) -> bool:
        return not self.loading and bool(self.original) and not self.items


@dataclass(slots=True)
class TranslationPresenter:
    """Turns orchestrator callbacks into immutable popup view states."""

    on_change: Callable[[PopupViewState], None] | None = None
    _state: PopupViewState = field(default_factory=PopupViewState.empty)

    @property
    def state(self) -> PopupViewState:
        return self._state

    def on_started(self, generation: int, text: str) -> None:
        self._publish(
            PopupViewState(
                generation=generation,
                original=text,
                detected_language=UNKNOWN_LANGUAGE,
                target_language="",
                items=(),
                pending=(),
                loading=True,
            )
        )

    def on_dispatched(
        self, request: TranslationRequest, pending: frozenset[str]
    ) -> None:
        if request.generation != self._state.generation:
            return
        telemetry.log_event(
            "translation.dispatched",
            generation=request.generation,
            detected=request.detected_language,
            target=request.target_language,
            providers=sorted(pending),
        )
        self._publish(
            PopupViewState(
                generation=request.generation,
                original=self._state.original,
                detected_language=request.detected_language,
                target_language=request.target_language,
                items=(),
                pending=tuple(sorted(pending)),
                loading=True,
            )
        )

    def on_results(
        self,
        generation: int,
        results: tuple[ProviderOutcome, ...],
        pending: frozenset[str],
    ) -> None:
        if generation != self._state.generation:
            return
        self._publish(
            PopupViewState(
                generation=generation,
                original=self._state.original,
                detected_language=self._state.detected_language,
                target_language=self._state.target_language,
                items=self._items(results),
                pending=tuple(sorted(pending)),
                loading=self._state.loading,
            )
        )

    def on_done(
        self,
        request: TranslationRequest,
        results: tuple[ProviderOutcome, ...],
        entry: HistoryEntry | None,
    ) -> None:
        if request.generation != self._state.generation:
            return
        telemetry.log_event(
            "translation.done",
            generation=request.generation,
            services=[item.service for item in results],
            saved=entry is not None,
        )
        self._publish(
            PopupViewState(
                generation=request.generation,
                original=self._state.original,
                detected_language=request.detected_language,
                target_language=request.target_language,
                items=self._items(results),
                pending=(),
                loading=False,
            )
        )

    def _items(
        self, results: tuple[ProviderOutcome, ...]
    ) -> tuple[ResultViewItem, ...]:
        lang_info = _lang_info(
            self._state.detected_language, self._state.target_language
        )
        return tuple(
            ResultViewItem(service=item.service, text=item.text, lang_info=lang_info)
            for item in results
        )

    def _publish(self, state: PopupViewState) -> None:
        self._state = state
        if self.on_change is not None:
            self.on_change(state)


def _lang_info(detected: str, target: str) -> str:
    if not target:
        return ""
    return f"{display_name(detected)} → {display_name(target)}"
