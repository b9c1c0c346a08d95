from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from fanout_logic.domain.models import CompletionLimit

DEFAULT_COMPLETION_TIMEOUT_S = CompletionLimit.TIMEOUT_MS.value / 1000


class CompletionState(Enum):
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    FORCED_COMPLETED = "forced_completed"


def _pending_set() -> set[str]:
    return set()


@dataclass(slots=True)
class GenerationBarrier:
    """Join point for the providers of one generation.

    The event is set when the last pending provider settles. ``wait`` resolves
    on that event or on the timeout, whichever comes first, and only ever
    resolves once.
    """

    generation: int
    _pending: set[str] = field(default_factory=_pending_set)
    _event: asyncio.Event = field(default_factory=asyncio.Event)
    _state: CompletionState = CompletionState.DISPATCHED

    @property
    def state(self) -> CompletionState:
        return self._state

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    def track(self, keys: Iterable[str]) -> None:
        self._pending.update(keys)
        if not self._pending:
            self._event.set()

    def settle(self, key: str) -> bool:
        if key not in self._pending:
            return False
        self._pending.discard(key)
        if not self._pending:
            self._event.set()
        return True

    async def wait(self, timeout_s: float) -> CompletionState:
        if self._state is not CompletionState.DISPATCHED:
            return self._state
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout_s)
        except asyncio.TimeoutError:
            if self._state is CompletionState.DISPATCHED:
                self._pending.clear()
                self._state = CompletionState.FORCED_COMPLETED
            return self._state
        if self._state is CompletionState.DISPATCHED:
            self._state = CompletionState.COMPLETED
        return self._state


@dataclass(slots=True)
class CompletionDetector:
    timeout_s: float = DEFAULT_COMPLETION_TIMEOUT_S
    _current: GenerationBarrier | None = None

    @property
    def current(self) -> GenerationBarrier | None:
        return self._current

    def reset(self) -> None:
        self._current = None

    def register(self, generation: int, keys: Iterable[str]) -> GenerationBarrier:
        barrier = GenerationBarrier(generation=generation)
        barrier.track(keys)
        self._current = barrier
        return barrier

    def settle(self, generation: int, key: str) -> bool:
        barrier = self._current
        if barrier is None or barrier.generation != generation:
            return False
        return barrier.settle(key)

    def pending(self) -> frozenset[str]:
        if self._current is None:
            return frozenset()
        return self._current.pending

    async def wait(self, barrier: GenerationBarrier) -> CompletionState:
        return await barrier.wait(self.timeout_s)
