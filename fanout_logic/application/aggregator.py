from __future__ import annotations

from dataclasses import dataclass, field

from fanout_logic.domain.models import ProviderOutcome


def provider_rank(service: str) -> int:
    if service.startswith("Gemini"):
        return 0
    if service.startswith("Google"):
        return 1
    return 2


def _outcome_list() -> list[ProviderOutcome]:
    return []


@dataclass(slots=True)
class ResultAggregator:
    """Successful outcomes of the current generation in display order.

    ``list.sort`` is stable, so outcomes of the same rank keep the order in
    which they arrived.
    """

    _generation: int = 0
    _outcomes: list[ProviderOutcome] = field(default_factory=_outcome_list)

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self, generation: int) -> None:
        self._generation = generation
        self._outcomes = []

    def record(self, outcome: ProviderOutcome) -> bool:
        if outcome.generation != self._generation:
            return False
        if not outcome.is_success:
            return False
        self._outcomes.append(outcome)
        self._outcomes.sort(key=lambda item: provider_rank(item.service))
        return True

    def snapshot(self) -> tuple[ProviderOutcome, ...]:
        return tuple(self._outcomes)
