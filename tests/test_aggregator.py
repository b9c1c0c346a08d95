from __future__ import annotations

from fanout_logic.application.aggregator import ResultAggregator, provider_rank
from fanout_logic.domain.models import OutcomeStatus, ProviderOutcome


def _ok(generation: int, service: str, text: str = "x") -> ProviderOutcome:
    return ProviderOutcome.succeeded(generation, service.lower(), service, text)


def test_provider_rank_puts_gemini_before_google_before_others() -> None:
    assert provider_rank("Gemini (gemini-2.0-flash)") == 0
    assert provider_rank("Google (Free)") == 1
    assert provider_rank("DeepL") == 2


def test_record_keeps_rank_order_and_arrival_order_within_rank() -> None:
    aggregator = ResultAggregator()
    aggregator.reset(3)

    aggregator.record(_ok(3, "DeepL", "a"))
    aggregator.record(_ok(3, "Google (Free)", "b"))
    aggregator.record(_ok(3, "Other", "c"))
    aggregator.record(_ok(3, "Gemini (pro)", "d"))

    assert [item.text for item in aggregator.snapshot()] == ["d", "b", "a", "c"]


def test_record_ignores_failures_and_other_generations() -> None:
    aggregator = ResultAggregator()
    aggregator.reset(2)

    assert aggregator.record(_ok(1, "Google (Free)")) is False
    assert (
        aggregator.record(ProviderOutcome.failed(2, "google", "Google (Free)", "boom"))
        is False
    )
    pending = ProviderOutcome(
        generation=2,
        provider="google",
        service="Google (Free)",
        status=OutcomeStatus.PENDING,
    )
    assert aggregator.record(pending) is False
    assert aggregator.snapshot() == ()


def test_reset_clears_previous_generation() -> None:
    aggregator = ResultAggregator()
    aggregator.reset(1)
    aggregator.record(_ok(1, "Google (Free)"))

    aggregator.reset(2)

    assert aggregator.generation == 2
    assert aggregator.snapshot() == ()
