from __future__ import annotations

from dataclasses import dataclass

from fanout_logic.domain.languages import (
    AUTO_PAIR,
    is_known_language,
    known_or_default,
)


@dataclass(frozen=True, slots=True)
class LanguageResolver:
    """Target-language policy for a single request.

    An explicit override always wins. Otherwise Japanese and English map to
    each other and anything else (including ``"unknown"``) uses the
    configured default.
    """

    def auto_target(self, detected: str, configured_default: str) -> str:
        paired = AUTO_PAIR.get(detected)
        if paired is not None:
            return paired
        return known_or_default(configured_default)

    def resolve(
        self,
        detected: str,
        configured_default: str,
        manual_override: str | None = None,
    ) -> str:
        if manual_override:
            return manual_override
        return self.auto_target(detected, configured_default)

    def swap(self, detected: str, current_target: str) -> str:
        # Nothing to swap towards when detection failed.
        if not is_known_language(detected):
            return current_target
        fallback = AUTO_PAIR.get(detected, current_target)
        if current_target == detected:
            return fallback
        return detected
