from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fanout_logic.application.ports import TranslationSettings
from popup_app.config import AppSettings, load_settings, save_settings


@dataclass(slots=True)
class ConfigSettingsProvider:
    """Reads the settings file on every request so edits apply to the next one."""

    path: Path | None = None

    def get_settings(self) -> TranslationSettings:
        return self.app_settings().translation_settings()

    def app_settings(self) -> AppSettings:
        return load_settings(self.path)

    def update(self, **changes: object) -> AppSettings:
        updated = self.app_settings().with_updates(**changes)
        save_settings(updated, self.path)
        return updated
