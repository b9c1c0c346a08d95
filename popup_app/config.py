from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import json
import logging
import os
from pathlib import Path
from typing import Final

from fanout_logic.application.ports import TranslationSettings
from fanout_logic.domain.languages import DEFAULT_TARGET_LANGUAGE, known_or_default
from fanout_logic.domain.models import AUTO_MODEL

CONFIG_DIR_NAME: Final[str] = "afterpot"
CONFIG_FILE_NAME: Final[str] = "settings.json"
CONFIG_DIR_ENV: Final[str] = "AFTERPOT_CONFIG_DIR"
GEMINI_KEY_ENV: Final[str] = "GEMINI_API_KEY"
DEFAULT_HOTKEY: Final[str] = "Ctrl+Shift+Q"

_LOGGER = logging.getLogger(__name__)


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class AppSettings:
    gemini_api_key: str
    gemini_model: str
    target_language: str
    hotkey: str
    theme: Theme
    always_on_top: bool

    def translation_settings(self) -> TranslationSettings:
        api_key = self.gemini_api_key.strip()
        if not api_key:
            api_key = os.environ.get(GEMINI_KEY_ENV, "").strip()
        return TranslationSettings(
            gemini_api_key=api_key,
            gemini_model=self.gemini_model.strip() or AUTO_MODEL,
            target_language=known_or_default(self.target_language),
        )

    def with_updates(self, **changes: object) -> "AppSettings":
        return replace(self, **changes)


def config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override)
    xdg_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg_home) if xdg_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def config_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def default_settings() -> AppSettings:
    return AppSettings(
        gemini_api_key="",
        gemini_model=AUTO_MODEL,
        target_language=DEFAULT_TARGET_LANGUAGE,
        hotkey=DEFAULT_HOTKEY,
        theme=Theme.SYSTEM,
        always_on_top=False,
    )


def load_settings(path: Path | None = None) -> AppSettings:
    target = path or config_path()
    if not target.exists():
        return default_settings()
    try:
        raw_data = target.read_text(encoding="utf-8")
        payload: object = json.loads(raw_data)
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.warning("Ignoring unreadable settings file %s: %s", target, exc)
        return default_settings()
    return _parse_settings(payload)


def save_settings(settings: AppSettings, path: Path | None = None) -> None:
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(_settings_to_dict(settings), ensure_ascii=False, indent=2)
    target.write_text(data, encoding="utf-8")


def _parse_settings(payload: object) -> AppSettings:
    defaults = default_settings()
    payload_dict = _get_dict(payload)
    if payload_dict is None:
        return defaults
    return AppSettings(
        gemini_api_key=_get_str(payload_dict.get("geminiApiKey"), ""),
        gemini_model=(
            _get_str(payload_dict.get("geminiModel"), AUTO_MODEL) or AUTO_MODEL
        ),
        target_language=known_or_default(
            _get_str(payload_dict.get("targetLanguage"), DEFAULT_TARGET_LANGUAGE)
        ),
        hotkey=_get_str(payload_dict.get("hotkey"), DEFAULT_HOTKEY) or DEFAULT_HOTKEY,
        theme=_get_theme(payload_dict.get("theme"), defaults.theme),
        always_on_top=_get_bool(payload_dict.get("alwaysOnTop"), False),
    )


def _settings_to_dict(settings: AppSettings) -> dict[str, object]:
    return {
        "geminiApiKey": settings.gemini_api_key,
        "geminiModel": settings.gemini_model,
        "targetLanguage": settings.target_language,
        "hotkey": settings.hotkey,
        "theme": settings.theme.value,
        "alwaysOnTop": settings.always_on_top,
    }


def _get_dict(value: object | None) -> dict[str, object] | None:
    if isinstance(value, dict):
        output: dict[str, object] = {}
        for raw_key, raw_item in value.items():
            if isinstance(raw_key, str):
                output[raw_key] = raw_item
        return output
    return None


def _get_str(value: object | None, default: str) -> str:
    if isinstance(value, str):
        return value
    return default


def _get_bool(value: object | None, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _get_theme(value: object | None, default: Theme) -> Theme:
    if isinstance(value, str):
        for theme in Theme:
            if theme.value == value:
                return theme
    return default
