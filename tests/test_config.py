from __future__ import annotations

import json
from pathlib import Path

import pytest

from popup_app.config import (
    Theme,
    config_dir,
    default_settings,
    load_settings,
    save_settings,
)
from popup_app.services.settings_provider import ConfigSettingsProvider


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "settings.json")

    assert settings == default_settings()
    assert settings.target_language == "ja"
    assert settings.gemini_model == "auto"


def test_round_trip_uses_camel_case_keys(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    settings = default_settings().with_updates(
        gemini_api_key="k", target_language="ko", theme=Theme.DARK
    )

    save_settings(settings, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["geminiApiKey"] == "k"
    assert raw["targetLanguage"] == "ko"
    assert raw["theme"] == "dark"
    assert load_settings(path) == settings


def test_invalid_values_fall_back_per_field(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "targetLanguage": "xx",
                "geminiModel": "",
                "theme": "neon",
                "alwaysOnTop": "yes",
                "hotkey": 5,
            }
        ),
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.target_language == "ja"
    assert settings.gemini_model == "auto"
    assert settings.theme is Theme.SYSTEM
    assert settings.always_on_top is False
    assert settings.hotkey == "Ctrl+Shift+Q"


def test_corrupt_file_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{", encoding="utf-8")

    assert load_settings(path) == default_settings()


def test_env_key_used_when_file_key_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", " env-key ")

    translation = default_settings().translation_settings()

    assert translation.gemini_api_key == "env-key"
    file_key = default_settings().with_updates(gemini_api_key="file-key")
    assert file_key.translation_settings().gemini_api_key == "file-key"


def test_config_dir_honours_overrides(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("AFTERPOT_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert config_dir() == tmp_path / "afterpot"

    monkeypatch.setenv("AFTERPOT_CONFIG_DIR", str(tmp_path / "custom"))
    assert config_dir() == tmp_path / "custom"


def test_provider_rereads_file_for_each_request(tmp_path: Path) -> None:
    provider = ConfigSettingsProvider(path=tmp_path / "settings.json")
    assert provider.get_settings().target_language == "ja"

    provider.update(target_language="fr")

    assert provider.get_settings().target_language == "fr"
