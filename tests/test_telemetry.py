from __future__ import annotations

import json
from pathlib import Path

import pytest

from popup_app import telemetry


def test_events_are_written_as_json_lines(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("AFTERPOT_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("AFTERPOT_LOGGING", "1")
    try:
        telemetry.log_event(
            "translation.done", generation=3, services=("Google (Free)",)
        )
        telemetry.log_error("translation.close_failed", RuntimeError("boom"))
    finally:
        telemetry.shutdown()

    lines = (tmp_path / "afterpot.log").read_text(encoding="utf-8").splitlines()
    first, second = (json.loads(line) for line in lines)
    assert first["event"] == "translation.done"
    assert first["generation"] == 3
    assert first["services"] == ["Google (Free)"]
    assert second["error_type"] == "RuntimeError"
    assert second["error"] == "boom"


def test_reset_starts_a_fresh_log(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("AFTERPOT_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("AFTERPOT_LOGGING", "1")
    (tmp_path / "afterpot.log").write_text('{"event": "old"}\n', encoding="utf-8")
    try:
        assert telemetry.configure(reset=True) is True
        telemetry.log_event("translation.swap")
    finally:
        telemetry.shutdown()

    lines = (tmp_path / "afterpot.log").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["translation.swap"]


def test_disabled_logging_writes_nothing(tmp_path: Path) -> None:
    telemetry.log_event("translation.capture")

    assert not (tmp_path / "logs").exists()


def test_text_meta_never_contains_text() -> None:
    meta = telemetry.text_meta("secret sentence")

    assert meta["text_len"] == len("secret sentence")
    assert "secret" not in str(meta)
    assert telemetry.text_meta(None) == {"text_len": 0, "text_hash": ""}
