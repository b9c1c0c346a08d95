from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fanout_logic.application.errors import ErrorRecorder
from fanout_logic.domain.models import ErrorLogEntry
from popup_app.services.stores import ErrorLog, format_error_logs


def _millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def test_error_log_is_bounded_and_newest_first(tmp_path: Path) -> None:
    error_log = ErrorLog(path=tmp_path / "error_logs.json")

    for index in range(101):
        error_log.add(
            ErrorLogEntry(timestamp=index, context="Google Translate", error=str(index))
        )

    entries = error_log.get_all()
    assert len(entries) == 100
    assert entries[0].error == "100"
    assert entries[-1].error == "1"


def test_export_formats_local_time_and_blank_line_separator() -> None:
    first = _millis(datetime(2024, 3, 1, 9, 5, 7))
    second = _millis(datetime(2024, 3, 2, 18, 0, 0))
    entries = [
        ErrorLogEntry(timestamp=second, context="Gemini Translation", error="quota"),
        ErrorLogEntry(timestamp=first, context="Language Detection", error="offline"),
    ]

    assert format_error_logs(entries) == (
        "[2024/03/02 18:00:00] Gemini Translation: quota\n\n"
        "[2024/03/01 09:05:07] Language Detection: offline"
    )


def test_recorder_uses_exception_message_or_type_name() -> None:
    error_log = ErrorLog()
    recorder = ErrorRecorder(error_log=error_log, clock=lambda: 42)

    recorder.record("Google Translate", RuntimeError("HTTP 503"))
    recorder.record("Gemini Translation", TimeoutError())

    assert error_log.get_all() == [
        ErrorLogEntry(timestamp=42, context="Gemini Translation", error="TimeoutError"),
        ErrorLogEntry(timestamp=42, context="Google Translate", error="HTTP 503"),
    ]


def test_clear_removes_file(tmp_path: Path) -> None:
    path = tmp_path / "error_logs.json"
    error_log = ErrorLog(path=path)
    error_log.add(ErrorLogEntry(timestamp=1, context="c", error="e"))

    error_log.clear()

    assert error_log.export_text() == ""
    assert not path.exists()
