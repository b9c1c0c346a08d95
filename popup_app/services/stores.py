from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
from pathlib import Path
import threading
from typing import Final

from fanout_logic.domain.models import (
    ErrorLogEntry,
    HistoryEntry,
    ServiceTranslation,
    StoreLimit,
)

HISTORY_FILE_NAME: Final[str] = "history.json"
ERROR_LOG_FILE_NAME: Final[str] = "error_logs.json"
EXPORT_TIME_FORMAT: Final[str] = "%Y/%m/%d %H:%M:%S"

_LOGGER = logging.getLogger(__name__)


def _thread_lock() -> threading.Lock:
    return threading.Lock()


def _history_items() -> list[HistoryEntry]:
    return []


def _error_items() -> list[ErrorLogEntry]:
    return []


@dataclass(slots=True)
class HistoryStore:
    """Completed translations, newest first.

    With a ``path`` every ``add`` re-reads the file before writing it back.
    """

    path: Path | None = None
    max_entries: int = StoreLimit.MAX_HISTORY_ENTRIES.value
    _items: list[HistoryEntry] = field(default_factory=_history_items)
    _lock: threading.Lock = field(default_factory=_thread_lock, repr=False)

    def add(self, entry: HistoryEntry) -> None:
        with self._lock:
            items = self._load()
            items.insert(0, entry)
            del items[self.max_entries :]
            self._store(items)

    def clear(self) -> None:
        with self._lock:
            self._items = []
            if self.path is not None:
                _remove_file(self.path)

    def get_all(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._load())

    def _load(self) -> list[HistoryEntry]:
        if self.path is None:
            return list(self._items)
        return [
            entry
            for entry in (_parse_history_entry(raw) for raw in _read_list(self.path))
            if entry is not None
        ]

    def _store(self, items: list[HistoryEntry]) -> None:
        self._items = items
        if self.path is not None:
            _write_list(self.path, [item.to_dict() for item in items])


@dataclass(slots=True)
class ErrorLog:
    path: Path | None = None
    max_entries: int = StoreLimit.MAX_ERROR_LOGS.value
    _items: list[ErrorLogEntry] = field(default_factory=_error_items)
    _lock: threading.Lock = field(default_factory=_thread_lock, repr=False)

    def add(self, entry: ErrorLogEntry) -> None:
        with self._lock:
            items = self._load()
            items.insert(0, entry)
            del items[self.max_entries :]
            self._store(items)

    def clear(self) -> None:
        with self._lock:
            self._items = []
            if self.path is not None:
                _remove_file(self.path)

    def get_all(self) -> list[ErrorLogEntry]:
        with self._lock:
            return list(self._load())

    def export_text(self) -> str:
        return format_error_logs(self.get_all())

    def _load(self) -> list[ErrorLogEntry]:
        if self.path is None:
            return list(self._items)
        return [
            entry
            for entry in (_parse_error_entry(raw) for raw in _read_list(self.path))
            if entry is not None
        ]

    def _store(self, items: list[ErrorLogEntry]) -> None:
        self._items = items
        if self.path is not None:
            _write_list(self.path, [item.to_dict() for item in items])


def format_error_logs(entries: list[ErrorLogEntry]) -> str:
    blocks: list[str] = []
    for entry in entries:
        when = datetime.fromtimestamp(entry.timestamp / 1000).strftime(
            EXPORT_TIME_FORMAT
        )
        blocks.append(f"[{when}] {entry.context}: {entry.error}")
    return "\n\n".join(blocks)


def _read_list(path: Path) -> list[object]:
    if not path.exists():
        return []
    try:
        payload: object = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.warning("Failed to read %s: %s", path, exc)
        return []
    if isinstance(payload, list):
        return payload
    return []


def _write_list(path: Path, items: list[dict[str, object]]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        _LOGGER.error("Failed to write %s: %s", path, exc)


def _remove_file(path: Path) -> None:
    try:
        if path.exists():
            path.unlink()
    except OSError as exc:
        _LOGGER.error("Failed to remove %s: %s", path, exc)


def _parse_history_entry(raw: object) -> HistoryEntry | None:
    if not isinstance(raw, dict):
        return None
    raw_translations = raw.get("translations")
    if not isinstance(raw_translations, list):
        return None
    translations: list[ServiceTranslation] = []
    for item in raw_translations:
        if not isinstance(item, dict):
            continue
        service = item.get("service")
        result = item.get("result")
        if isinstance(service, str) and isinstance(result, str):
            translations.append(ServiceTranslation(service=service, result=result))
    timestamp = raw.get("timestamp")
    if not isinstance(timestamp, int):
        return None
    return HistoryEntry(
        id=_get_str(raw.get("id"), str(timestamp)),
        timestamp=timestamp,
        original_text=_get_str(raw.get("originalText"), ""),
        detected_language=_get_str(raw.get("detectedLanguage"), "unknown"),
        target_language=_get_str(raw.get("targetLanguage"), ""),
        translations=tuple(translations),
    )


def _parse_error_entry(raw: object) -> ErrorLogEntry | None:
    if not isinstance(raw, dict):
        return None
    timestamp = raw.get("timestamp")
    if not isinstance(timestamp, int):
        return None
    return ErrorLogEntry(
        timestamp=timestamp,
        context=_get_str(raw.get("context"), ""),
        error=_get_str(raw.get("error"), ""),
    )


def _get_str(value: object | None, default: str) -> str:
    if isinstance(value, str):
        return value
    return default
