"""Structured event log for the popup host.

Events are written as one JSON object per line to ``afterpot.log``. Records
go through a queue so the asyncio loop never blocks on file IO. Captured text
is never logged; use :func:`text_meta` to describe it.
"""

from __future__ import annotations

import atexit
from dataclasses import dataclass
from datetime import datetime, timezone
import hashlib
import json
import logging
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
import os
from pathlib import Path
import queue
from typing import Final

LOGGER_NAME: Final[str] = "afterpot.events"
LOG_FILE_NAME: Final[str] = "afterpot.log"
LOG_DIR_ENV: Final[str] = "AFTERPOT_LOG_DIR"
LOG_SWITCH_ENV: Final[str] = "AFTERPOT_LOGGING"
_MAX_LOG_BYTES: Final[int] = 1_000_000
_LOG_BACKUPS: Final[int] = 2
_HASH_CHARS: Final[int] = 16


@dataclass(slots=True)
class _Sink:
    logger: logging.Logger
    listener: QueueListener
    handler: logging.Handler


_sink: _Sink | None = None


def log_path() -> Path:
    override = os.environ.get(LOG_DIR_ENV, "").strip()
    base = Path(override) if override else Path.home() / ".afterpot" / "logs"
    return base / LOG_FILE_NAME


def enabled() -> bool:
    return os.environ.get(LOG_SWITCH_ENV, "1").strip().lower() not in {
        "0",
        "false",
        "off",
    }


def configure(*, reset: bool = False) -> bool:
    """Start the background writer; returns False when logging is off."""
    global _sink
    if _sink is not None:
        return True
    if not enabled():
        return False
    path = log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if reset and path.exists():
            path.unlink()
        handler: logging.Handler = RotatingFileHandler(
            path,
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError:
        return False
    handler.setFormatter(logging.Formatter("%(message)s"))
    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(QueueHandler(records))
    listener = QueueListener(records, handler)
    listener.start()
    _sink = _Sink(logger=logger, listener=listener, handler=handler)
    atexit.register(shutdown)
    return True


def shutdown() -> None:
    global _sink
    sink = _sink
    if sink is None:
        return
    _sink = None
    sink.listener.stop()
    sink.handler.close()
    sink.logger.handlers.clear()


def log_event(event: str, **fields: object) -> None:
    _emit(logging.INFO, _payload(event, fields))


def log_error(event: str, exc: BaseException | None = None, **fields: object) -> None:
    payload = _payload(event, fields)
    if exc is not None:
        payload["error_type"] = type(exc).__name__
        payload["error"] = str(exc)
    _emit(logging.ERROR, payload)


def text_meta(value: str | None) -> dict[str, object]:
    text = value or ""
    digest = hashlib.sha256(text.encode("utf-8", errors="ignore")).hexdigest()
    return {
        "text_len": len(text),
        "text_hash": digest[:_HASH_CHARS] if text else "",
    }


def _emit(level: int, payload: dict[str, object]) -> None:
    if not configure():
        return
    sink = _sink
    if sink is None:
        return
    line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"))
    sink.logger.log(level, line)


def _payload(event: str, fields: dict[str, object]) -> dict[str, object]:
    payload: dict[str, object] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "event": event,
        "pid": os.getpid(),
    }
    for name, value in fields.items():
        payload[name] = _plain(value)
    return payload


def _plain(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    return str(value)
