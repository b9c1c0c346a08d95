from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Final

from fanout_logic.application.ports import Clock, ErrorLogPort, epoch_millis
from fanout_logic.domain.models import ErrorLogEntry

DETECTION_CONTEXT: Final[str] = "Language Detection"
GOOGLE_CONTEXT: Final[str] = "Google Translate"
GEMINI_CONTEXT: Final[str] = "Gemini Translation"

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ErrorRecorder:
    error_log: ErrorLogPort
    clock: Clock = epoch_millis

    def record(self, context: str, error: BaseException | str) -> ErrorLogEntry:
        message = describe_error(error)
        entry = ErrorLogEntry(timestamp=self.clock(), context=context, error=message)
        _LOGGER.warning("%s failed: %s", context, message)
        self.error_log.add(entry)
        return entry


def describe_error(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error
    message = str(error)
    if message:
        return message
    return error.__class__.__name__
