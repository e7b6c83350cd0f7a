"""Append-only JSON-lines event log.

Each event is one JSON object per line. Writing an event never raises:
problems are reported through the standard ``logging`` module instead.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import IO, Any, Optional

from pomodoro.errors import LogWriteError, PomodoroError
from pomodoro.models import ErrorEvent, InfoEvent, LogEvent

log = logging.getLogger(__name__)


def error_event(err: BaseException) -> ErrorEvent:
    """Build the log event for ``err``, with code and details when it has them."""
    if isinstance(err, PomodoroError):
        return ErrorEvent(
            error=str(err),
            code=int(err.code),
            details=err.details.model_dump(mode="json", exclude_none=True),
        )
    return ErrorEvent(error=str(err) or type(err).__name__)


class EventLogger:
    """Writes events to a file, or error events only to a fallback stream."""

    def __init__(self, path: Optional[Path] = None, stream: Optional[IO[str]] = None) -> None:
        self.path = path
        self._stream = stream
        self._file: Optional[IO[str]] = None
        if path is not None:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                self._file = path.open("a", encoding="utf-8")
            except OSError as exc:
                raise LogWriteError(str(path), str(exc)) from exc

    def __enter__(self) -> EventLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def log_info(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.write(InfoEvent(message=message, details=details or {}))

    def log_error(self, err: BaseException) -> None:
        self.write(error_event(err))

    def write(self, event: LogEvent) -> None:
        try:
            line = event.model_dump_json(exclude_none=True)
        except (TypeError, ValueError) as exc:
            log.warning("Failed to serialize %s log event: %s", event.level, exc)
            return

        if self._file is not None:
            try:
                self._file.write(line + "\n")
                self._file.flush()
                os.fsync(self._file.fileno())
            except (OSError, ValueError) as exc:
                log.warning("Failed to write log event to %s: %s", self.path, exc)
            return

        if event.level == "error":
            stream = self._stream or sys.stderr
            try:
                stream.write(line + "\n")
                stream.flush()
            except (OSError, ValueError) as exc:
                log.warning("Failed to write log event: %s", exc)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
