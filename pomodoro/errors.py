"""Error taxonomy. Every error kind carries a fixed, structured payload."""

from __future__ import annotations

import enum
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel

from pomodoro.models import SessionKind


class ErrorCode(enum.IntEnum):
    """Stable numeric codes written to the event log."""

    INVALID_ARGS = 1000
    INVALID_FLAG = 1001
    INVALID_NUMBER = 1002
    INVALID_DURATION = 1003
    TERMINAL_NOT_SUPPORTED = 1004
    SESSION_INTERRUPTED = 1005
    CONFIG_LOAD = 1006
    LOG_WRITE = 1007


# ---------------------------------------------------------------------------
# Detail payloads
# ---------------------------------------------------------------------------


class InvalidArgumentsDetails(BaseModel):
    provided_count: int
    examples: list[str]


class InvalidFlagDetails(BaseModel):
    flag: str
    valid_flags: list[str]


class InvalidNumberDetails(BaseModel):
    field_name: str
    provided: str
    max_allowed: Optional[int] = None


class InvalidDurationDetails(BaseModel):
    field_name: str
    requested: timedelta
    max_allowed: timedelta


class TerminalDetails(BaseModel):
    operation: str
    reason: str


class InterruptedDetails(BaseModel):
    kind: Optional[SessionKind] = None
    elapsed: Optional[timedelta] = None
    cycle: Optional[int] = None


class ResourceDetails(BaseModel):
    path: str
    reason: str


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PomodoroError(Exception):
    """Base class for every error the application raises on purpose."""

    code: ErrorCode

    def __init__(self, message: str, details: BaseModel) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.message}"


class InvalidArgumentsError(PomodoroError):
    code = ErrorCode.INVALID_ARGS
    details: InvalidArgumentsDetails

    def __init__(self, provided_count: int, examples: list[str]) -> None:
        super().__init__(
            "Usage: pomodoro <work_time> <break_time> [-h]",
            InvalidArgumentsDetails(provided_count=provided_count, examples=examples),
        )


class InvalidFlagError(PomodoroError):
    code = ErrorCode.INVALID_FLAG
    details: InvalidFlagDetails

    def __init__(self, flag: str, valid_flags: list[str]) -> None:
        super().__init__(
            f"Unknown flag: {flag}",
            InvalidFlagDetails(flag=flag, valid_flags=valid_flags),
        )


class InvalidNumberError(PomodoroError):
    code = ErrorCode.INVALID_NUMBER
    details: InvalidNumberDetails

    def __init__(
        self, field_name: str, provided: str, problem: str, max_allowed: Optional[int] = None
    ) -> None:
        super().__init__(
            f"{field_name} {problem}",
            InvalidNumberDetails(field_name=field_name, provided=provided, max_allowed=max_allowed),
        )


class InvalidDurationError(PomodoroError):
    code = ErrorCode.INVALID_DURATION
    details: InvalidDurationDetails

    def __init__(self, field_name: str, requested: timedelta, max_allowed: timedelta) -> None:
        label = "Work" if field_name == "work_time" else "Break"
        super().__init__(
            f"{label} session too long",
            InvalidDurationDetails(
                field_name=field_name, requested=requested, max_allowed=max_allowed
            ),
        )


class TerminalUnsupportedError(PomodoroError):
    """The output surface rejected a render. Never fatal to a running timer."""

    code = ErrorCode.TERMINAL_NOT_SUPPORTED
    details: TerminalDetails

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Failed to {operation.replace('_', ' ')}",
            TerminalDetails(operation=operation, reason=reason),
        )


class SessionInterruptedError(PomodoroError):
    """A session was stopped by the cancellation token before it completed."""

    code = ErrorCode.SESSION_INTERRUPTED
    details: InterruptedDetails

    def __init__(self, kind: SessionKind, elapsed: timedelta) -> None:
        super().__init__(
            f"{kind.label} session cancelled",
            InterruptedDetails(kind=kind, elapsed=elapsed),
        )


class CycleCancelledError(SessionInterruptedError):
    """The perpetual work/break cycle stopped. It cannot be resumed."""

    def __init__(self, cycle: int) -> None:
        PomodoroError.__init__(
            self, "Pomodoro cycle cancelled", InterruptedDetails(cycle=cycle)
        )
        self.cycle = cycle


class ConfigLoadError(PomodoroError):
    code = ErrorCode.CONFIG_LOAD
    details: ResourceDetails

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Could not load config from {path}",
            ResourceDetails(path=path, reason=reason),
        )


class LogWriteError(PomodoroError):
    code = ErrorCode.LOG_WRITE
    details: ResourceDetails

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Could not open log file {path}",
            ResourceDetails(path=path, reason=reason),
        )
