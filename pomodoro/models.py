"""Pydantic models: the single source of truth for all data types."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_WORK_DURATION = timedelta(minutes=25)
DEFAULT_BREAK_DURATION = timedelta(minutes=5)
DEFAULT_PROGRESS_BAR_WIDTH = 30
MAX_SESSION_DURATION = timedelta(hours=12)


class SessionKind(str, enum.Enum):
    """The two phases of a pomodoro cycle."""

    WORK = "work"
    BREAK = "break"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class EngineConfig(BaseModel):
    """Durations and display settings for the session engine."""

    model_config = ConfigDict(frozen=True)

    work_duration: timedelta = DEFAULT_WORK_DURATION
    break_duration: timedelta = DEFAULT_BREAK_DURATION
    progress_bar_width: int = Field(default=DEFAULT_PROGRESS_BAR_WIDTH, gt=0)
    max_session_duration: timedelta = MAX_SESSION_DURATION

    @model_validator(mode="after")
    def check_durations(self) -> EngineConfig:
        for name in ("work_duration", "break_duration"):
            value: timedelta = getattr(self, name)
            if value <= timedelta(0):
                raise ValueError(f"{name} must be positive")
            if value > self.max_session_duration:
                raise ValueError(f"{name} exceeds {self.max_session_duration}")
        return self

    def duration_for(self, kind: SessionKind) -> timedelta:
        if kind is SessionKind.WORK:
            return self.work_duration
        return self.break_duration


class Session(BaseModel):
    """One executed or attempted countdown interval.

    Sessions are frozen: the engine builds a new copy when the run reaches
    its terminal state and appends that copy to the history.
    """

    model_config = ConfigDict(frozen=True)

    kind: SessionKind
    planned_duration: timedelta
    start_time: datetime
    end_time: datetime
    completed: bool = False
    cancelled: bool = False

    @model_validator(mode="after")
    def check_state(self) -> Session:
        if self.planned_duration <= timedelta(0):
            raise ValueError("planned_duration must be positive")
        if self.completed and self.cancelled:
            raise ValueError("a session cannot be both completed and cancelled")
        return self

    @property
    def is_finished(self) -> bool:
        return self.completed or self.cancelled


class SessionStats(BaseModel):
    """Aggregate view over the session history."""

    total_sessions: int = Field(default=0, ge=0)
    completed_sessions: int = Field(default=0, ge=0)
    work_sessions: int = Field(default=0, ge=0)
    break_sessions: int = Field(default=0, ge=0)
    total_work_time: timedelta = timedelta(0)
    total_break_time: timedelta = timedelta(0)


class SessionInfo(BaseModel):
    """What the renderer needs to draw one tick."""

    label: str
    elapsed: timedelta
    progress: float  # raw ratio; the renderer clamps
    progress_bar_width: int = DEFAULT_PROGRESS_BAR_WIDTH


class TerminalCapabilities(BaseModel):
    """What the attached terminal can do, detected once at startup."""

    model_config = ConfigDict(frozen=True)

    supports_color: bool = False
    supports_ansi: bool = False
    supports_clear: bool = False
    width: int = Field(default=80, gt=0)
    height: int = Field(default=24, gt=0)


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/pomodoro/config.json)."""

    log_path: Optional[str] = None  # None = errors to stderr, info dropped
    progress_bar_width: int = Field(default=DEFAULT_PROGRESS_BAR_WIDTH, ge=10, le=200)


# ---------------------------------------------------------------------------
# Log events
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now().astimezone()


class InfoEvent(BaseModel):
    """A lifecycle event worth recording."""

    level: Literal["info"] = "info"
    timestamp: datetime = Field(default_factory=_now)
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(BaseModel):
    """A failure, recorded with its error code and structured details."""

    level: Literal["error"] = "error"
    timestamp: datetime = Field(default_factory=_now)
    error: str
    code: Optional[int] = None
    details: Optional[dict[str, Any]] = None


LogEvent = Annotated[Union[InfoEvent, ErrorEvent], Field(discriminator="level")]
