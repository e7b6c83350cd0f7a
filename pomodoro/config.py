"""Application configuration and command-line argument resolution."""

from __future__ import annotations

import json
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from pomodoro.errors import (
    ConfigLoadError,
    InvalidArgumentsError,
    InvalidDurationError,
    InvalidFlagError,
    InvalidNumberError,
)
from pomodoro.models import MAX_SESSION_DURATION, AppConfig, EngineConfig

_CONFIG_DIR = Path.home() / ".config" / "pomodoro"
_CONFIG_FILE = _CONFIG_DIR / "config.json"

LOG_FILE_ENV = "POMODORO_LOG_FILE"

HOURS_FLAG = "-h"
VALID_FLAGS: list[str] = [HOURS_FLAG]
MAX_TIME_VALUE = 999

USAGE_EXAMPLES: list[str] = [
    "pomodoro 25 5      # 25 minutes work, 5 minutes break",
    "pomodoro 1 1 -h    # 1 hour work, 1 hour break",
]

_INTEGER = re.compile(r"[+-]?[0-9]+")


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists."""
    if not _CONFIG_FILE.exists():
        return AppConfig()
    try:
        data = json.loads(_CONFIG_FILE.read_text(encoding="utf-8"))
        return AppConfig(**data)
    except (OSError, json.JSONDecodeError, TypeError, ValidationError) as exc:
        raise ConfigLoadError(str(_CONFIG_FILE), str(exc)) from exc


def get_log_path(config: AppConfig) -> Optional[Path]:
    """Resolve the event log destination: environment first, then config."""
    override = os.environ.get(LOG_FILE_ENV)
    if override:
        return Path(override).expanduser()
    if config.log_path is not None:
        return Path(config.log_path).expanduser()
    return None


def parse_time_value(value: str, name: str) -> int:
    """Validate one work/break token as an integer in 1..999."""
    if not _INTEGER.fullmatch(value):
        raise InvalidNumberError(name, value, "must be a valid integer")
    # Length check first: int() refuses strings past its digit limit.
    digits = value.lstrip("+-").lstrip("0")
    if value.startswith("-") or not digits:
        raise InvalidNumberError(name, value, "must be positive")
    if len(digits) > len(str(MAX_TIME_VALUE)) or int(digits) > MAX_TIME_VALUE:
        raise InvalidNumberError(name, value, "is too large", max_allowed=MAX_TIME_VALUE)
    return int(digits)


def parse_args(tokens: Sequence[str], app_config: Optional[AppConfig] = None) -> EngineConfig:
    """Turn ``<work_time> <break_time> [-h]`` into a validated EngineConfig.

    Values are minutes, or hours when the optional ``-h`` flag is given.
    Either resulting duration may be at most 12 hours.
    """
    if len(tokens) not in (2, 3):
        raise InvalidArgumentsError(len(tokens), USAGE_EXAMPLES)

    use_hours = False
    if len(tokens) == 3:
        if tokens[2] != HOURS_FLAG:
            raise InvalidFlagError(tokens[2], VALID_FLAGS)
        use_hours = True

    work_time = parse_time_value(tokens[0], "work_time")
    break_time = parse_time_value(tokens[1], "break_time")

    unit = timedelta(hours=1) if use_hours else timedelta(minutes=1)
    work_duration = work_time * unit
    break_duration = break_time * unit

    if work_duration > MAX_SESSION_DURATION:
        raise InvalidDurationError("work_time", work_duration, MAX_SESSION_DURATION)
    if break_duration > MAX_SESSION_DURATION:
        raise InvalidDurationError("break_time", break_duration, MAX_SESSION_DURATION)

    settings = app_config or AppConfig()
    return EngineConfig(
        work_duration=work_duration,
        break_duration=break_duration,
        progress_bar_width=settings.progress_bar_width,
        max_session_duration=MAX_SESSION_DURATION,
    )
