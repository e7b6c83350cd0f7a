"""Rich terminal rendering: capability detection, the session screen, messages."""

from __future__ import annotations

import os
import shutil
from datetime import datetime, timedelta
from typing import IO, Mapping, Optional

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from pomodoro.config import MAX_TIME_VALUE
from pomodoro.encouragement import get_completion_message
from pomodoro.errors import (
    InvalidArgumentsDetails,
    InvalidDurationDetails,
    InvalidFlagDetails,
    InvalidNumberDetails,
    PomodoroError,
    TerminalUnsupportedError,
)
from pomodoro.models import SessionInfo, SessionKind, TerminalCapabilities

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

FAREWELL = "Exiting Pomodoro. Stay productive!"

_PURPLE = "rgb(138,43,226)"
_DARK_GRAY = "rgb(64,64,64)"

_MIN_BAR_WIDTH = 10
_BAR_MARGIN = 10
_BLANK_LINES = 10

_COLOR_TERMS = ("color", "xterm", "screen")

_KINDS_BY_LABEL: dict[str, SessionKind] = {kind.label: kind for kind in SessionKind}


def detect_capabilities(environ: Optional[Mapping[str, str]] = None) -> TerminalCapabilities:
    """Inspect the environment to decide what the terminal can draw."""
    env = os.environ if environ is None else environ
    term = env.get("TERM", "")
    ansi = any(marker in term for marker in _COLOR_TERMS) or bool(env.get("COLORTERM"))
    size = shutil.get_terminal_size((80, 24))
    return TerminalCapabilities(
        supports_color=ansi and "NO_COLOR" not in env,
        supports_ansi=ansi,
        supports_clear=term not in ("", "dumb"),
        width=max(size.columns, 1),
        height=max(size.lines, 1),
    )


def format_elapsed(elapsed: timedelta) -> str:
    """Format a span as minutes and zero-padded seconds, e.g. ``12m05s``."""
    total = max(int(elapsed.total_seconds()), 0)
    return f"{total // 60}m{total % 60:02d}s"


def format_duration(duration: timedelta) -> str:
    """Format a span the compact way, e.g. ``12h0m0s`` or ``25m0s``."""
    total = int(duration.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def clamp_progress(progress: float) -> float:
    return min(max(progress, 0.0), 1.0)


class Terminal:
    """Draws the countdown screen, degrading to whatever the terminal supports."""

    def __init__(self, capabilities: TerminalCapabilities, file: Optional[IO[str]] = None) -> None:
        self.capabilities = capabilities
        self.console = Console(
            file=file,
            force_terminal=capabilities.supports_ansi or capabilities.supports_clear,
            color_system="truecolor" if capabilities.supports_color else None,
            width=capabilities.width,
            highlight=False,
            emoji=False,
        )

    def clear_screen(self) -> None:
        if not self.capabilities.supports_clear:
            self.console.print("\n" * (_BLANK_LINES - 1))
            return
        self.console.print(Control(ControlType.HOME, ControlType.CLEAR), end="")

    def clamp_bar_width(self, width: int) -> int:
        width = min(width, self.capabilities.width - _BAR_MARGIN)
        return max(width, _MIN_BAR_WIDTH)

    def draw_progress_bar(self, progress: float, width: int) -> Text:
        """Build the bar for ``progress`` (clamped into [0, 1])."""
        progress = clamp_progress(progress)
        width = self.clamp_bar_width(width)
        filled = int(width * progress)
        empty = width - filled

        if not self.capabilities.supports_color:
            return Text(f"[{'#' * filled}{'-' * empty}]")

        bar = Text()
        bar.append(" " * filled, style=f"on {_PURPLE}")
        bar.append(" " * empty, style=f"on {_DARK_GRAY}")
        return bar

    def display_session(self, info: SessionInfo) -> None:
        """Redraw the running-session screen for one tick."""
        progress = clamp_progress(info.progress)
        try:
            self.clear_screen()
            self.console.print(Text(info.label.lower(), style=_PURPLE))
            now = datetime.now()
            clock = f"{now.hour % 12 or 12}:{now:%M %p}"
            self.console.print(
                Text.assemble(
                    (clock, "bold white"), " - ", (format_elapsed(info.elapsed), "bold white")
                )
            )
            bar = self.draw_progress_bar(progress, info.progress_bar_width)
            bar.append(f"  {int(progress * 100)}%", style="white")
            self.console.print(bar)
            hint_style = "dim" if self.capabilities.supports_ansi else ""
            self.console.print()
            self.console.print(Text("Press Ctrl+C to exit", style=hint_style))
        except (OSError, ValueError) as exc:
            raise TerminalUnsupportedError("display_session", str(exc)) from exc

    def display_completion(self, label: str) -> None:
        """Show the end-of-session screen for ``label`` ("Work" or "Break")."""
        try:
            self.clear_screen()
            self.console.print(Text(f"{label} complete!", style=_PURPLE))
            if self.capabilities.supports_ansi:
                self.console.print(Text("✓ Session finished successfully", style="white"))
            else:
                self.console.print("* Session finished successfully")
            kind = _KINDS_BY_LABEL.get(label)
            if kind is not None:
                self.console.print()
                self.console.print(Text(get_completion_message(kind), style="italic"))
        except (OSError, ValueError) as exc:
            raise TerminalUnsupportedError("display_completion", str(exc)) from exc


# ---------------------------------------------------------------------------
# Operator messages
# ---------------------------------------------------------------------------


def _hints(err: PomodoroError) -> list[str]:
    details = err.details
    if isinstance(details, InvalidArgumentsDetails):
        return ["", "Examples:"] + [f"  {example}" for example in details.examples]
    if isinstance(details, InvalidFlagDetails):
        return [f"Valid flags: {', '.join(details.valid_flags)}"]
    if isinstance(details, InvalidNumberDetails):
        upper = details.max_allowed if details.max_allowed is not None else MAX_TIME_VALUE
        return [f"Provided: {details.provided}", f"Allowed range: 1-{upper}"]
    if isinstance(details, InvalidDurationDetails):
        return [
            f"Maximum allowed: {format_duration(details.max_allowed)}",
            f"Requested: {format_duration(details.requested)}",
        ]
    return []


def print_error(err: PomodoroError) -> None:
    """Print ``Error: <message>`` and any hints to stderr."""
    err_console.print(f"Error: {err.message}", markup=False, soft_wrap=True)
    for line in _hints(err):
        err_console.print(line, markup=False, soft_wrap=True)


def print_farewell() -> None:
    console.print(FAREWELL, markup=False)
