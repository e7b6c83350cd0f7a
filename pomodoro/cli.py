"""Pomodoro CLI -- alternate work and break countdowns in the terminal."""

from __future__ import annotations

import logging
from typing import List, Optional

import typer
from rich.logging import RichHandler

from pomodoro import config as cfg
from pomodoro import display, timer
from pomodoro.errors import PomodoroError, SessionInterruptedError
from pomodoro.logger import EventLogger
from pomodoro.models import EngineConfig
from pomodoro.signals import SignalListener

app = typer.Typer(
    name="pomodoro",
    help="Alternate work and break countdowns until you press Ctrl+C.",
    add_completion=False,
    pretty_exceptions_show_locals=False,
)


def _setup_diagnostics() -> None:
    """Send the application's own warnings to stderr through Rich."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=display.err_console, show_path=False)],
    )


def _fail(err: PomodoroError, logger: Optional[EventLogger] = None) -> typer.Exit:
    # Without a log file the logger would echo the raw JSON next to the message.
    if logger is not None and logger.path is not None:
        logger.log_error(err)
    display.print_error(err)
    return typer.Exit(1)


def _run(config: EngineConfig, logger: EventLogger) -> None:
    """Run the cycle until interrupted, then shut down on this thread."""
    terminal = display.Terminal(display.detect_capabilities())
    token = timer.CancellationToken()
    engine = timer.SessionEngine(config, terminal, logger, token)

    logger.log_info(
        "Pomodoro started",
        {"work_duration": config.work_duration, "break_duration": config.break_duration},
    )
    with SignalListener(token) as listener:
        try:
            engine.run_cycle()
        except SessionInterruptedError:
            stats = engine.stats()
            logger.log_info(
                "Shutdown signal received",
                {
                    "signal": listener.received.name if listener.received else None,
                    "sessions_completed": stats.completed_sessions,
                    "total_sessions": stats.total_sessions,
                },
            )
        finally:
            engine.close()
    display.print_farewell()


@app.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
def main(
    values: Optional[List[str]] = typer.Argument(
        None,
        metavar="WORK BREAK [-h]",
        help="Work and break lengths in minutes (1-999); add -h for hours.",
        show_default=False,
    ),
) -> None:
    """Alternate work and break countdowns until you press Ctrl+C.

    Example: pomodoro 25 5
    """
    _setup_diagnostics()
    try:
        app_config = cfg.load_config()
        logger = EventLogger(cfg.get_log_path(app_config))
    except PomodoroError as err:
        raise _fail(err)

    with logger:
        try:
            config = cfg.parse_args(values or [], app_config)
        except PomodoroError as err:
            raise _fail(err, logger)
        _run(config, logger)
