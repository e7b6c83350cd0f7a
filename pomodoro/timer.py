"""Session engine: timed work/break countdowns, history, and cancellation."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta
from typing import Callable, NoReturn, Optional, Sequence

from pomodoro.display import Terminal
from pomodoro.errors import CycleCancelledError, SessionInterruptedError, TerminalUnsupportedError
from pomodoro.logger import EventLogger
from pomodoro.models import EngineConfig, Session, SessionInfo, SessionKind, SessionStats

TICK_SECONDS = 1.0
DWELL_SECONDS = 2.0


class CancellationToken:
    """Process-wide, one-way shutdown signal.

    Firing it more than once is harmless. ``wait`` returns as soon as the
    token fires, so every timed wait in the engine doubles as a
    cancellation check.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds. Returns True if the token fired."""
        return self._event.wait(timeout)


def compute_stats(history: Sequence[Session]) -> SessionStats:
    """Summarise ``history``. Cancelled sessions only count toward the total."""
    completed = [s for s in history if s.completed]
    work = [s for s in completed if s.kind is SessionKind.WORK]
    breaks = [s for s in completed if s.kind is SessionKind.BREAK]
    return SessionStats(
        total_sessions=len(history),
        completed_sessions=len(completed),
        work_sessions=len(work),
        break_sessions=len(breaks),
        total_work_time=sum((s.planned_duration for s in work), timedelta(0)),
        total_break_time=sum((s.planned_duration for s in breaks), timedelta(0)),
    )


class SessionEngine:
    """Runs sessions one after another and records how each one ended.

    Only the thread calling :meth:`run_session` / :meth:`run_cycle` touches
    the history. Other threads interact with the engine through the token.
    """

    def __init__(
        self,
        config: EngineConfig,
        terminal: Terminal,
        logger: EventLogger,
        token: Optional[CancellationToken] = None,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.terminal = terminal
        self.logger = logger
        self.token = token or CancellationToken()
        self._clock = clock
        self._monotonic = monotonic
        self._history: list[Session] = []
        self._closed = False

    @property
    def history(self) -> tuple[Session, ...]:
        return tuple(self._history)

    def stats(self) -> SessionStats:
        return compute_stats(self._history)

    def run_session(self, kind: SessionKind) -> Session:
        """Count down one session of ``kind``.

        Returns the completed session. Raises SessionInterruptedError if the
        token fires first; the cancelled session is still recorded.

        The countdown runs on the monotonic clock. Wall-clock timestamps
        are only recorded on the session, so clock adjustments cannot
        stretch or cut it short.
        """
        duration = self.config.duration_for(kind)
        start = self._clock()
        session = Session(
            kind=kind,
            planned_duration=duration,
            start_time=start,
            end_time=start + duration,
        )
        self.logger.log_info("Session started", {"type": kind.label, "duration": duration})
        started = self._monotonic()

        while True:
            if self.token.wait(TICK_SECONDS):
                elapsed = timedelta(seconds=self._monotonic() - started)
                self._history.append(session.model_copy(update={"cancelled": True}))
                raise SessionInterruptedError(kind, elapsed)

            elapsed = timedelta(seconds=self._monotonic() - started)
            if elapsed >= duration:
                return self._complete(session)

            info = SessionInfo(
                label=kind.label,
                elapsed=elapsed,
                progress=elapsed / duration,
                progress_bar_width=self.config.progress_bar_width,
            )
            try:
                self.terminal.display_session(info)
            except TerminalUnsupportedError as err:
                self.logger.log_error(err)

    def _complete(self, session: Session) -> Session:
        finished = session.model_copy(update={"completed": True})
        self._history.append(finished)

        try:
            self.terminal.display_completion(session.kind.label)
        except TerminalUnsupportedError as err:
            self.logger.log_error(err)

        self.logger.log_info(
            "Session completed",
            {"type": session.kind.label, "duration": session.planned_duration},
        )
        # Dwell on the completion screen; a cancellation here is picked up
        # by the cycle before the next session starts.
        self.token.wait(DWELL_SECONDS)
        return finished

    def _check_cancelled(self, cycle: int) -> None:
        if self.token.cancelled:
            raise CycleCancelledError(cycle)

    def _run_in_cycle(self, kind: SessionKind, cycle: int) -> None:
        try:
            self.run_session(kind)
        except SessionInterruptedError as err:
            raise CycleCancelledError(cycle) from err

    def run_cycle(self) -> NoReturn:
        """Alternate work and break sessions until the token fires.

        Raises CycleCancelledError once cancelled, whether the token fired
        inside a session or between two of them. The cycle cannot be resumed.
        """
        cycle = 0
        while True:
            self._check_cancelled(cycle)
            cycle += 1
            self.logger.log_info("Starting pomodoro cycle", {"cycle": cycle})
            self._run_in_cycle(SessionKind.WORK, cycle)
            self._check_cancelled(cycle)
            self._run_in_cycle(SessionKind.BREAK, cycle)

    def close(self) -> None:
        """Stop any running session and log the final stats. Safe to call twice."""
        self.token.cancel()
        if self._closed:
            return
        self._closed = True
        self.logger.log_info("Session engine closing", self.stats().model_dump())
