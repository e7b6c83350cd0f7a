"""Tests for the session engine."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional
from unittest.mock import MagicMock

import pytest

from pomodoro.display import Terminal
from pomodoro.errors import (
    CycleCancelledError,
    SessionInterruptedError,
    TerminalUnsupportedError,
)
from pomodoro.logger import EventLogger
from pomodoro.models import EngineConfig, Session, SessionKind
from pomodoro.timer import (
    DWELL_SECONDS,
    TICK_SECONDS,
    CancellationToken,
    SessionEngine,
    compute_stats,
)

_START = datetime(2026, 1, 5, 9, 0, 0)


class FakeClock:
    """Wall clock and monotonic clock that move together unless ``jump`` is used."""

    def __init__(self, start: datetime = _START) -> None:
        self.now = start
        self.ticks = 0.0

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
        self.ticks += seconds

    def jump(self, delta: timedelta) -> None:
        """Step only the wall clock, as DST or an NTP correction would."""
        self.now += delta


class SteppingToken(CancellationToken):
    """A token whose waits move the fake clock instead of sleeping.

    ``cancel_on`` fires the token during the n-th wait (1-based).
    """

    def __init__(self, clock: FakeClock, cancel_on: Optional[int] = None, step: Optional[float] = None) -> None:
        super().__init__()
        self.clock = clock
        self.cancel_on = cancel_on
        self.step = step
        self.waits: list[float] = []

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        if self.cancel_on is not None and len(self.waits) >= self.cancel_on:
            self.cancel()
        if not self.cancelled:
            self.clock.advance(self.step if self.step is not None else timeout)
        return self.cancelled


def _engine(
    work: float = 3, brk: float = 2, cancel_on: Optional[int] = None, step: Optional[float] = None
) -> SessionEngine:
    clock = FakeClock()
    config = EngineConfig(work_duration=timedelta(seconds=work), break_duration=timedelta(seconds=brk))
    token = SteppingToken(clock, cancel_on=cancel_on, step=step)
    return SessionEngine(
        config,
        MagicMock(spec=Terminal),
        MagicMock(spec=EventLogger),
        token=token,
        clock=clock,
        monotonic=clock.monotonic,
    )


def _info_messages(engine: SessionEngine) -> list[str]:
    return [c.args[0] for c in engine.logger.log_info.call_args_list]


def _session(kind: SessionKind, minutes: int, completed: bool = True) -> Session:
    return Session(
        kind=kind,
        planned_duration=timedelta(minutes=minutes),
        start_time=_START,
        end_time=_START + timedelta(minutes=minutes),
        completed=completed,
        cancelled=not completed,
    )


class TestCancellationToken:
    def test_starts_clear(self) -> None:
        token = CancellationToken()
        assert not token.cancelled
        assert token.wait(0) is False

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled
        assert token.wait(10) is True


class TestRunSession:
    def test_completes_once(self) -> None:
        engine = _engine(work=3)
        session = engine.run_session(SessionKind.WORK)

        assert session.completed
        assert not session.cancelled
        assert engine.history == (session,)
        # Three ticks, then the dwell on the completion screen.
        assert engine.token.waits == [TICK_SECONDS] * 3 + [DWELL_SECONDS]
        engine.terminal.display_completion.assert_called_once_with("Work")
        assert _info_messages(engine) == ["Session started", "Session completed"]

    def test_renders_each_tick_before_completion(self) -> None:
        engine = _engine(work=4)
        engine.run_session(SessionKind.WORK)

        infos = [c.args[0] for c in engine.terminal.display_session.call_args_list]
        assert [info.progress for info in infos] == [0.25, 0.5, 0.75]
        assert [info.elapsed for info in infos] == [timedelta(seconds=s) for s in (1, 2, 3)]
        assert all(info.label == "Work" for info in infos)
        assert all(info.progress_bar_width == 30 for info in infos)

    def test_session_times(self) -> None:
        engine = _engine(brk=2)
        session = engine.run_session(SessionKind.BREAK)
        assert session.kind is SessionKind.BREAK
        assert session.start_time == _START
        assert session.end_time == _START + timedelta(seconds=2)
        assert session.planned_duration == timedelta(seconds=2)

    def test_jittered_ticks_complete(self) -> None:
        engine = _engine(work=3, step=1.6)
        session = engine.run_session(SessionKind.WORK)
        assert session.completed
        infos = [c.args[0] for c in engine.terminal.display_session.call_args_list]
        assert len(infos) == 1
        assert 0 <= infos[0].progress <= 1

    @pytest.mark.parametrize("jump", [timedelta(hours=-1), timedelta(hours=1)])
    def test_wall_clock_jump_does_not_change_countdown(self, jump: timedelta) -> None:
        engine = _engine(work=4)
        original_wait = engine.token.wait

        def wait_then_jump(timeout: float) -> bool:
            fired = original_wait(timeout)
            if len(engine.token.waits) == 2:
                engine.token.clock.jump(jump)
            return fired

        engine.token.wait = wait_then_jump
        session = engine.run_session(SessionKind.WORK)

        assert session.completed
        assert session.start_time == _START
        infos = [c.args[0] for c in engine.terminal.display_session.call_args_list]
        assert [info.progress for info in infos] == [0.25, 0.5, 0.75]
        assert [info.elapsed for info in infos] == [timedelta(seconds=s) for s in (1, 2, 3)]
        assert engine.token.waits == [TICK_SECONDS] * 4 + [DWELL_SECONDS]

    def test_cancel_mid_session(self) -> None:
        engine = _engine(work=10, cancel_on=4)
        with pytest.raises(SessionInterruptedError) as exc_info:
            engine.run_session(SessionKind.WORK)

        assert exc_info.value.details.kind is SessionKind.WORK
        assert exc_info.value.details.elapsed == timedelta(seconds=3)
        (session,) = engine.history
        assert session.cancelled
        assert not session.completed
        assert engine.terminal.display_session.call_count == 3
        engine.terminal.display_completion.assert_not_called()

    def test_cancel_before_first_tick(self) -> None:
        engine = _engine(cancel_on=1)
        with pytest.raises(SessionInterruptedError):
            engine.run_session(SessionKind.BREAK)
        engine.terminal.display_session.assert_not_called()
        assert engine.history[0].cancelled

    def test_render_failure_is_not_fatal(self) -> None:
        engine = _engine(work=3)
        failure = TerminalUnsupportedError("display_session", "device gone")
        engine.terminal.display_session.side_effect = failure

        session = engine.run_session(SessionKind.WORK)

        assert session.completed
        assert engine.logger.log_error.call_count == 2
        engine.logger.log_error.assert_called_with(failure)

    def test_completion_render_failure_is_logged(self) -> None:
        engine = _engine(work=1)
        engine.terminal.display_completion.side_effect = TerminalUnsupportedError(
            "display_completion", "closed"
        )
        session = engine.run_session(SessionKind.WORK)
        assert session.completed
        engine.logger.log_error.assert_called_once()
        assert "Session completed" in _info_messages(engine)


class TestRunCycle:
    def test_alternates_until_cancelled(self) -> None:
        # work: 2 ticks + dwell, break: 2 ticks + dwell, then cancel in cycle 2.
        engine = _engine(work=2, brk=2, cancel_on=7)
        with pytest.raises(CycleCancelledError) as exc_info:
            engine.run_cycle()

        assert exc_info.value.cycle == 2
        assert isinstance(exc_info.value.__cause__, SessionInterruptedError)
        kinds = [s.kind for s in engine.history]
        assert kinds == [SessionKind.WORK, SessionKind.BREAK, SessionKind.WORK]
        assert [s.completed for s in engine.history] == [True, True, False]
        assert engine.history[-1].cancelled

    def test_logs_cycle_ordinals(self) -> None:
        engine = _engine(work=1, brk=1, cancel_on=5)
        with pytest.raises(CycleCancelledError):
            engine.run_cycle()
        cycles = [
            c.args[1]["cycle"]
            for c in engine.logger.log_info.call_args_list
            if c.args[0] == "Starting pomodoro cycle"
        ]
        assert cycles == [1, 2]

    def test_cancel_during_dwell_stops_before_break(self) -> None:
        engine = _engine(work=2, cancel_on=3)
        with pytest.raises(CycleCancelledError) as exc_info:
            engine.run_cycle()

        assert exc_info.value.cycle == 1
        (session,) = engine.history
        assert session.completed
        assert session.kind is SessionKind.WORK

    def test_cancelled_before_start(self) -> None:
        engine = _engine()
        engine.token.cancel()
        with pytest.raises(CycleCancelledError):
            engine.run_cycle()
        assert engine.history == ()
        engine.logger.log_info.assert_not_called()


class TestStats:
    def test_mixed_history(self) -> None:
        history = [
            _session(SessionKind.WORK, 25),
            _session(SessionKind.BREAK, 5),
            _session(SessionKind.WORK, 25),
            _session(SessionKind.WORK, 25, completed=False),
        ]
        stats = compute_stats(history)
        assert stats.total_sessions == 4
        assert stats.completed_sessions == 3
        assert stats.work_sessions == 2
        assert stats.break_sessions == 1
        assert stats.total_work_time == timedelta(minutes=50)
        assert stats.total_break_time == timedelta(minutes=5)

    def test_empty(self) -> None:
        stats = compute_stats([])
        assert stats.total_sessions == 0
        assert stats.total_work_time == timedelta(0)

    def test_engine_stats_follow_history(self) -> None:
        engine = _engine(work=1, brk=1, cancel_on=5)
        with pytest.raises(CycleCancelledError):
            engine.run_cycle()
        stats = engine.stats()
        assert stats.total_sessions == 3
        assert stats.completed_sessions == 2
        assert stats.work_sessions == 1
        assert stats.break_sessions == 1


class TestClose:
    def test_close_cancels_and_logs_stats(self) -> None:
        engine = _engine()
        engine.close()
        assert engine.token.cancelled
        engine.logger.log_info.assert_called_once()
        message, details = engine.logger.log_info.call_args.args
        assert message == "Session engine closing"
        assert details["total_sessions"] == 0

    def test_close_twice(self) -> None:
        engine = _engine()
        engine.close()
        engine.close()
        assert engine.logger.log_info.call_count == 1
