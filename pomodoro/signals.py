"""Interrupt listener: turns SIGINT/SIGTERM into a fired cancellation token."""

from __future__ import annotations

import signal
import threading
from types import FrameType
from typing import Any, Optional

from pomodoro.timer import CancellationToken

_DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class SignalListener:
    """Fires ``token`` when the process is asked to stop.

    The handler only starts a short-lived thread that fires the token; it
    never takes a lock itself. All teardown stays with the caller.
    """

    def __init__(
        self, token: CancellationToken, signals: tuple[signal.Signals, ...] = _DEFAULT_SIGNALS
    ) -> None:
        self.token = token
        self.signals = signals
        self.received: Optional[signal.Signals] = None
        self._previous: dict[signal.Signals, Any] = {}

    def __enter__(self) -> SignalListener:
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore()

    def install(self) -> None:
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)

    def restore(self) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:
        if self.received is None:
            self.received = signal.Signals(signum)
        threading.Thread(target=self.token.cancel, name="pomodoro-signal", daemon=True).start()
