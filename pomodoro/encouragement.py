"""Short messages shown on the completion screen.

Messages are loaded from the ``ENCOURAGEMENTS.md`` shipped inside the package
when it exists; bullet points under a ``## Work`` heading follow a finished work
session, those under ``## Break`` follow a finished break. Missing sections
fall back to the built-in lists below.
"""

from __future__ import annotations

import random
from pathlib import Path

from pomodoro.models import SessionKind

_AFTER_WORK: list[str] = [
    "Step away from the screen for a moment.",
    "Take a few slow breaths.",
    "Stretch your shoulders and neck.",
    "Look at something far away for twenty seconds.",
    "Get some water if you can.",
]

_AFTER_BREAK: list[str] = [
    "Starting is the hardest part. You have already done that.",
    "One small step is still a step.",
    "Progress does not have to be perfect to count.",
    "Pick the smallest next thing and begin there.",
]


def _load_messages(md_path: Path) -> dict[SessionKind, list[str]]:
    """Parse bullet points per section from a markdown file."""
    messages: dict[SessionKind, list[str]] = {
        SessionKind.WORK: _AFTER_WORK,
        SessionKind.BREAK: _AFTER_BREAK,
    }
    if not md_path.exists():
        return messages

    parsed: dict[SessionKind, list[str]] = {}
    section = None
    for line in md_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped.startswith("## "):
            heading = stripped[3:].strip().lower()
            section = SessionKind(heading) if heading in ("work", "break") else None
        elif section is not None and stripped.startswith("- "):
            msg = stripped[2:].strip()
            if msg:
                parsed.setdefault(section, []).append(msg)
    messages.update(parsed)
    return messages


MESSAGES_FILE = Path(__file__).resolve().parent / "ENCOURAGEMENTS.md"

_MESSAGES = _load_messages(MESSAGES_FILE)


def get_completion_message(kind: SessionKind) -> str:
    """Return a random message for the end of a session of ``kind``."""
    return random.choice(_MESSAGES[kind])
