# tests/conftest.py
import os

# Headless Qt for CI/containers without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import List

import pytest

from hangul_typing.domain.enums import TypingSettings
from hangul_typing.services.settings_store import SETTINGS_ENV_VAR
from hangul_typing.services.typing_session import TypingSession
from hangul_typing.domain.stroke_metrics import TypingStats


class FakeClock:
    """Millisecond clock the test advances by hand."""

    def __init__(self, start: int = 0) -> None:
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += int(ms)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings_path(monkeypatch, tmp_path: Path) -> Path:
    """Point the default settings location at a temp file so tests never touch the real one."""
    path = tmp_path / "settings.yaml"
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    return path


@pytest.fixture
def completed() -> List[TypingStats]:
    return []


@pytest.fixture
def make_session(completed):
    def _make(target: str, *, virtual: bool = False, settings: TypingSettings = None) -> TypingSession:
        return TypingSession(
            target,
            settings=settings,
            virtual_keyboard=virtual,
            on_complete=completed.append,
        )

    return _make


@pytest.fixture
def type_keys():
    def _type(session: TypingSession, keys, *, start_ms: int = 0, step_ms: int = 100) -> int:
        """Feed keys one per `step_ms`; returns the last timestamp used."""
        now = start_ms
        for key in keys:
            now += step_ms
            session.handle_key(key, now)
        return now

    return _type
