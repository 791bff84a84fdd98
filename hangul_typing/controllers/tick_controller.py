"""Periodic stats refresh for a running typing session.

The session itself has no timers. This controller owns the one QTimer that
drives it: on every tick it polls the session (which also flushes a virtual
keyboard buffer once its quiet period has passed) and hands the fresh
`TypingStats` to the UI callback.

Callback-driven, like the playback orchestration: it knows nothing about
widgets, so tests can run it under qtbot without a window.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer

from hangul_typing.domain.stroke_metrics import TypingStats
from hangul_typing.services.typing_session import TypingSession

logger = logging.getLogger(__name__)

StatsFn = Callable[[TypingStats], None]
ClockFn = Callable[[], int]

DEFAULT_TICK_INTERVAL_MS = 100


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class TickController(QObject):
    """Calls `session.tick(now)` every `interval_ms` while running.

    Stops by itself once the session reports it is finished, after delivering
    the final snapshot.
    """

    def __init__(
        self,
        session: TypingSession,
        on_stats: Optional[StatsFn] = None,
        *,
        interval_ms: Optional[int] = None,
        clock: Optional[ClockFn] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        if session is None:
            raise TypeError("session is required")

        self._session = session
        self._on_stats = on_stats
        self._clock: ClockFn = clock or monotonic_ms
        self._last_stats: Optional[TypingStats] = None

        if interval_ms is None:
            settings = getattr(session, "settings", None)
            interval_ms = getattr(settings, "tick_interval_ms", DEFAULT_TICK_INTERVAL_MS)

        self._timer: QTimer = QTimer(self)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self._tick)  # type: ignore

    # ----------------------------
    # Public API
    # ----------------------------

    @property
    def session(self) -> TypingSession:
        return self._session

    @property
    def last_stats(self) -> Optional[TypingStats]:
        return self._last_stats

    def interval_ms(self) -> int:
        return int(self._timer.interval())

    def is_running(self) -> bool:
        return bool(self._timer.isActive())

    def start(self) -> None:
        if self._timer.isActive():
            return
        self._timer.start()
        logger.debug("Tick controller started (%d ms)", self.interval_ms())

    def stop(self) -> None:
        if self._timer.isActive():
            try:
                self._timer.stop()
            except RuntimeError:
                logger.debug("QTimer already gone on stop", exc_info=True)

    def tick_now(self) -> Optional[TypingStats]:
        """Run one tick synchronously (also used by the timer)."""
        self._tick()
        return self._last_stats

    # ----------------------------
    # Internal
    # ----------------------------

    def _tick(self) -> None:
        try:
            stats = self._session.tick(self._clock())
        except (AttributeError, RuntimeError, TypeError):
            logger.exception("Typing session tick failed; stopping")
            self.stop()
            return

        self._last_stats = stats
        if self._on_stats is not None:
            try:
                self._on_stats(stats)
            except (AttributeError, RuntimeError, TypeError):
                logger.exception("on_stats callback failed")

        if self._session.is_finished:
            self.stop()


__all__ = ["TickController", "monotonic_ms"]
