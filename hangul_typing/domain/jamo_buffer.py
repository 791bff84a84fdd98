"""Jamo buffering for software keyboards (domain layer, Qt-free).

Some virtual keyboards deliver raw jamo one by one without composition
boundaries. `JamoBuffer` collects them in a small bounded queue and emits text
once it can tell a syllable is finished:

- the whole queue assembles into exactly one complete syllable -> emit it
- the queue reaches capacity -> flush (best-effort assembly)
- a non-jamo character (space, punctuation, latin) arrives -> flush, then emit it
- the quiet period passes with no new jamo -> flush on the next `poll()`

There is no timer inside. The buffer exposes `deadline_ms` and the caller's
tick loop calls `poll(now_ms)`; every new jamo pushes the deadline out.
"""

from __future__ import annotations

import logging
from typing import Optional

from hangul_typing.domain.composition import CompositionStateMachine, is_jamo_input
from hangul_typing.domain.hangul_codec import assemble

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4
DEFAULT_QUIET_PERIOD_MS = 300


class JamoBuffer:
    def __init__(self, capacity: int = DEFAULT_CAPACITY, quiet_period_ms: int = DEFAULT_QUIET_PERIOD_MS) -> None:
        self._capacity = max(1, int(capacity))
        self._quiet_period_ms = max(0, int(quiet_period_ms))
        self._queue: list[str] = []
        self._deadline_ms: Optional[int] = None

    @property
    def pending(self) -> tuple[str, ...]:
        return tuple(self._queue)

    @property
    def deadline_ms(self) -> Optional[int]:
        """When the quiet-period flush is due, or None if nothing is pending."""
        return self._deadline_ms

    @property
    def capacity(self) -> int:
        return self._capacity

    def preview(self) -> str:
        """Best-effort assembly of the queue, for overlay display."""
        return assemble(self._queue)

    def push(self, unit: str, now_ms: int) -> list[str]:
        """Feed one input unit; return the text (possibly none) ready to commit."""
        if not is_jamo_input(unit):
            emitted = self.flush()
            if unit:
                emitted.append(unit)
            return emitted

        self._queue.append(unit)
        self._deadline_ms = int(now_ms) + self._quiet_period_ms

        syllable = self._try_assemble()
        if syllable:
            self._clear()
            return [syllable]

        if len(self._queue) >= self._capacity:
            logger.debug("Jamo buffer full (%d), forcing flush", len(self._queue))
            return self.flush()

        return []

    def poll(self, now_ms: int) -> list[str]:
        """Flush if the quiet period has elapsed."""
        if self._deadline_ms is not None and int(now_ms) >= self._deadline_ms:
            logger.debug("Jamo buffer quiet period elapsed at %s", now_ms)
            return self.flush()
        return []

    def flush(self) -> list[str]:
        """Emit whatever the queue assembles to and clear it."""
        if not self._queue:
            self._deadline_ms = None
            return []
        text = assemble(self._queue)
        self._clear()
        return list(text)

    def pop(self) -> Optional[str]:
        """Backspace inside the buffer: drop the newest jamo."""
        if not self._queue:
            return None
        unit = self._queue.pop()
        if not self._queue:
            self._deadline_ms = None
        return unit

    def reset(self) -> None:
        """Drop pending jamo and cancel the deadline."""
        self._clear()

    def _clear(self) -> None:
        self._queue = []
        self._deadline_ms = None

    def _try_assemble(self) -> str:
        if len(self._queue) < 2:
            return ""
        machine = CompositionStateMachine()
        for unit in self._queue:
            if not machine.apply(unit):
                return ""
        state = machine.state
        return state.composed if state.is_complete else ""
