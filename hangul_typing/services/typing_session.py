"""Typing session orchestration.

`TypingSession` is the single owner of everything that changes while a user
types one target text:

- the `CompositionStateMachine` for the character under the cursor
- the `JamoBuffer` used for virtual keyboards
- the `InputValidator` and its `CharacterState` list
- the append-only `KeystrokeRecord` log

It is UI-agnostic and synchronous. Hosts feed it key events with a timestamp
and call `tick(now_ms)` on a fixed interval to get a fresh `TypingStats`
snapshot. Nothing here reads the wall clock.

Input paths (pick the one the host platform supports):
- `handle_key()` with raw jamo: composed here, jamo by jamo
- `handle_key()` with `virtual_keyboard=True`: jamo go through `JamoBuffer`
- `composition_start/update/end()`: the platform IME composes, we only
  mirror its preview and commit what it finalises
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from hangul_typing.domain.composition import CompositionState, CompositionStateMachine, is_jamo_input
from hangul_typing.domain.enums import TypingSettings
from hangul_typing.domain.hangul_codec import SPLIT_JONGSEONG, compose, decompose, disassemble, is_jungseong
from hangul_typing.domain.jamo_buffer import JamoBuffer
from hangul_typing.domain.language_mismatch import LanguageDetector, LanguageHint
from hangul_typing.domain.stroke_metrics import KeystrokeRecord, StrokeMetricsEngine, TypingStats
from hangul_typing.domain.validator import CharacterState, InputValidator, is_prefix_of_target

logger = logging.getLogger(__name__)

BACKSPACE = "Backspace"

CompleteFn = Callable[[TypingStats], None]


class TypingSession:
    def __init__(
        self,
        target: str = "",
        *,
        settings: Optional[TypingSettings] = None,
        virtual_keyboard: bool = False,
        on_complete: Optional[CompleteFn] = None,
        engine: Optional[StrokeMetricsEngine] = None,
    ) -> None:
        self._settings = settings or TypingSettings()
        self._engine = engine or StrokeMetricsEngine(self._settings)
        self._virtual_keyboard = bool(virtual_keyboard)
        self._on_complete = on_complete

        self._validator = InputValidator()
        self._machine = CompositionStateMachine()
        self._buffer = JamoBuffer(self._settings.buffer_capacity, self._settings.quiet_period_ms)
        self._detector = LanguageDetector()

        self._target = ""
        self._typed: list[str] = []
        self._keystrokes: list[KeystrokeRecord] = []
        self._start_ms: Optional[int] = None
        self._first_key_ms: Optional[int] = None
        self._finished = False
        self._final_stats: Optional[TypingStats] = None
        self._ime_composing = False
        self._ime_text = ""
        self._hint: Optional[LanguageHint] = None

        self.reset(target)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def start(self, target: str, now_ms: int) -> None:
        self.reset(target)
        self._start_ms = int(now_ms)

    def reset(self, target: Optional[str] = None) -> None:
        """Synchronously discard all per-session state.

        Passing a new `target` also rebuilds the per-character array.
        """
        if target is not None:
            self._target = target or ""
        self._validator.rebuild(self._target)
        self._machine.reset(self._target[:1])
        self._buffer.reset()
        self._detector.reset()
        self._typed = []
        self._keystrokes = []
        self._start_ms = None
        self._first_key_ms = None
        self._finished = False
        self._final_stats = None
        self._ime_composing = False
        self._ime_text = ""
        self._hint = None
        self._refresh(None)

    # ----------------------------
    # Read-only views
    # ----------------------------

    @property
    def target(self) -> str:
        return self._target

    @property
    def typed_text(self) -> str:
        return "".join(self._typed)

    @property
    def current_index(self) -> int:
        return len(self._typed)

    @property
    def character_states(self) -> list[CharacterState]:
        return self._validator.states

    @property
    def composition(self) -> CompositionState:
        return self._machine.state

    @property
    def composing_text(self) -> str:
        """Live composed-so-far text for the overlay at the cursor."""
        if self._ime_composing:
            return self._ime_text
        if self._virtual_keyboard:
            return self._buffer.preview()
        return self._machine.state.display_text()

    @property
    def keystrokes(self) -> Sequence[KeystrokeRecord]:
        return tuple(self._keystrokes)

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def final_stats(self) -> Optional[TypingStats]:
        return self._final_stats

    @property
    def language_hint(self) -> Optional[LanguageHint]:
        return self._hint

    @property
    def buffer_deadline_ms(self) -> Optional[int]:
        return self._buffer.deadline_ms

    @property
    def settings(self) -> TypingSettings:
        return self._settings

    @property
    def virtual_keyboard(self) -> bool:
        return self._virtual_keyboard

    # ----------------------------
    # Inbound events
    # ----------------------------

    def handle_key(self, key: str, now_ms: int) -> None:
        """One printable unit (jamo, letter, digit, space...) or BACKSPACE."""
        if self._finished or not key:
            return
        if self._start_ms is None:
            self._start_ms = int(now_ms)

        if key == BACKSPACE:
            self._backspace()
        elif self._virtual_keyboard and not self._ime_composing:
            for ch in self._buffer.push(key, now_ms):
                self._commit_typed(ch, now_ms)
        else:
            self._feed(key, now_ms)

        self._refresh(now_ms)

    def composition_start(self) -> None:
        self._ime_composing = True
        self._ime_text = ""

    def composition_update(self, text: str) -> None:
        self._ime_text = text or ""
        self._refresh(None)

    def composition_end(self, text: str, now_ms: int) -> None:
        """The platform IME finalised `text`; commit it character by character."""
        self._ime_composing = False
        self._ime_text = ""
        if self._start_ms is None:
            self._start_ms = int(now_ms)
        for ch in text or "":
            if self._finished:
                break
            self._commit_typed(ch, now_ms)
        self._refresh(now_ms)

    def tick(self, now_ms: int) -> TypingStats:
        """Poll the buffer deadline, then return a fresh stats snapshot."""
        if self._virtual_keyboard and not self._finished:
            emitted = self._buffer.poll(now_ms)
            for ch in emitted:
                self._commit_typed(ch, now_ms)
            if emitted:
                self._refresh(now_ms)
        return self.stats(now_ms)

    def stats(self, now_ms: int) -> TypingStats:
        if self._final_stats is not None:
            return self._final_stats
        return self._engine.compute(
            self._target,
            self.typed_text,
            self._keystrokes,
            self._start_ms,
            now_ms,
            first_keystroke_ms=self._first_key_ms,
        )

    # ----------------------------
    # Internal helpers
    # ----------------------------

    def _current_target(self) -> str:
        i = len(self._typed)
        return self._target[i] if i < len(self._target) else ""

    def _feed(self, key: str, now_ms: int) -> None:
        if self._finished:
            return
        target_char = self._current_target()

        if is_jamo_input(key) and decompose(target_char) is not None:
            self._feed_jamo(key, now_ms, target_char)
            return

        # Atomic input ends any composition in progress
        if not self._machine.state.is_empty():
            self._commit(self._machine.state.display_text(), now_ms)
            if self._finished:
                return
        self._commit_typed(key, now_ms)

    def _feed_jamo(self, key: str, now_ms: int, target_char: str) -> None:
        if self._machine.apply(key):
            state = self._machine.state
            self._record(key, now_ms, is_prefix_of_target(state, target_char))
            if state.is_complete:
                self._commit(state.composed, now_ms)
            return

        state = self._machine.state
        if is_jungseong(key) and state.final:
            self._move_final(key, now_ms)
            return

        if not state.is_empty():
            # Composition boundary: this syllable is done, the key starts the next one
            self._commit(state.display_text(), now_ms)
            self._feed(key, now_ms)
            return

        # A vowel with no initial can't start a syllable; it stands alone
        self._record(key, now_ms, False)
        self._commit(key, now_ms)

    def _move_final(self, vowel: str, now_ms: int) -> None:
        """2-beolsik hand-off: the final (or its second part) starts the next syllable."""
        state = self._machine.state
        keep, moved = SPLIT_JONGSEONG.get(state.final, ("", state.final))
        self._commit(compose(state.initial, state.medial, keep), now_ms)
        if self._finished:
            return

        target_char = self._current_target()
        if decompose(target_char) is not None and self._machine.apply(moved):
            self._feed_jamo(vowel, now_ms, target_char)
            return

        # Next target is atomic: the consonant stands alone
        self._commit(moved, now_ms)
        self._feed(vowel, now_ms)

    def _commit_typed(self, ch: str, now_ms: int) -> None:
        """Commit a whole character and log it as one keystroke."""
        if self._finished:
            return
        self._record(ch, now_ms, ch == self._current_target())
        self._commit(ch, now_ms)

    def _record(self, key: str, now_ms: int, correct: bool) -> None:
        now_ms = int(now_ms)
        delta = now_ms - self._keystrokes[-1].timestamp_ms if self._keystrokes else 0
        self._keystrokes.append(KeystrokeRecord(key, now_ms, bool(correct), delta))
        if self._first_key_ms is None:
            self._first_key_ms = now_ms
        if not correct:
            self._validator.mark_error(len(self._typed))

    def _commit(self, ch: str, now_ms: int) -> None:
        index = len(self._typed)
        if index >= len(self._target):
            return
        self._typed.append(ch)
        if ch != self._target[index]:
            self._validator.mark_error(index)
        else:
            self._validator.clear_error(index)
        self._machine.reset(self._current_target())
        if len(self._typed) >= len(self._target):
            self._finish(now_ms)

    def _backspace(self) -> None:
        if self._ime_composing:
            return
        if (self._virtual_keyboard and self._buffer.pop() is not None) or self._machine.backspace():
            self._validator.clear_error(len(self._typed))
            return
        if self._typed:
            index = len(self._typed) - 1
            self._typed.pop()
            self._validator.clear_error(index)
            self._machine.reset(self._target[index])

    def _finish(self, now_ms: int) -> None:
        self._finished = True
        self._buffer.reset()
        self._final_stats = self._engine.compute(
            self._target,
            self.typed_text,
            self._keystrokes,
            self._start_ms,
            now_ms,
            first_keystroke_ms=self._first_key_ms,
        )
        logger.info("Session finished: %d chars, %s", len(self._typed), self._final_stats)
        if self._on_complete is None:
            return
        try:
            self._on_complete(self._final_stats)
        except (AttributeError, RuntimeError, TypeError):
            # Collaborator is injected; keep the session consistent.
            logger.exception("TypingSession on_complete handler failed")

    def _preview_state(self) -> Optional[CompositionState]:
        if self._ime_composing:
            units = disassemble(self._ime_text[-1:])
        elif self._virtual_keyboard:
            units = list(self._buffer.pending)
        else:
            return self._machine.state

        machine = CompositionStateMachine(self._current_target())
        for unit in units:
            if not machine.apply(unit):
                break
        return machine.state

    def _refresh(self, now_ms: Optional[int]) -> None:
        self._validator.update(self.typed_text, self._preview_state())
        if now_ms is None:
            return
        typed = self.typed_text
        if typed:
            self._hint = self._detector.check_input(typed, self._target[: len(typed)], now_ms)
        else:
            self._hint = None
