"""Typed-input validation against a target text (domain layer, Qt-free).

Responsibilities:
- Per-character progress (jamo-level for Hangul targets, exact match otherwise)
- A whole-text scan producing one `CharacterState` per target position
- Local error flags that backspace can clear

The `CharacterState` list is owned by the active session and rebuilt whenever
the target text changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from hangul_typing.domain.composition import CompositionState
from hangul_typing.domain.enums import CharStatus
from hangul_typing.domain.hangul_codec import (
    SPLIT_JONGSEONG,
    SPLIT_JUNGSEONG,
    JamoTriple,
    component_count,
    decompose,
)
from hangul_typing.domain.language import TextProfile

_ATOMIC_CHARS = (" ", "\u00a0", "\t", "\n")


@dataclass
class CharacterState:
    index: int
    target_char: str
    decomposed_target: Optional[JamoTriple] = None
    current_composition: str = ""
    status: CharStatus = CharStatus.PENDING
    progress: float = 0.0
    has_error: bool = False


def is_atomic(char: str) -> bool:
    """Whitespace and non-syllables are compared whole, never composed."""
    return char in _ATOMIC_CHARS or decompose(char) is None


def _components_matched(parts: JamoTriple, target: JamoTriple) -> int:
    matched = 0
    if parts.initial and parts.initial == target.initial:
        matched += 1
    if parts.medial and parts.medial == target.medial:
        matched += 1
    if target.final and parts.final and parts.final == target.final:
        matched += 1
    return matched


def composition_progress(target_char: str, state: Optional[CompositionState]) -> float:
    """Fraction of the target's components already typed correctly."""
    if state is None:
        return 0.0
    if is_atomic(target_char):
        return 1.0 if state.display_text() == target_char else 0.0

    target = decompose(target_char)
    if target is None:
        return 0.0
    parts = JamoTriple(state.initial, state.medial, state.final)
    return _components_matched(parts, target) / component_count(target_char)


def typed_char_progress(target_char: str, typed: str) -> float:
    """Progress for a committed character (whole syllable or atomic char)."""
    if typed == target_char:
        return 1.0
    if is_atomic(target_char):
        return 0.0
    target = decompose(target_char)
    parts = decompose(typed)
    if target is None or parts is None:
        return 0.0
    return _components_matched(parts, target) / component_count(target_char)


def _is_part_prefix(typed: str, wanted: str, splits: dict[str, tuple[str, str]]) -> bool:
    if not typed:
        return True
    if typed == wanted:
        return True
    return wanted in splits and splits[wanted][0] == typed


def is_prefix_of_target(state: CompositionState, target_char: str) -> bool:
    """True while the jamo typed so far can still grow into `target_char`."""
    target = decompose(target_char)
    if target is None:
        return state.is_empty() or state.display_text() == target_char
    if state.initial and state.initial != target.initial:
        return False
    if state.medial:
        if state.final:
            if state.medial != target.medial:
                return False
        elif not _is_part_prefix(state.medial, target.medial, SPLIT_JUNGSEONG):
            return False
    if state.final and not _is_part_prefix(state.final, target.final, SPLIT_JONGSEONG):
        return False
    return True


def next_jamo_hint(target_char: str, state: Optional[CompositionState]) -> str:
    """The next jamo the user should type for `target_char` ("" when done)."""
    target = decompose(target_char)
    s = state or CompositionState()
    if target is None:
        return "" if s.display_text() == target_char else target_char
    if not s.initial:
        return target.initial
    if s.medial != target.medial:
        if not s.medial:
            return SPLIT_JUNGSEONG.get(target.medial, (target.medial,))[0]
        if target.medial in SPLIT_JUNGSEONG:
            return SPLIT_JUNGSEONG[target.medial][1]
        return target.medial
    if target.final and s.final != target.final:
        if not s.final:
            return SPLIT_JONGSEONG.get(target.final, (target.final,))[0]
        if target.final in SPLIT_JONGSEONG:
            return SPLIT_JONGSEONG[target.final][1]
        return target.final
    return ""


class InputValidator:
    """Scans committed input + live composition against a target text."""

    def __init__(self, target: str = "") -> None:
        self._target = ""
        self._profile = TextProfile.of("")
        self._states: list[CharacterState] = []
        self.rebuild(target)

    @property
    def target(self) -> str:
        return self._target

    @property
    def profile(self) -> TextProfile:
        return self._profile

    @property
    def states(self) -> list[CharacterState]:
        return self._states

    def rebuild(self, target: str) -> None:
        """Discard all per-character state and start over for `target`."""
        self._target = target or ""
        self._profile = TextProfile.of(self._target)
        self._states = [
            CharacterState(index=i, target_char=ch, decomposed_target=decompose(ch))
            for i, ch in enumerate(self._target)
        ]

    def clear(self) -> None:
        self.rebuild("")

    def state_at(self, index: int) -> Optional[CharacterState]:
        if 0 <= index < len(self._states):
            return self._states[index]
        return None

    def char_progress(self, index: int, composition: Optional[CompositionState]) -> float:
        st = self.state_at(index)
        if st is None:
            return 0.0
        return composition_progress(st.target_char, composition)

    def mark_error(self, index: int) -> None:
        st = self.state_at(index)
        if st is not None:
            st.has_error = True

    def clear_error(self, index: int) -> None:
        """Backspace at `index`: only this position's flag changes."""
        st = self.state_at(index)
        if st is not None:
            st.has_error = False

    def update(self, committed: str, composition: Optional[CompositionState] = None) -> list[CharacterState]:
        """Re-derive status/progress for every position."""
        committed = committed or ""
        current = len(committed)

        for st in self._states:
            i = st.index
            if i < current:
                typed = committed[i]
                st.current_composition = typed
                if typed == st.target_char:
                    st.status = CharStatus.CORRECT
                    st.progress = 1.0
                else:
                    st.status = CharStatus.INCORRECT
                    st.progress = typed_char_progress(st.target_char, typed)
            elif i == current:
                st.status = CharStatus.CURRENT
                if composition is None or composition.is_empty():
                    st.current_composition = ""
                    st.progress = 0.0
                else:
                    st.current_composition = composition.display_text()
                    st.progress = composition_progress(st.target_char, composition)
            else:
                st.status = CharStatus.PENDING
                st.current_composition = ""
                st.progress = 0.0

        return self._states

    def correct_count(self) -> int:
        return sum(1 for st in self._states if st.status is CharStatus.CORRECT)
