"""Progressive syllable composition (domain layer, Qt-free).

One `CompositionStateMachine` owns the jamo typed so far for the target
character under the cursor. Keystrokes are applied one unit at a time:

- consonant: initial -> final -> compound final
- vowel: medial -> compound medial
- backspace: final -> medial -> initial (compound parts unwound one by one)

Inputs that cannot be placed are *rejected*; the caller decides whether that
means "commit and move to the next character". The machine never carries
overflow into another syllable on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hangul_typing.domain.hangul_codec import (
    SPLIT_JONGSEONG,
    SPLIT_JUNGSEONG,
    compose,
    is_choseong,
    is_consonant,
    is_jongseong,
    is_jungseong,
    merge_jongseong,
    merge_jungseong,
)

logger = logging.getLogger(__name__)


@dataclass
class CompositionState:
    """The syllable currently being typed.

    `composed` is non-empty only once both initial and medial are set.
    """

    initial: str = ""
    medial: str = ""
    final: str = ""
    composed: str = ""
    is_complete: bool = False

    def is_empty(self) -> bool:
        return not (self.initial or self.medial or self.final)

    def display_text(self) -> str:
        """Text to overlay while composing (a lone initial shows as itself)."""
        return self.composed or (self.initial + self.medial + self.final)

    def copy(self) -> "CompositionState":
        return CompositionState(self.initial, self.medial, self.final, self.composed, self.is_complete)


def is_jamo_input(key: str) -> bool:
    """True if `key` takes part in composition (a single compatibility jamo)."""
    return isinstance(key, str) and len(key) == 1 and (is_consonant(key) or is_jungseong(key))


class CompositionStateMachine:
    """Applies jamo keystrokes to a single `CompositionState`.

    When a `target` syllable is given, `is_complete` means "composed equals the
    target"; without one it means "a syllable has been formed".
    """

    def __init__(self, target: str = "", state: CompositionState | None = None) -> None:
        self._target = target or ""
        self._state = state if state is not None else CompositionState()

    @property
    def state(self) -> CompositionState:
        return self._state

    @property
    def target(self) -> str:
        return self._target

    def reset(self, target: str | None = None) -> None:
        if target is not None:
            self._target = target
        self._state = CompositionState()

    # ---------------------------
    # Transitions
    # ---------------------------

    def apply(self, key: str) -> bool:
        """Apply one jamo. Returns True if accepted, False if rejected."""
        if not is_jamo_input(key):
            return False

        s = self._state
        accepted = False

        if is_jungseong(key):
            if s.initial and not s.medial:
                s.medial = key
                accepted = True
            elif s.medial and not s.final:
                merged = merge_jungseong(s.medial, key)
                if merged:
                    s.medial = merged
                    accepted = True
        else:
            if not s.initial:
                if is_choseong(key):
                    s.initial = key
                    accepted = True
            elif s.medial and not s.final:
                if is_jongseong(key):
                    s.final = key
                    accepted = True
            elif s.final:
                merged = merge_jongseong(s.final, key)
                if merged:
                    s.final = merged
                    accepted = True

        if accepted:
            self._recompute()
        else:
            logger.debug("Composition rejected %r in state %s", key, s)
        return accepted

    def backspace(self) -> bool:
        """Remove the most recently set component. Returns False if already empty."""
        s = self._state
        if s.final:
            s.final = SPLIT_JONGSEONG[s.final][0] if s.final in SPLIT_JONGSEONG else ""
        elif s.medial:
            s.medial = SPLIT_JUNGSEONG[s.medial][0] if s.medial in SPLIT_JUNGSEONG else ""
        elif s.initial:
            s.initial = ""
        else:
            return False
        self._recompute()
        return True

    def _recompute(self) -> None:
        s = self._state
        if s.initial and s.medial:
            s.composed = compose(s.initial, s.medial, s.final)
        else:
            s.composed = ""
        if self._target:
            s.is_complete = bool(s.composed) and s.composed == self._target
        else:
            s.is_complete = bool(s.composed)
