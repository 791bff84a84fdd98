"""Korean/English layout mismatch detection (domain layer, Qt-free).

When the user types with the wrong input mode (e.g. the IME is in English
while the target is Korean) the typed keys are still the right *physical*
keys. Remapping them through the 2-beolsik layout usually recovers the text
they meant, which we offer back as a suggestion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Optional

from hangul_typing.domain.enums import RemapDirection, Severity, TextLanguage
from hangul_typing.domain.hangul_codec import assemble, disassemble
from hangul_typing.domain.language import detect_text_language

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# 2-beolsik <-> QWERTY key maps
# -----------------------------------------------------------------------------

KOREAN_TO_QWERTY: Final[dict[str, str]] = {
    # top row
    "ㅂ": "q", "ㅈ": "w", "ㄷ": "e", "ㄱ": "r", "ㅅ": "t",
    "ㅛ": "y", "ㅕ": "u", "ㅑ": "i", "ㅐ": "o", "ㅔ": "p",
    # home row
    "ㅁ": "a", "ㄴ": "s", "ㅇ": "d", "ㄹ": "f", "ㅎ": "g",
    "ㅗ": "h", "ㅓ": "j", "ㅏ": "k", "ㅣ": "l",
    # bottom row
    "ㅋ": "z", "ㅌ": "x", "ㅊ": "c", "ㅍ": "v", "ㅠ": "b",
    "ㅜ": "n", "ㅡ": "m",
}

# Shift layer: tense consonants and the two y-diphthongs on O/P
SHIFTED_KOREAN_TO_QWERTY: Final[dict[str, str]] = {
    "ㅃ": "Q", "ㅉ": "W", "ㄸ": "E", "ㄲ": "R", "ㅆ": "T",
    "ㅒ": "O", "ㅖ": "P",
}

QWERTY_TO_KOREAN: Final[dict[str, str]] = {v: k for k, v in KOREAN_TO_QWERTY.items()}
SHIFTED_QWERTY_TO_KOREAN: Final[dict[str, str]] = {v: k for k, v in SHIFTED_KOREAN_TO_QWERTY.items()}

RECENT_WINDOW_MS: Final[int] = 5000


def remap(text: str, direction: RemapDirection) -> str:
    """Re-read `text` as if it had been typed in the other input mode."""
    if direction is RemapDirection.ENGLISH_TO_KOREAN:
        jamo = []
        for ch in text or "":
            if ch in SHIFTED_QWERTY_TO_KOREAN:
                jamo.append(SHIFTED_QWERTY_TO_KOREAN[ch])
            else:
                jamo.append(QWERTY_TO_KOREAN.get(ch.lower(), ch))
        return assemble(jamo)

    keys = []
    for jamo in disassemble(text or "", split_compound=True):
        if jamo in SHIFTED_KOREAN_TO_QWERTY:
            keys.append(SHIFTED_KOREAN_TO_QWERTY[jamo])
        else:
            keys.append(KOREAN_TO_QWERTY.get(jamo, jamo))
    return "".join(keys)


def similarity(a: str, b: str) -> int:
    """Position-wise equality ratio of two strings, 0..100."""
    if not a and not b:
        return 100
    if not a or not b:
        return 0
    matches = sum(1 for x, y in zip(a, b) if x == y)
    return round(matches / max(len(a), len(b)) * 100)


def severity_for(confidence: float) -> Severity:
    if confidence > 85:
        return Severity.ERROR
    if confidence > 70:
        return Severity.WARNING
    return Severity.INFO


@dataclass(frozen=True)
class MismatchResult:
    has_mismatch: bool
    input_language: TextLanguage
    expected_language: TextLanguage
    suggested_conversion: Optional[str] = None
    confidence: int = 0
    severity: Severity = Severity.INFO


def detect_mismatch(input_text: str, expected: str) -> MismatchResult:
    """Compare the input's script with the expected text's script.

    Only definite, differing languages count; MIXED on either side is never a
    mismatch.
    """
    input_lang = detect_text_language(input_text)
    expected_lang = detect_text_language(expected)

    if (
        input_lang is expected_lang
        or input_lang is TextLanguage.MIXED
        or expected_lang is TextLanguage.MIXED
    ):
        return MismatchResult(False, input_lang, expected_lang)

    if expected_lang is TextLanguage.KOREAN:
        direction = RemapDirection.ENGLISH_TO_KOREAN
    else:
        direction = RemapDirection.KOREAN_TO_ENGLISH

    suggestion = remap(input_text, direction)
    confidence = similarity(suggestion, expected)
    logger.debug("Layout mismatch %s -> %s: %r (confidence %d)", input_lang.value, expected_lang.value, suggestion, confidence)

    return MismatchResult(
        has_mismatch=True,
        input_language=input_lang,
        expected_language=expected_lang,
        suggested_conversion=suggestion,
        confidence=confidence,
        severity=severity_for(confidence),
    )


def switch_hint(result: MismatchResult) -> str:
    """Human-readable hint for a mismatch ("" when there is none)."""
    if not result.has_mismatch:
        return ""

    mode = "Korean" if result.expected_language is TextLanguage.KOREAN else "English"
    if result.confidence < 70 or not result.suggested_conversion:
        return "{0} input expected. Press the Han/Eng key to switch to {0} mode.".format(mode)
    return 'Switch to {} mode and type "{}".'.format(mode, result.suggested_conversion)


@dataclass(frozen=True)
class LanguageHint:
    show_hint: bool
    message: str
    severity: Severity
    recent_count: int = 0


class LanguageDetector:
    """Per-keystroke mismatch checks with a short memory of recent hits."""

    def __init__(self, window_ms: int = RECENT_WINDOW_MS) -> None:
        self._window_ms = int(window_ms)
        self._recent: list[tuple[int, int]] = []

    @property
    def recent_mismatches(self) -> list[tuple[int, int]]:
        """(timestamp_ms, confidence) pairs inside the window."""
        return list(self._recent)

    def check_input(self, input_text: str, expected: str, now_ms: int) -> LanguageHint:
        result = detect_mismatch(input_text, expected)
        if not result.has_mismatch:
            return LanguageHint(False, "", Severity.INFO, len(self._recent))

        self._recent.append((int(now_ms), result.confidence))
        self._recent = [r for r in self._recent if int(now_ms) - r[0] < self._window_ms]

        return LanguageHint(
            show_hint=True,
            message=switch_hint(result),
            severity=result.severity,
            recent_count=len(self._recent),
        )

    def reset(self) -> None:
        self._recent = []
