"""Character and text language classification (domain layer, Qt-free).

Everything downstream (validator, metrics, mismatch detector) branches on a
single classification computed here rather than re-checking code points.
"""

from __future__ import annotations

from dataclasses import dataclass

from hangul_typing.domain.enums import CharClass, TextLanguage
from hangul_typing.domain.hangul_codec import (
    COMPAT_JAMO_FIRST,
    COMPAT_JAMO_LAST,
    is_hangul_syllable,
)

KOREAN_RATIO_THRESHOLD = 0.8
ENGLISH_RATIO_THRESHOLD = 0.2


def classify_char(char: str) -> CharClass:
    if not isinstance(char, str) or len(char) != 1:
        return CharClass.OTHER
    if is_hangul_syllable(char) or COMPAT_JAMO_FIRST <= ord(char) <= COMPAT_JAMO_LAST:
        return CharClass.KOREAN
    if ("a" <= char <= "z") or ("A" <= char <= "Z"):
        return CharClass.ENGLISH
    return CharClass.OTHER


def contains_korean(text: str) -> bool:
    """True if any character is a Hangul syllable or compatibility jamo."""
    return any(classify_char(ch) is CharClass.KOREAN for ch in text or "")


def detect_text_language(text: str) -> TextLanguage:
    """Dominant script of `text` by Korean/English letter ratio.

    Characters that are neither (digits, spaces, punctuation) are ignored.
    Text with no letters at all is MIXED.
    """
    korean = english = 0
    for ch in text or "":
        cls = classify_char(ch)
        if cls is CharClass.KOREAN:
            korean += 1
        elif cls is CharClass.ENGLISH:
            english += 1

    total = korean + english
    if total == 0:
        return TextLanguage.MIXED

    ratio = korean / total
    if ratio >= KOREAN_RATIO_THRESHOLD:
        return TextLanguage.KOREAN
    if ratio <= ENGLISH_RATIO_THRESHOLD:
        return TextLanguage.ENGLISH
    return TextLanguage.MIXED


@dataclass(frozen=True)
class TextProfile:
    """Classification of one text, computed once and shared."""

    text: str
    language: TextLanguage
    is_korean: bool

    @classmethod
    def of(cls, text: str) -> "TextProfile":
        text = text or ""
        return cls(text=text, language=detect_text_language(text), is_korean=contains_korean(text))
