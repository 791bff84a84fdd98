"""Hangul Unicode codec (domain layer).

This module contains *no* Qt/UI dependencies.

It centralises:
- Hangul jamo ordering constants (compatibility jamo)
- Compound jamo merge tables (2-beolsik keyboard rules)
- Pure functions for decomposing / composing syllables
- Assembly of a raw jamo stream into syllables

Primary API:
- decompose(char) / compose(initial, medial, final)
- disassemble(text) / assemble(jamo)
"""

from __future__ import annotations

from typing import Final, Iterable, NamedTuple, Optional

from hangul_typing.domain.enums import JamoRole


# -----------------------------------------------------------------------------
# Domain data: compatibility jamo ordering
# -----------------------------------------------------------------------------

HANGUL_BASE: Final[int] = 0xAC00
HANGUL_LAST: Final[int] = 0xD7A3

COMPAT_JAMO_FIRST: Final[int] = 0x3131
COMPAT_JAMO_LAST: Final[int] = 0x318E

# Leading consonants (Choseong) in standard Unicode Hangul order
CHOSEONG: Final[tuple[str, ...]] = (
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ",
    "ㅅ", "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)

# Vowels (Jungseong) in standard Unicode Hangul order
JUNGSEONG: Final[tuple[str, ...]] = (
    "ㅏ", "ㅐ", "ㅑ", "ㅒ", "ㅓ", "ㅔ", "ㅕ", "ㅖ",
    "ㅗ", "ㅘ", "ㅙ", "ㅚ", "ㅛ",
    "ㅜ", "ㅝ", "ㅞ", "ㅟ", "ㅠ",
    "ㅡ", "ㅢ", "ㅣ",
)

# Trailing consonants (Jongseong) in standard Unicode Hangul order
# Index 0 is "no final"
JONGSEONG: Final[tuple[str, ...]] = (
    "",
    "ㄱ", "ㄲ", "ㄳ",
    "ㄴ", "ㄵ", "ㄶ",
    "ㄷ",
    "ㄹ", "ㄺ", "ㄻ", "ㄼ", "ㄽ", "ㄾ", "ㄿ", "ㅀ",
    "ㅁ",
    "ㅂ", "ㅄ",
    "ㅅ", "ㅆ",
    "ㅇ",
    "ㅈ", "ㅊ",
    "ㅋ",
    "ㅌ",
    "ㅍ",
    "ㅎ",
)

_V_COUNT: Final[int] = len(JUNGSEONG)
_T_COUNT: Final[int] = len(JONGSEONG)

# Two finals typed in sequence that merge into one compound final
COMPOUND_JONGSEONG: Final[dict[tuple[str, str], str]] = {
    ("ㄱ", "ㅅ"): "ㄳ",
    ("ㄴ", "ㅈ"): "ㄵ",
    ("ㄴ", "ㅎ"): "ㄶ",
    ("ㄹ", "ㄱ"): "ㄺ",
    ("ㄹ", "ㅁ"): "ㄻ",
    ("ㄹ", "ㅂ"): "ㄼ",
    ("ㄹ", "ㅅ"): "ㄽ",
    ("ㄹ", "ㅌ"): "ㄾ",
    ("ㄹ", "ㅍ"): "ㄿ",
    ("ㄹ", "ㅎ"): "ㅀ",
    ("ㅂ", "ㅅ"): "ㅄ",
}

# Two vowels typed in sequence that merge into one diphthong
COMPOUND_JUNGSEONG: Final[dict[tuple[str, str], str]] = {
    ("ㅗ", "ㅏ"): "ㅘ",
    ("ㅗ", "ㅐ"): "ㅙ",
    ("ㅗ", "ㅣ"): "ㅚ",
    ("ㅜ", "ㅓ"): "ㅝ",
    ("ㅜ", "ㅔ"): "ㅞ",
    ("ㅜ", "ㅣ"): "ㅟ",
    ("ㅡ", "ㅣ"): "ㅢ",
}

SPLIT_JONGSEONG: Final[dict[str, tuple[str, str]]] = {v: k for k, v in COMPOUND_JONGSEONG.items()}
SPLIT_JUNGSEONG: Final[dict[str, tuple[str, str]]] = {v: k for k, v in COMPOUND_JUNGSEONG.items()}


# -----------------------------------------------------------------------------
# Internal lookup maps
# -----------------------------------------------------------------------------

_CHO_MAP: Final[dict[str, int]] = {j: i for i, j in enumerate(CHOSEONG)}
_JUNG_MAP: Final[dict[str, int]] = {j: i for i, j in enumerate(JUNGSEONG)}
_JONG_MAP: Final[dict[str, int]] = {j: i for i, j in enumerate(JONGSEONG)}


class JamoTriple(NamedTuple):
    """The three components of a syllable. `final` is "" when absent."""

    initial: str
    medial: str
    final: str = ""


# -----------------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------------

def is_hangul_syllable(char: str) -> bool:
    """True for a single code point in the completed-syllable block."""
    if not isinstance(char, str) or len(char) != 1:
        return False
    return HANGUL_BASE <= ord(char) <= HANGUL_LAST


def is_compat_jamo(char: str) -> bool:
    if not isinstance(char, str) or len(char) != 1:
        return False
    return COMPAT_JAMO_FIRST <= ord(char) <= COMPAT_JAMO_LAST


def is_choseong(char: str) -> bool:
    return char in _CHO_MAP


def is_jungseong(char: str) -> bool:
    return char in _JUNG_MAP


def is_jongseong(char: str) -> bool:
    return bool(char) and char in _JONG_MAP


def is_consonant(char: str) -> bool:
    return is_choseong(char) or is_jongseong(char)


def classify_jamo(char: str) -> JamoRole:
    """Classify a compatibility jamo by the first slot it can occupy."""
    if is_choseong(char):
        return JamoRole.CHOSEONG
    if is_jungseong(char):
        return JamoRole.JUNGSEONG
    if is_jongseong(char):
        return JamoRole.JONGSEONG
    return JamoRole.UNKNOWN


# -----------------------------------------------------------------------------
# Syllable arithmetic
# -----------------------------------------------------------------------------

def decompose(char: str) -> Optional[JamoTriple]:
    """Split a completed syllable into (initial, medial, final).

    Returns None for anything outside 0xAC00..0xD7A3.
    """
    if not is_hangul_syllable(char):
        return None

    code = ord(char) - HANGUL_BASE
    t_index = code % _T_COUNT
    v_index = (code // _T_COUNT) % _V_COUNT
    l_index = code // _T_COUNT // _V_COUNT

    return JamoTriple(CHOSEONG[l_index], JUNGSEONG[v_index], JONGSEONG[t_index])


def compose(initial: str, medial: str, final: str = "") -> str:
    """Compose a Hangul syllable from compatibility jamo.

    Args:
        initial: choseong (e.g., "ㄱ")
        medial: jungseong (e.g., "ㅏ")
        final: jongseong (e.g., "ㄴ") or "" for no final

    Returns:
        A composed syllable (e.g., "간"). If any part is not a valid jamo for
        its slot, the literal concatenation ``initial + medial + final`` is
        returned instead. This function never raises.

    Notes:
        This uses the Unicode Hangul Syllables algorithm:
        SBase + (LIndex * VCount + VIndex) * TCount + TIndex
    """
    l = initial or ""
    v = medial or ""
    t = final or ""

    li = _CHO_MAP.get(l)
    vi = _JUNG_MAP.get(v)
    ti = _JONG_MAP.get(t)

    if li is None or vi is None or ti is None:
        return l + v + t

    return chr(HANGUL_BASE + (li * _V_COUNT + vi) * _T_COUNT + ti)


def merge_jongseong(first: str, second: str) -> Optional[str]:
    return COMPOUND_JONGSEONG.get((first, second))


def merge_jungseong(first: str, second: str) -> Optional[str]:
    return COMPOUND_JUNGSEONG.get((first, second))


# -----------------------------------------------------------------------------
# Text-level helpers
# -----------------------------------------------------------------------------

def _split_jamo(jamo: str) -> tuple[str, ...]:
    if jamo in SPLIT_JUNGSEONG:
        return SPLIT_JUNGSEONG[jamo]
    if jamo in SPLIT_JONGSEONG:
        return SPLIT_JONGSEONG[jamo]
    return (jamo,)


def disassemble(text: str, *, split_compound: bool = False) -> list[str]:
    """Break text into jamo; non-syllable characters pass through unchanged.

    With `split_compound`, diphthongs and compound finals are further broken
    into the keys that produce them on a 2-beolsik keyboard.
    """
    result: list[str] = []
    for ch in text or "":
        triple = decompose(ch)
        parts: tuple[str, ...]
        if triple is None:
            parts = (ch,)
        else:
            parts = tuple(p for p in triple if p)
        for p in parts:
            if split_compound:
                result.extend(_split_jamo(p))
            else:
                result.append(p)
    return result


def component_count(char: str) -> int:
    """Number of slots a target character asks for (1 for non-syllables)."""
    triple = decompose(char)
    if triple is None:
        return 1
    return 3 if triple.final else 2


def assemble(jamo: Iterable[str]) -> str:
    """Assemble a raw jamo stream into syllables, 2-beolsik style.

    A final consonant followed by a vowel moves to the next syllable
    (compound finals give up only their second part). Non-jamo characters and
    already-completed syllables pass through and end the current block.
    """
    out: list[str] = []
    cho = jung = jong = ""

    def flush() -> None:
        nonlocal cho, jung, jong
        if cho and jung:
            out.append(compose(cho, jung, jong))
        elif cho or jung:
            out.append(cho + jung + jong)
        cho = jung = jong = ""

    for unit in jamo:
        if not unit:
            continue

        if is_jungseong(unit):
            if jong:
                if jong in SPLIT_JONGSEONG:
                    keep, moved = SPLIT_JONGSEONG[jong]
                else:
                    keep, moved = "", jong
                jong = keep
                flush()
                cho, jung = moved, unit
            elif jung:
                merged = merge_jungseong(jung, unit)
                if merged:
                    jung = merged
                else:
                    flush()
                    jung = unit
            else:
                jung = unit
            continue

        if is_consonant(unit):
            if cho and jung and not jong and is_jongseong(unit):
                jong = unit
            elif cho and jung and jong and merge_jongseong(jong, unit):
                jong = merge_jongseong(jong, unit) or jong
            else:
                flush()
                if is_choseong(unit):
                    cho = unit
                else:
                    out.append(unit)
            continue

        flush()
        out.append(unit)

    flush()
    return "".join(out)
