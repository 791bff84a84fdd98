"""Typing speed / accuracy metrics (domain layer, Qt-free).

Every figure is recomputed from scratch from

    (target_text, typed_text, keystroke log, start timestamp, now)

so the engine can be called on every UI tick without accumulating state.
The only memory is a bounded cache of per-text classification and stroke
totals.

Two stroke models are supported (see `StrokeMode`):

- FLAT_LENGTH (default): every character costs 1, the speed is multiplied by
  a calibration constant (1.1..1.2) to line up with common typing benchmarks.
- PRECISE_STROKE: Hangul syllables cost the sum of their jamo stroke weights.

Korean text uses a WPM divisor of 2.5 (one syllable is roughly 2.5 jamo);
everything else uses the usual 5 characters per word.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Final, Optional, Sequence

from hangul_typing.domain.bounded_cache import BoundedCache
from hangul_typing.domain.enums import StrokeMode, TypingSettings
from hangul_typing.domain.hangul_codec import decompose, disassemble, is_hangul_syllable
from hangul_typing.domain.language import TextProfile

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Stroke weight tables
# -----------------------------------------------------------------------------

# Tense (doubled) initials need shift: 2 strokes
CHOSEONG_STROKES: Final[dict[str, int]] = {
    "ㄱ": 1, "ㄲ": 2, "ㄴ": 1, "ㄷ": 1, "ㄸ": 2, "ㄹ": 1, "ㅁ": 1,
    "ㅂ": 1, "ㅃ": 2, "ㅅ": 1, "ㅆ": 2, "ㅇ": 1, "ㅈ": 1, "ㅉ": 2,
    "ㅊ": 1, "ㅋ": 1, "ㅌ": 1, "ㅍ": 1, "ㅎ": 1,
}

# Single-key vowels count 1 (ㅑ/ㅛ/ㅠ/ㅐ/ㅖ included); ㅒ and the
# two-key diphthongs count 2
JUNGSEONG_STROKES: Final[dict[str, int]] = {
    "ㅏ": 1, "ㅓ": 1, "ㅗ": 1, "ㅜ": 1, "ㅡ": 1, "ㅣ": 1, "ㅔ": 1, "ㅕ": 1,
    "ㅑ": 1, "ㅛ": 1, "ㅠ": 1, "ㅐ": 1, "ㅖ": 1,
    "ㅒ": 2, "ㅘ": 2, "ㅙ": 2, "ㅚ": 2, "ㅝ": 2, "ㅞ": 2, "ㅟ": 2, "ㅢ": 2,
}

# Compound and tense finals: 2 strokes; no final: 0
JONGSEONG_STROKES: Final[dict[str, int]] = {
    "": 0, "ㄱ": 1, "ㄲ": 2, "ㄳ": 2, "ㄴ": 1, "ㄵ": 2, "ㄶ": 2,
    "ㄷ": 1, "ㄹ": 1, "ㄺ": 2, "ㄻ": 2, "ㄼ": 2, "ㄽ": 2, "ㄾ": 2,
    "ㄿ": 2, "ㅀ": 2, "ㅁ": 1, "ㅂ": 1, "ㅄ": 2, "ㅅ": 1, "ㅆ": 2,
    "ㅇ": 1, "ㅈ": 1, "ㅊ": 1, "ㅋ": 1, "ㅌ": 1, "ㅍ": 1, "ㅎ": 1,
}

KOREAN_WORD_DIVISOR: Final[float] = 2.5
DEFAULT_WORD_DIVISOR: Final[float] = 5.0

MIN_ACCURACY_MULTIPLIER: Final[float] = 0.85
KOREAN_ACCURACY_BLEND: Final[float] = 0.5

JAMO_ACCURACY_WEIGHT: Final[float] = 0.7
CHAR_ACCURACY_WEIGHT: Final[float] = 0.3

CALIBRATION_MIN: Final[float] = 1.1
CALIBRATION_MAX: Final[float] = 1.2


# -----------------------------------------------------------------------------
# Value types
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class KeystrokeRecord:
    key: str
    timestamp_ms: int
    correct: bool
    delta_from_previous_ms: int = 0


@dataclass(frozen=True)
class TypingStats:
    cpm: int = 0
    raw_cpm: int = 0
    wpm: int = 0
    raw_wpm: int = 0
    accuracy: float = 100.0
    consistency: float = 0.0
    completion_rate: float = 0.0
    time_elapsed_sec: float = 0.0
    correct_chars: int = 0
    total_chars: int = 0
    error_count: int = 0

    def is_complete(self, target: str) -> bool:
        return self.total_chars >= len(target or "") and self.accuracy == 100


@dataclass(frozen=True)
class StrokeAnalysis:
    total_strokes: int
    korean_chars: int
    korean_strokes: int
    non_korean_chars: int
    average_strokes_per_char: float


# -----------------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def stroke_cost(char: str) -> int:
    """Keypresses needed for one character (1 for anything not a syllable)."""
    triple = decompose(char)
    if triple is None:
        return 1
    return (
        CHOSEONG_STROKES.get(triple.initial, 1)
        + JUNGSEONG_STROKES.get(triple.medial, 1)
        + JONGSEONG_STROKES.get(triple.final, 0)
    )


def text_strokes(text: str) -> int:
    return sum(stroke_cost(ch) for ch in text or "")


def analyze_text_strokes(text: str) -> StrokeAnalysis:
    total = korean_chars = korean_strokes = other = 0
    for ch in text or "":
        cost = stroke_cost(ch)
        total += cost
        if is_hangul_syllable(ch):
            korean_chars += 1
            korean_strokes += cost
        else:
            other += 1
    count = korean_chars + other
    avg = round(total / count, 2) if count else 0.0
    return StrokeAnalysis(total, korean_chars, korean_strokes, other, avg)


def word_divisor(is_korean: bool) -> float:
    return KOREAN_WORD_DIVISOR if is_korean else DEFAULT_WORD_DIVISOR


def words_per_minute(cpm: float, is_korean: bool) -> int:
    return round_half_up(cpm / word_divisor(is_korean))


def accuracy_multiplier(accuracy_rate: float, is_korean: bool) -> float:
    """Speed penalty for mistakes; Korean text gets half the penalty."""
    rate = max(0.0, min(1.0, accuracy_rate))
    if is_korean:
        rate = 1.0 - (1.0 - rate) * KOREAN_ACCURACY_BLEND
    return max(MIN_ACCURACY_MULTIPLIER, rate)


def char_matches(target: str, typed: str) -> int:
    return sum(1 for t, u in zip(target or "", typed or "") if t == u)


def jamo_matches(target: str, typed: str) -> tuple[int, int]:
    """(correct jamo, typed jamo), compared character by character."""
    correct = total = 0
    target = target or ""
    for i, ch in enumerate(typed or ""):
        typed_jamo = disassemble(ch)
        total += len(typed_jamo)
        if i >= len(target):
            continue
        target_jamo = disassemble(target[i])
        correct += sum(1 for a, b in zip(typed_jamo, target_jamo) if a == b)
    return correct, total


def compute_accuracy(target: str, typed: str, is_korean: bool) -> float:
    """Percentage of typed input that matches; 100 when nothing was typed."""
    if not typed:
        return 100.0
    char_ratio = char_matches(target, typed) / len(typed)
    if not is_korean:
        return round(char_ratio * 100, 1)

    correct, total = jamo_matches(target, typed)
    jamo_ratio = correct / total if total else 0.0
    return round((JAMO_ACCURACY_WEIGHT * jamo_ratio + CHAR_ACCURACY_WEIGHT * char_ratio) * 100, 1)


def compute_consistency(keystrokes: Sequence[KeystrokeRecord], damping: float) -> float:
    if not keystrokes:
        return 0.0
    mistakes = sum(1 for k in keystrokes if not k.correct)
    error_rate = mistakes / len(keystrokes)
    return round(100.0 - min(100.0, error_rate * damping), 1)


def compute_completion(target: str, typed: str) -> float:
    if not target:
        return 0.0
    return round(min(100.0, len(typed or "") / len(target) * 100), 1)


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

class StrokeMetricsEngine:
    """Computes `TypingStats` snapshots.

    The stroke mode and calibration come from `TypingSettings` and can be
    overridden per call.
    """

    def __init__(
        self,
        settings: Optional[TypingSettings] = None,
        *,
        mode: Optional[StrokeMode] = None,
        cache: Optional[BoundedCache] = None,
    ) -> None:
        self._settings = settings or TypingSettings()
        self._mode = mode or self._settings.stroke_mode
        self._calibration = min(CALIBRATION_MAX, max(CALIBRATION_MIN, float(self._settings.calibration)))
        self._cache: BoundedCache = cache if cache is not None else BoundedCache(self._settings.cache_capacity)

    @property
    def mode(self) -> StrokeMode:
        return self._mode

    @mode.setter
    def mode(self, value: StrokeMode) -> None:
        self._mode = value

    @property
    def calibration(self) -> float:
        return self._calibration

    @property
    def cache(self) -> BoundedCache:
        return self._cache

    def profile(self, text: str) -> TextProfile:
        return self._cache.get_or_compute(("profile", text), lambda: TextProfile.of(text))

    def strokes(self, text: str) -> int:
        return self._cache.get_or_compute(("strokes", text), lambda: text_strokes(text))

    def raw_cpm(self, typed: str, minutes: float, mode: StrokeMode) -> float:
        if minutes <= 0 or not typed:
            return 0.0
        if mode is StrokeMode.PRECISE_STROKE:
            return self.strokes(typed) / minutes
        return len(typed) / minutes * self._calibration

    def compute(
        self,
        target: str,
        typed: str,
        keystrokes: Sequence[KeystrokeRecord],
        start_ms: Optional[int],
        now_ms: int,
        *,
        first_keystroke_ms: Optional[int] = None,
        mode: Optional[StrokeMode] = None,
    ) -> TypingStats:
        target = target or ""
        typed = typed or ""
        mode = mode or self._mode

        origin = first_keystroke_ms if first_keystroke_ms is not None else start_ms
        elapsed_sec = 0.0
        if origin is not None:
            elapsed_sec = max(0.0, (int(now_ms) - int(origin)) / 1000.0)

        is_korean = self.profile(target).is_korean

        key_count = len(keystrokes)
        mistakes = sum(1 for k in keystrokes if not k.correct)
        accuracy_rate = (key_count - mistakes) / key_count if key_count else 1.0

        raw = self.raw_cpm(typed, elapsed_sec / 60.0, mode)
        scaled = raw * accuracy_multiplier(accuracy_rate, is_korean)

        stats = TypingStats(
            cpm=round_half_up(scaled),
            raw_cpm=round_half_up(raw),
            wpm=words_per_minute(scaled, is_korean),
            raw_wpm=words_per_minute(raw, is_korean),
            accuracy=compute_accuracy(target, typed, is_korean),
            consistency=compute_consistency(keystrokes, self._settings.consistency_damping),
            completion_rate=compute_completion(target, typed),
            time_elapsed_sec=elapsed_sec,
            correct_chars=char_matches(target, typed),
            total_chars=len(typed),
            error_count=mistakes,
        )
        logger.debug("Stats (%s, %s): %s", "korean" if is_korean else "other", mode.value, stats)
        return stats


def compute_stats(
    target: str,
    typed: str,
    keystrokes: Sequence[KeystrokeRecord] = (),
    start_ms: Optional[int] = 0,
    now_ms: int = 0,
    *,
    first_keystroke_ms: Optional[int] = None,
    mode: StrokeMode = StrokeMode.FLAT_LENGTH,
) -> TypingStats:
    """One-shot stats with a throwaway engine (flat-length by default)."""
    return StrokeMetricsEngine(mode=mode).compute(
        target, typed, keystrokes, start_ms, now_ms, first_keystroke_ms=first_keystroke_ms
    )
