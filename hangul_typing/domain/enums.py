"""Shared enums and small value types for the typing core (no Qt dependencies)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class JamoRole(Enum):
    CHOSEONG = "choseong"
    JUNGSEONG = "jungseong"
    JONGSEONG = "jongseong"
    UNKNOWN = "unknown"


class CharStatus(Enum):
    PENDING = "pending"
    CURRENT = "current"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class CharClass(Enum):
    KOREAN = "korean"
    ENGLISH = "english"
    OTHER = "other"


class TextLanguage(Enum):
    KOREAN = "korean"
    ENGLISH = "english"
    MIXED = "mixed"


class RemapDirection(Enum):
    KOREAN_TO_ENGLISH = "ko_to_en"
    ENGLISH_TO_KOREAN = "en_to_ko"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StrokeMode(Enum):
    """How typed text is converted into strokes for CPM.

    FLAT_LENGTH is the default: every character costs one stroke and the
    result is scaled by a calibration constant. PRECISE_STROKE weighs each
    syllable by its jamo stroke table.
    """

    FLAT_LENGTH = "flat_length"
    PRECISE_STROKE = "precise_stroke"


class SettingKey(Enum):
    STROKE_MODE = "stroke_mode"
    CALIBRATION = "calibration"
    CONSISTENCY_DAMPING = "consistency_damping"
    BUFFER_CAPACITY = "buffer_capacity"
    QUIET_PERIOD_MS = "quiet_period_ms"
    TICK_INTERVAL_MS = "tick_interval_ms"
    CACHE_CAPACITY = "cache_capacity"


@dataclass(frozen=True)
class TypingSettings:
    """Tunable knobs for the typing core.

    Notes:
      - Durations are stored in MILLISECONDS.
      - `calibration` only applies in flat-length mode.
    """

    stroke_mode: StrokeMode = StrokeMode.FLAT_LENGTH
    calibration: float = 1.15
    consistency_damping: float = 60.0
    buffer_capacity: int = 4
    quiet_period_ms: int = 300
    tick_interval_ms: int = 100
    cache_capacity: int = 100
