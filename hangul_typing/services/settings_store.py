from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from hangul_typing.domain.enums import SettingKey, StrokeMode, TypingSettings

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "HANGUL_TYPING_SETTINGS"

_DEFAULTS = TypingSettings()

# (min, max) accepted for numeric keys; out-of-range values fall back to defaults
_NUMERIC_BOUNDS: dict[SettingKey, tuple[float, float]] = {
    SettingKey.CALIBRATION: (1.1, 1.2),
    SettingKey.CONSISTENCY_DAMPING: (1.0, 1000.0),
    SettingKey.BUFFER_CAPACITY: (1, 16),
    SettingKey.QUIET_PERIOD_MS: (0, 5000),
    SettingKey.TICK_INTERVAL_MS: (10, 5000),
    SettingKey.CACHE_CAPACITY: (1, 100000),
}


class SettingsStore:
    """YAML-backed settings store.

    Responsibilities:
      - Load/save settings.yaml atomically
      - Provide a typed `TypingSettings` view with validation

    Notes:
      - Durations are stored in MILLISECONDS.
      - Typing keys live under a top-level `typing:` mapping so the file can
        be shared with other tools.
    """

    def __init__(self, settings_path: str | None = None) -> None:
        if settings_path is None:
            env = (os.environ.get(SETTINGS_ENV_VAR) or "").strip()
            if env:
                self._path = Path(env).expanduser()
            else:
                # <project_root>/settings.yaml
                project_root = Path(__file__).resolve().parents[2]
                self._path = project_root / "settings.yaml"
        else:
            self._path = Path(settings_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        p = self._path
        if not p.exists():
            return {}
        try:
            with p.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to read settings %s: %s", p, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict[str, Any]) -> None:
        p = self._path
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            tmp = p.with_suffix(p.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data or {}, f, allow_unicode=True, sort_keys=True)
            os.replace(str(tmp), str(p))
        except OSError as e:
            # Best-effort persistence; callers should not crash on save failures.
            logger.warning("Failed to save settings %s: %s", p, e)

    def _typing_section(self) -> dict[str, Any]:
        t = self.load().get("typing") or {}
        return t if isinstance(t, dict) else {}

    def get_typing_settings(self) -> TypingSettings:
        t = self._typing_section()

        def _num(key: SettingKey, default: float, cast: type) -> Any:
            v = t.get(key.value, default)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                logger.warning("Invalid setting %s=%r; using %r", key.value, v, default)
                return default
            lo, hi = _NUMERIC_BOUNDS[key]
            if not lo <= v <= hi:
                logger.warning("Setting %s=%r out of range [%s, %s]; using %r", key.value, v, lo, hi, default)
                return default
            return cast(v)

        raw_mode = t.get(SettingKey.STROKE_MODE.value, _DEFAULTS.stroke_mode.value)
        try:
            mode = StrokeMode(raw_mode)
        except ValueError:
            logger.warning("Unknown stroke mode %r; using %s", raw_mode, _DEFAULTS.stroke_mode.value)
            mode = _DEFAULTS.stroke_mode

        return TypingSettings(
            stroke_mode=mode,
            calibration=_num(SettingKey.CALIBRATION, _DEFAULTS.calibration, float),
            consistency_damping=_num(SettingKey.CONSISTENCY_DAMPING, _DEFAULTS.consistency_damping, float),
            buffer_capacity=_num(SettingKey.BUFFER_CAPACITY, _DEFAULTS.buffer_capacity, int),
            quiet_period_ms=_num(SettingKey.QUIET_PERIOD_MS, _DEFAULTS.quiet_period_ms, int),
            tick_interval_ms=_num(SettingKey.TICK_INTERVAL_MS, _DEFAULTS.tick_interval_ms, int),
            cache_capacity=_num(SettingKey.CACHE_CAPACITY, _DEFAULTS.cache_capacity, int),
        )

    def set_value(self, key: SettingKey, value: Any) -> None:
        """Persist one typing key (load -> merge -> save)."""
        s = self.load()
        t = s.get("typing") or {}
        if not isinstance(t, dict):
            t = {}
        t[key.value] = value.value if isinstance(value, StrokeMode) else value
        s["typing"] = t
        self.save(s)

    def set_stroke_mode(self, mode: StrokeMode) -> None:
        self.set_value(SettingKey.STROKE_MODE, mode)
