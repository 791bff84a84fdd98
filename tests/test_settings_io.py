from pathlib import Path

import yaml

from hangul_typing.domain.enums import SettingKey, StrokeMode, TypingSettings
from hangul_typing.services.settings_store import SettingsStore


def test_missing_file_gives_defaults(tmp_path: Path):
    store = SettingsStore(str(tmp_path / "nope.yaml"))
    assert store.load() == {}
    assert store.get_typing_settings() == TypingSettings()


def test_env_var_selects_default_path(settings_path: Path):
    store = SettingsStore()
    assert store.path == settings_path


def test_set_stroke_mode_round_trips(settings_path: Path):
    store = SettingsStore()
    store.set_stroke_mode(StrokeMode.PRECISE_STROKE)

    with open(settings_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    assert data["typing"]["stroke_mode"] == "precise_stroke"
    assert SettingsStore().get_typing_settings().stroke_mode is StrokeMode.PRECISE_STROKE


def test_set_value_merges_and_keeps_other_sections(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"theme": "hanji", "typing": {"calibration": 1.1}}), encoding="utf-8")

    store = SettingsStore(str(path))
    store.set_value(SettingKey.QUIET_PERIOD_MS, 450)

    loaded = store.load()
    assert loaded["theme"] == "hanji"
    assert loaded["typing"] == {"calibration": 1.1, "quiet_period_ms": 450}
    settings = store.get_typing_settings()
    assert settings.calibration == 1.1
    assert settings.quiet_period_ms == 450


def test_save_is_atomic_and_utf8(tmp_path: Path):
    path = tmp_path / "nested" / "settings.yaml"
    store = SettingsStore(str(path))
    store.save({"last_target": "한글"})

    assert path.exists()
    assert not path.with_suffix(".yaml.tmp").exists()
    with open(path, "r", encoding="utf-8") as f:
        assert yaml.safe_load(f)["last_target"] == "한글"


def test_invalid_values_fall_back_to_defaults(tmp_path: Path, caplog):
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump({
            "typing": {
                "stroke_mode": "turbo",
                "calibration": 3.0,
                "buffer_capacity": "four",
                "consistency_damping": True,
                "tick_interval_ms": 50,
            }
        }),
        encoding="utf-8",
    )

    settings = SettingsStore(str(path)).get_typing_settings()
    defaults = TypingSettings()
    assert settings.stroke_mode is defaults.stroke_mode
    assert settings.calibration == defaults.calibration
    assert settings.buffer_capacity == defaults.buffer_capacity
    assert settings.consistency_damping == defaults.consistency_damping
    assert settings.tick_interval_ms == 50
    assert "turbo" in caplog.text


def test_corrupt_yaml_is_ignored(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("typing: [unclosed", encoding="utf-8")
    store = SettingsStore(str(path))
    assert store.load() == {}
    assert store.get_typing_settings() == TypingSettings()


def test_non_mapping_typing_section_is_ignored(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("typing: 12\n", encoding="utf-8")
    assert SettingsStore(str(path)).get_typing_settings() == TypingSettings()
