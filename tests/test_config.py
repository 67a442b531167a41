"""Tests for recognizer configuration and YAML settings."""

import logging
import math

import pytest

from circle_gesture.config import (
    CircleConfig,
    ScreenSize,
    load_settings,
    save_settings,
)


class TestCircleConfig:
    def test_defaults(self):
        c = CircleConfig()
        assert c.idle_timeout == 0.5
        assert c.gesture_max_duration == 2.0
        assert c.circle_close_tolerance == 0.075
        assert c.max_delta_angle == 89.0

    @pytest.mark.parametrize("field", [
        "idle_timeout", "gesture_max_duration", "circle_close_tolerance", "max_delta_angle",
    ])
    @pytest.mark.parametrize("value", [0, -1.0, math.nan, math.inf, "1", True])
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValueError):
            CircleConfig(**{field: value})

    def test_integers_accepted(self):
        assert CircleConfig(gesture_max_duration=3).gesture_max_duration == 3

    def test_frozen(self):
        c = CircleConfig()
        with pytest.raises(AttributeError):
            c.idle_timeout = 1.0

    def test_replace_validates(self):
        c = CircleConfig()
        assert c.replace(max_delta_angle=45.0).max_delta_angle == 45.0
        with pytest.raises(ValueError):
            c.replace(circle_close_tolerance=0.0)

    def test_dict_roundtrip(self):
        c = CircleConfig(idle_timeout=0.8, max_delta_angle=60.0)
        assert CircleConfig.from_dict(c.to_dict()) == c

    def test_from_dict_ignores_unknown(self, caplog):
        with caplog.at_level(logging.WARNING, logger="circle_gesture.config"):
            c = CircleConfig.from_dict({"idle_timeout": 0.7, "radius": 3})
        assert c.idle_timeout == 0.7
        assert "radius" in caplog.text


class TestScreenSize:
    def test_defaults(self):
        s = ScreenSize()
        assert (s.width, s.height) == (1920, 1080)

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            ScreenSize(width=0, height=100)
        with pytest.raises(ValueError):
            ScreenSize(width=100, height=-5)


class TestSettingsFile:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "settings.yml"
        config = CircleConfig(idle_timeout=0.4, gesture_max_duration=1.5)
        screen = ScreenSize(2560, 1440)
        save_settings(path, config, screen)

        loaded_config, loaded_screen = load_settings(path)
        assert loaded_config == config
        assert loaded_screen == screen

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("circle:\n  max_delta_angle: 60\n")
        config, screen = load_settings(path)
        assert config.max_delta_angle == 60
        assert config.idle_timeout == 0.5
        assert screen == ScreenSize()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("")
        config, screen = load_settings(path)
        assert config == CircleConfig()

    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("circle:\n  idle_timeout: -2\n")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_config_yaml_helpers(self, tmp_path):
        path = tmp_path / "circle.yml"
        config = CircleConfig(circle_close_tolerance=0.1)
        config.to_yaml(path)
        assert CircleConfig.from_yaml(path) == config
