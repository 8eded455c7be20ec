"""Tests for pond.config module."""

import pytest
from datetime import time
from pydantic import ValidationError

from pond.config import (
    DEFAULT_CONFIG_PATH,
    ClockConfig,
    GameConfig,
    LocationConfig,
    MoodConfig,
    PondConfig,
    load_config,
)
from pond.errors import ConfigError


class TestModels:
    """Tests for the config models' defaults and validation."""

    def test_defaults(self):
        config = PondConfig()
        assert config.widget_id == "frog"
        assert config.location.timezone == "Europe/Berlin"
        assert config.clock.granularity_minutes == 1
        assert config.mood.initial_happiness == 100
        assert config.mood.quiet_start == time(22, 0)
        assert config.mood.quiet_end == time(7, 30)
        assert config.game.obstacle_count == 20

    def test_game_timing(self):
        game = GameConfig()
        assert game.collision_delay_ms == pytest.approx(1080)
        assert game.session_duration_ms == 73_846

    def test_rejects_unknown_timezone(self):
        with pytest.raises(ValidationError):
            LocationConfig(timezone="Mars/Olympus_Mons")

    @pytest.mark.parametrize("granularity", [0, 7, 61])
    def test_rejects_bad_granularity(self, granularity):
        with pytest.raises(ValidationError):
            ClockConfig(granularity_minutes=granularity)

    def test_rejects_unordered_jump_band(self):
        with pytest.raises(ValidationError):
            GameConfig(jump_band_low=0.8, jump_band_high=0.2)

    def test_rejects_out_of_range_happiness(self):
        with pytest.raises(ValidationError):
            MoodConfig(initial_happiness=101)

    def test_quiet_hours_from_strings(self):
        mood = MoodConfig(quiet_start="23:15", quiet_end="06:00")
        assert mood.quiet_start == time(23, 15)

    def test_rejects_sexagesimal_quiet_hours(self):
        with pytest.raises(ValidationError):
            MoodConfig(quiet_start=1320)


class TestLoadConfig:
    """Tests for load_config."""

    def test_shipped_default_file(self):
        assert DEFAULT_CONFIG_PATH.exists()
        config = load_config(environ={})
        assert config == PondConfig()

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "pond.yaml"
        path.write_text(
            "widget_id: kitchen\n"
            "location:\n"
            "  latitude: 48.1\n"
            "  longitude: 11.6\n"
            "mood:\n"
            "  quiet_start: '21:00'\n"
            "game:\n"
            "  obstacle_count: 5\n"
        )
        config = load_config(path, environ={})
        assert config.widget_id == "kitchen"
        assert config.location.latitude == pytest.approx(48.1)
        assert config.mood.quiet_start == time(21, 0)
        assert config.game.obstacle_count == 5
        assert config.game.interval_ms == 3734

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path, environ={}) == PondConfig()

    def test_env_overrides(self, tmp_path):
        path = tmp_path / "pond.yaml"
        path.write_text("location:\n  latitude: 10.0\n")
        config = load_config(path, environ={
            "POND_WIDGET_ID": "desk",
            "POND_LATITUDE": "59.33",
            "POND_TIMEZONE": "Europe/Stockholm",
            "POND_GRANULARITY_MINUTES": "5",
        })
        assert config.widget_id == "desk"
        assert config.location.latitude == pytest.approx(59.33)
        assert config.location.timezone == "Europe/Stockholm"
        assert config.clock.granularity_minutes == 5

    def test_empty_env_value_is_ignored(self, tmp_path):
        path = tmp_path / "pond.yaml"
        path.write_text("widget_id: fromfile\n")
        assert load_config(path, environ={"POND_WIDGET_ID": ""}).widget_id == "fromfile"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml", environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("mood: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_unquoted_quiet_hours_rejected(self, tmp_path):
        path = tmp_path / "pond.yaml"
        path.write_text("mood:\n  quiet_start: 22:00\n")
        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_invalid_env_value(self, tmp_path):
        path = tmp_path / "pond.yaml"
        path.write_text("{}\n")
        with pytest.raises(ConfigError):
            load_config(path, environ={"POND_TIMEZONE": "Nowhere/Special"})
