"""
Configuration for the frog pond simulation.

Settings are frozen pydantic models. load_config() reads YAML (defaults to
config/pond.yaml next to the package), then applies environment overrides:

    POND_WIDGET_ID, POND_LATITUDE, POND_LONGITUDE, POND_TIMEZONE,
    POND_GRANULARITY_MINUTES

A .env file in the working directory is honoured via python-dotenv.
"""

from __future__ import annotations

import logging
import os
from datetime import time
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from pond.domain.types import HAPPINESS_MAX, HAPPINESS_MIN
from pond.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "pond.yaml"

_ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "POND_WIDGET_ID": ("widget_id",),
    "POND_LATITUDE": ("location", "latitude"),
    "POND_LONGITUDE": ("location", "longitude"),
    "POND_TIMEZONE": ("location", "timezone"),
    "POND_GRANULARITY_MINUTES": ("clock", "granularity_minutes"),
}


class LocationConfig(BaseModel):
    """Fixed geo-coordinate the sky is computed for."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(default=52.52, ge=-90, le=90)
    longitude: float = Field(default=13.405, ge=-180, le=180)
    timezone: str = "Europe/Berlin"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {value!r}") from e
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class ClockConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    granularity_minutes: int = Field(default=1, ge=1, le=60)
    min_delay_ms: int = Field(default=1000, ge=1)

    @field_validator("granularity_minutes")
    @classmethod
    def _divides_hour(cls, value: int) -> int:
        if 60 % value != 0:
            raise ValueError("granularity_minutes must divide 60")
        return value


class MoodConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial_happiness: int = Field(default=HAPPINESS_MAX, ge=HAPPINESS_MIN, le=HAPPINESS_MAX)
    decay_period_minutes: int = Field(default=120, ge=1)
    decay_step: int = Field(default=10, ge=0)
    quiet_start: time = time(22, 0)
    quiet_end: time = time(7, 30)
    feed_bonus: int = Field(default=10, ge=0)
    feed_animation_ms: int = Field(default=1000, ge=0)
    game_success_delta: int = 5
    game_miss_delta: int = -5

    @field_validator("quiet_start", "quiet_end", mode="before")
    @classmethod
    def _reject_sexagesimal(cls, value: Any) -> Any:
        # Unquoted 22:00 in YAML 1.1 loads as the integer 1320.
        if isinstance(value, int):
            raise ValueError("quiet hours must be quoted 'HH:MM' strings")
        return value


class GameConfig(BaseModel):
    """Obstacle game timing.

    Collision check for obstacle k fires at k * interval_ms + travel_ms * collision_ratio.
    """
    model_config = ConfigDict(frozen=True)

    obstacle_count: int = Field(default=20, ge=1)
    interval_ms: int = Field(default=3734, gt=0)
    travel_ms: int = Field(default=2700, gt=0)
    collision_ratio: float = Field(default=0.4, gt=0, lt=1)
    end_slack_ms: int = Field(default=200, ge=0)
    jump_duration_ms: int = Field(default=1000, gt=0)
    jump_band_low: float = Field(default=0.2, ge=0, le=1)
    jump_band_high: float = Field(default=0.8, ge=0, le=1)
    hit_pulse_ms: int = Field(default=900, gt=0)

    @model_validator(mode="after")
    def _band_ordered(self) -> "GameConfig":
        if self.jump_band_low >= self.jump_band_high:
            raise ValueError("jump_band_low must be below jump_band_high")
        return self

    @property
    def collision_delay_ms(self) -> float:
        return self.travel_ms * self.collision_ratio

    @property
    def session_duration_ms(self) -> int:
        return (self.obstacle_count - 1) * self.interval_ms + self.travel_ms + self.end_slack_ms


class PondConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    widget_id: str = "frog"
    frame_size_px: int = Field(default=64, gt=0)
    location: LocationConfig = Field(default_factory=LocationConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    mood: MoodConfig = Field(default_factory=MoodConfig)
    game: GameConfig = Field(default_factory=GameConfig)


def load_config(
    path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> PondConfig:
    """
    Load configuration from YAML plus environment overrides.

    Args:
        path: YAML file. None uses DEFAULT_CONFIG_PATH; a missing default
            file yields built-in defaults, a missing explicit file is an error.
        environ: Environment mapping (default: os.environ after load_dotenv)

    Returns:
        Validated PondConfig

    Raises:
        ConfigError: If the file is unreadable or validation fails
    """
    explicit = path is not None
    config_path = Path(path) if explicit else DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigError(f"{config_path} must contain a mapping at the top level")
            data = loaded
        logger.debug(f"Loaded config from {config_path}")
    elif explicit:
        raise ConfigError(f"Config file not found: {config_path}")

    if environ is None:
        load_dotenv()
        environ = dict(os.environ)
    _apply_env_overrides(data, environ)

    try:
        return PondConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _apply_env_overrides(data: dict[str, Any], environ: dict[str, str]) -> None:
    for var, keys in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        target = data
        for key in keys[:-1]:
            section = target.get(key)
            if not isinstance(section, dict):
                section = {}
                target[key] = section
            target = section
        target[keys[-1]] = value
        logger.debug(f"Config override from {var}")
