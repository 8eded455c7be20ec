"""Rendering-facing state derived from sky, mood and game.

derive_visual_state() is pure. The aggregator service calls it on every
mutation and hands the result to the rendering layer.
"""

from datetime import datetime, tzinfo
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .game import GameSession, Obstacle
from .mood import MoodSnapshot
from .sky import (
    CelestialPosition,
    SkyPhase,
    SkyReading,
    frame_index_to_background_position,
    moon_phase_to_frame_index,
    resolve_sky_phase,
    to_celestial_position,
)

FROG_FRAME_SIZE_PX = 64


class Season(Enum):
    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"


class FrogPose(Enum):
    """Sprite rows of the frog sheet, top to bottom."""
    IDLE = 0
    FEEDING = 1
    JUMPING = 2
    HURT = 3
    EXPLODING = 4


class SkyGradient(BaseModel):
    model_config = ConfigDict(frozen=True)

    top: str
    bottom: str


SKY_GRADIENTS: dict[SkyPhase, SkyGradient] = {
    SkyPhase.NIGHT: SkyGradient(top="#0b1026", bottom="#1c2a4a"),
    SkyPhase.DAWN: SkyGradient(top="#2b3a67", bottom="#c77d8b"),
    SkyPhase.SUNRISE: SkyGradient(top="#f6a96c", bottom="#fbd1a2"),
    SkyPhase.GOLDEN_HOUR: SkyGradient(top="#f7c873", bottom="#fde7b0"),
    SkyPhase.DAY: SkyGradient(top="#6fb7f2", bottom="#cfe9fb"),
    SkyPhase.SUNSET: SkyGradient(top="#f27a54", bottom="#a95c8b"),
    SkyPhase.DUSK: SkyGradient(top="#3d3b6e", bottom="#7a5c93"),
}

_SEASON_BY_MONTH = {
    12: Season.WINTER, 1: Season.WINTER, 2: Season.WINTER,
    3: Season.SPRING, 4: Season.SPRING, 5: Season.SPRING,
    6: Season.SUMMER, 7: Season.SUMMER, 8: Season.SUMMER,
    9: Season.AUTUMN, 10: Season.AUTUMN, 11: Season.AUTUMN,
}


class VisualState(BaseModel):
    """Everything the rendering layer needs, as of one instant."""
    model_config = ConfigDict(frozen=True)

    at: datetime
    sky_phase: SkyPhase
    sky_gradient: SkyGradient
    sun: CelestialPosition
    moon: CelestialPosition
    moon_frame: int = Field(ge=0, le=7)
    moon_background_position: str
    season: Season

    happiness: int
    exploding: bool
    hurt: bool
    feeding: bool

    game_active: bool
    obstacles: tuple[Obstacle, ...] = Field(default_factory=tuple)
    jump_active: bool = False
    hit_hurt_active: bool = False

    pose: FrogPose
    frame_offset_px: int
    css_classes: tuple[str, ...] = Field(default_factory=tuple)


def season_for(moment: datetime, tz: tzinfo | None = None) -> Season:
    """Meteorological season of the moment's month, read in tz when given."""
    if tz is not None:
        moment = moment.astimezone(tz)
    return _SEASON_BY_MONTH[moment.month]


def frog_pose(mood: MoodSnapshot, game: GameSession) -> FrogPose:
    if mood.exploding:
        return FrogPose.EXPLODING
    if game.hit_hurt_active:
        return FrogPose.HURT
    if game.jump_active:
        return FrogPose.JUMPING
    if mood.feeding:
        return FrogPose.FEEDING
    if mood.hurt:
        return FrogPose.HURT
    return FrogPose.IDLE


def css_classes_for(
    phase: SkyPhase,
    season: Season,
    mood: MoodSnapshot,
    game: GameSession,
) -> tuple[str, ...]:
    classes = [f"phase-{phase.value}", f"season-{season.value}"]
    if mood.exploding:
        classes.append("is-exploding")
    if mood.hurt:
        classes.append("is-hurt")
    if mood.feeding:
        classes.append("is-feeding")
    if game.active:
        classes.append("game-mode")
    if game.jump_active:
        classes.append("is-jumping")
    if game.hit_hurt_active:
        classes.append("is-hit")
    return tuple(classes)


def derive_visual_state(
    now: datetime,
    reading: SkyReading,
    mood: MoodSnapshot,
    game: GameSession,
    frame_size_px: int = FROG_FRAME_SIZE_PX,
    tz: tzinfo | None = None,
) -> VisualState:
    phase = resolve_sky_phase(now, reading.times)
    season = season_for(now, tz)
    moon_frame = moon_phase_to_frame_index(reading.moon_phase)
    pose = frog_pose(mood, game)

    return VisualState(
        at=now,
        sky_phase=phase,
        sky_gradient=SKY_GRADIENTS[phase],
        sun=to_celestial_position(reading.sun_azimuth, reading.sun_altitude),
        moon=to_celestial_position(reading.moon_azimuth, reading.moon_altitude),
        moon_frame=moon_frame,
        moon_background_position=frame_index_to_background_position(moon_frame),
        season=season,
        happiness=mood.happiness,
        exploding=mood.exploding,
        hurt=mood.hurt,
        feeding=mood.feeding,
        game_active=game.active,
        obstacles=game.obstacles,
        jump_active=game.jump_active,
        hit_hurt_active=game.hit_hurt_active,
        pose=pose,
        frame_offset_px=-pose.value * frame_size_px,
        css_classes=css_classes_for(phase, season, mood, game),
    )
