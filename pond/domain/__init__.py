"""Domain types and pure derivations for pond."""

from .types import (
    HAPPINESS_MAX,
    HAPPINESS_MIN,
    Millis,
    SessionId,
    WidgetId,
    clamp,
    clamp_happiness,
)
from .sky import (
    CelestialPosition,
    SkyPhase,
    SkyReading,
    SunTimes,
    altitude_to_top_percent,
    azimuth_to_left_percent,
    frame_index_to_background_position,
    moon_phase_to_frame_index,
    resolve_sky_phase,
    to_celestial_position,
)
from .mood import (
    HURT_THRESHOLD,
    MoodSnapshot,
    apply_delta,
    in_quiet_hours,
    is_exploding,
    is_hurt,
    quiet_hours_end,
)
from .game import (
    IDLE_SESSION,
    GameEndReason,
    GameSession,
    Obstacle,
    ObstacleOutcome,
    build_obstacle_batch,
)
from .events import (
    ClockTickedEvent,
    DomainEvent,
    FedEvent,
    GameEndedEvent,
    GameStartedEvent,
    HappinessChangedEvent,
    JumpedEvent,
    ObstacleResolvedEvent,
)
from .visual import (
    FROG_FRAME_SIZE_PX,
    SKY_GRADIENTS,
    FrogPose,
    Season,
    SkyGradient,
    VisualState,
    derive_visual_state,
    season_for,
)

__all__ = [
    # types
    "HAPPINESS_MAX",
    "HAPPINESS_MIN",
    "Millis",
    "SessionId",
    "WidgetId",
    "clamp",
    "clamp_happiness",
    # sky
    "CelestialPosition",
    "SkyPhase",
    "SkyReading",
    "SunTimes",
    "altitude_to_top_percent",
    "azimuth_to_left_percent",
    "frame_index_to_background_position",
    "moon_phase_to_frame_index",
    "resolve_sky_phase",
    "to_celestial_position",
    # mood
    "HURT_THRESHOLD",
    "MoodSnapshot",
    "apply_delta",
    "is_exploding",
    "is_hurt",
    "in_quiet_hours",
    "quiet_hours_end",
    # game
    "IDLE_SESSION",
    "GameEndReason",
    "GameSession",
    "Obstacle",
    "ObstacleOutcome",
    "build_obstacle_batch",
    # events
    "ClockTickedEvent",
    "DomainEvent",
    "FedEvent",
    "GameEndedEvent",
    "GameStartedEvent",
    "HappinessChangedEvent",
    "JumpedEvent",
    "ObstacleResolvedEvent",
    # visual
    "FROG_FRAME_SIZE_PX",
    "SKY_GRADIENTS",
    "FrogPose",
    "Season",
    "SkyGradient",
    "VisualState",
    "derive_visual_state",
    "season_for",
]
