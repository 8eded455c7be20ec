from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator

from .game import GameEndReason, ObstacleOutcome
from .types import SessionId, WidgetId

# --- Clock Events ---

class ClockTickedEvent(BaseModel):
    """The simulation clock republished "now"."""
    model_config = ConfigDict(frozen=True)
    type: Literal["clock_ticked"] = "clock_ticked"
    widget_id: WidgetId
    timestamp: datetime

# --- Mood Events ---

class HappinessChangedEvent(BaseModel):
    """Happiness moved to a new value."""
    model_config = ConfigDict(frozen=True)
    type: Literal["happiness_changed"] = "happiness_changed"
    widget_id: WidgetId
    timestamp: datetime

    old_happiness: int
    new_happiness: int
    reason: Literal["decay", "feed", "game_cleared", "game_missed"]

class FedEvent(BaseModel):
    """The frog was fed."""
    model_config = ConfigDict(frozen=True)
    type: Literal["fed"] = "fed"
    widget_id: WidgetId
    timestamp: datetime

# --- Game Events ---

class GameStartedEvent(BaseModel):
    """An obstacle game session began."""
    model_config = ConfigDict(frozen=True)
    type: Literal["game_started"] = "game_started"
    widget_id: WidgetId
    timestamp: datetime

    session_id: SessionId
    obstacle_count: int

class JumpedEvent(BaseModel):
    """The frog jumped during a game."""
    model_config = ConfigDict(frozen=True)
    type: Literal["jumped"] = "jumped"
    widget_id: WidgetId
    timestamp: datetime

    session_id: SessionId

class ObstacleResolvedEvent(BaseModel):
    """An obstacle's collision check ran."""
    model_config = ConfigDict(frozen=True)
    type: Literal["obstacle_resolved"] = "obstacle_resolved"
    widget_id: WidgetId
    timestamp: datetime

    session_id: SessionId
    sequence_id: int
    outcome: ObstacleOutcome
    penalty_deferred: bool = False

class GameEndedEvent(BaseModel):
    """A game session returned to idle."""
    model_config = ConfigDict(frozen=True)
    type: Literal["game_ended"] = "game_ended"
    widget_id: WidgetId
    timestamp: datetime

    session_id: SessionId
    reason: GameEndReason
    cleared: int
    missed: int


DomainEvent = Annotated[
    Union[
        ClockTickedEvent,
        HappinessChangedEvent,
        FedEvent,
        GameStartedEvent,
        JumpedEvent,
        ObstacleResolvedEvent,
        GameEndedEvent,
    ],
    Discriminator("type"),
]
