from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .types import Millis, SessionId


class ObstacleOutcome(Enum):
    PENDING = "pending"
    CLEARED = "cleared"
    MISSED = "missed"


class GameEndReason(Enum):
    EXITED = "exited"
    COMPLETED = "completed"
    DISPOSED = "disposed"


class Obstacle(BaseModel):
    """One obstacle of a game session. Resolved exactly once."""
    model_config = ConfigDict(frozen=True)

    sequence_id: int = Field(ge=1)
    scheduled_offset_ms: Millis = Field(ge=0)
    resolved: bool = False
    outcome: ObstacleOutcome = ObstacleOutcome.PENDING

    def resolve(self, outcome: ObstacleOutcome) -> "Obstacle":
        return self.model_copy(update={"resolved": True, "outcome": outcome})


def build_obstacle_batch(count: int, interval_ms: Millis) -> tuple[Obstacle, ...]:
    """Evenly spaced obstacles, offsets 0, interval, 2*interval, ..."""
    return tuple(
        Obstacle(sequence_id=index + 1, scheduled_offset_ms=index * interval_ms)
        for index in range(count)
    )


class GameSession(BaseModel):
    """Immutable view of the obstacle game."""
    model_config = ConfigDict(frozen=True)

    session_id: SessionId | None = None
    active: bool = False
    obstacles: tuple[Obstacle, ...] = Field(default_factory=tuple)
    jump_active: bool = False
    jump_started_at: datetime | None = None
    hit_hurt_active: bool = False

    @property
    def cleared_count(self) -> int:
        return sum(1 for o in self.obstacles if o.outcome == ObstacleOutcome.CLEARED)

    @property
    def missed_count(self) -> int:
        return sum(1 for o in self.obstacles if o.outcome == ObstacleOutcome.MISSED)


IDLE_SESSION = GameSession()
