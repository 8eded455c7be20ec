from datetime import datetime, time, timedelta

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .types import HAPPINESS_MAX, HAPPINESS_MIN, clamp_happiness

HURT_THRESHOLD = 50


def apply_delta(happiness: int, delta: int) -> int:
    """The only way happiness changes: clamp(old + delta)."""
    return clamp_happiness(happiness + delta)


def is_exploding(happiness: int) -> bool:
    return happiness == HAPPINESS_MIN


def is_hurt(happiness: int) -> bool:
    return HAPPINESS_MIN < happiness < HURT_THRESHOLD


class MoodSnapshot(BaseModel):
    """Immutable view of the mood engine."""
    model_config = ConfigDict(frozen=True)

    happiness: int = Field(ge=HAPPINESS_MIN, le=HAPPINESS_MAX)
    feeding: bool = False

    @computed_field
    @property
    def exploding(self) -> bool:
        return is_exploding(self.happiness)

    @computed_field
    @property
    def hurt(self) -> bool:
        return is_hurt(self.happiness)


def in_quiet_hours(moment: datetime, start: time, end: time) -> bool:
    """Whether the local wall-clock time of moment falls in [start, end).

    The window wraps midnight when start > end. start == end is empty.
    """
    wall = moment.time()
    if start == end:
        return False
    if start < end:
        return start <= wall < end
    return wall >= start or wall < end


def quiet_hours_end(moment: datetime, end: time) -> datetime:
    """The first local end-of-window instant strictly after moment."""
    candidate = datetime.combine(moment.date(), end, tzinfo=moment.tzinfo)
    if candidate <= moment:
        candidate = datetime.combine(moment.date() + timedelta(days=1), end, tzinfo=moment.tzinfo)
    return candidate
