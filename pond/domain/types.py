"""Foundational types for pond.

- WidgetId: identifier injected per simulation instance
- SessionId: per-engine game session counter value
- Millis: durations and offsets in milliseconds
"""

from typing import NewType

WidgetId = NewType("WidgetId", str)
SessionId = NewType("SessionId", int)
Millis = int

HAPPINESS_MIN = 0
HAPPINESS_MAX = 100


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return min(high, max(low, value))


def clamp_happiness(value: int) -> int:
    """Clamp a happiness value into [HAPPINESS_MIN, HAPPINESS_MAX]."""
    return int(clamp(value, HAPPINESS_MIN, HAPPINESS_MAX))
