"""Exception hierarchy for pond.

Invalid user actions (feeding during a game, jumping outside a game) are
not errors: they are silent no-ops. These exceptions cover programming
and configuration mistakes only.
"""


class PondError(Exception):
    """Base exception for pond errors."""

    pass


class ConfigError(PondError):
    """Raised when configuration cannot be loaded or fails validation."""

    pass


class SchedulerError(PondError):
    """Raised on invalid scheduler use (e.g. after dispose, time going backwards)."""

    pass
