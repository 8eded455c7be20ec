"""
Centralized logging configuration for pond.

Provides debug logging to file for every simulation process (clock, mood,
game, timers). Log file: <log_root>/debug.log (with rotation)

Usage:
    from pond.logging_config import setup_logging
    setup_logging(log_root)  # Call once at startup

All pond.* loggers will write DEBUG to file, WARNING+ to console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime


# Global configuration
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5  # Keep 5 backup files

_logging_initialized = False


def setup_logging(
    log_root: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path:
    """
    Configure the logging system for pond.

    Args:
        log_root: Directory the log file goes into (created if missing)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file
    """
    global _logging_initialized

    root_path = Path(log_root)
    root_path.mkdir(parents=True, exist_ok=True)
    log_path = root_path / LOG_FILE_NAME

    root_logger = logging.getLogger("pond")
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers (for re-initialization)
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    file_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-28s | %(funcName)-22s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Console handler (less verbose)
    console_formatter = logging.Formatter(
        fmt="%(levelname)-8s | %(name)-22s | %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if not _logging_initialized:
        root_logger.info("=" * 80)
        root_logger.info(f"Frog pond logging initialized at {datetime.now().isoformat()}")
        root_logger.info(f"Log file: {log_path.absolute()}")
        root_logger.info("=" * 80)
        _logging_initialized = True

    return log_path


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_clock(
    logger: logging.Logger,
    now: datetime,
    action: str,
    details: str | None = None,
) -> None:
    """Log simulation clock activity."""
    details_str = f" | {details}" if details else ""
    logger.debug(f"CLOCK | {now.isoformat(timespec='seconds')} | {action}{details_str}")


def log_timer(
    logger: logging.Logger,
    action: str,
    label: str,
    due: datetime | None = None,
    details: str | None = None,
) -> None:
    """Log timer arm/fire/cancel activity."""
    due_str = f" | due={due.isoformat(timespec='milliseconds')}" if due else ""
    details_str = f" | {details}" if details else ""
    logger.debug(f"TIMER | {action} | {label}{due_str}{details_str}")


def log_mood(
    logger: logging.Logger,
    widget_id: str,
    reason: str,
    old: int,
    new: int,
) -> None:
    """Log a happiness change."""
    logger.info(f"MOOD | {widget_id} | {reason} | {old} -> {new}")


def log_game(
    logger: logging.Logger,
    widget_id: str,
    session_id: int,
    action: str,
    details: str | None = None,
) -> None:
    """Log obstacle game activity."""
    details_str = f" | {details}" if details else ""
    logger.info(f"GAME | {widget_id} | session={session_id:04d} | {action}{details_str}")
