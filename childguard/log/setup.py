import logging
import sys
from typing import Optional, Union

from childguard.config import effective_settings as config


class MainFormatter(logging.Formatter):
    """Formats childguard records with the configured log format."""

    def __init__(self, fmt: Optional[str] = None) -> None:
        super().__init__(fmt or config.LOG_FORMAT)


def _resolve_level(level: Union[int, str]) -> int:
    """Turns a level name such as 'DEBUG' into its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'")
    return resolved


def setup_logging(console_level: Optional[Union[int, str]] = None) -> None:
    """
    Configures the root logger for a host program using childguard.
    Any previously configured handlers are cleared to prevent duplication.

    :param console_level: The logging level for the console output. Defaults to LOG_LEVEL.
    """
    level = _resolve_level(console_level if console_level is not None else config.LOG_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)
